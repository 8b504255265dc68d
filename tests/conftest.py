from __future__ import annotations

from pathlib import Path
import sys

import httpx
import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from fetchpool.application import reset_dispatch_service
from fetchpool.core import privileges


@pytest.fixture(autouse=True)
def not_elevated(monkeypatch):
    """Run every test as an unprivileged process unless it opts in."""
    monkeypatch.setattr(privileges, "is_elevated", lambda: False)


@pytest.fixture(autouse=True)
def reset_service():
    reset_dispatch_service()
    yield
    reset_dispatch_service()


@pytest.fixture()
def chown_calls(monkeypatch):
    """Pretend to be root and record ownership changes instead of applying them."""
    calls: list[tuple[Path, int, int]] = []

    def fake_chown(path, uid, gid):
        calls.append((Path(path), uid, gid))

    monkeypatch.setattr(privileges, "is_elevated", lambda: True)
    monkeypatch.setattr(privileges.os, "chown", fake_chown)
    return calls


def mock_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class ChunkedStream(httpx.AsyncByteStream):
    """Response body delivered in explicit chunks, optionally failing midway."""

    def __init__(self, chunks: list[bytes], error: Exception | None = None) -> None:
        self._chunks = chunks
        self._error = error

    async def __aiter__(self):
        for chunk in self._chunks:
            yield chunk
        if self._error is not None:
            raise self._error
