from __future__ import annotations

import asyncio
from pathlib import Path

import httpx
import pytest

from conftest import ChunkedStream, mock_client
from fetchpool.core.errors import (
    DownloadError,
    FilesystemError,
    MissingSourceError,
    OwnershipError,
)
from fetchpool.domain import TargetDescriptor, TargetKind
from fetchpool.workers import materialize


def _materialize(target: TargetDescriptor, handler=None, owning_uid: int = 1000) -> None:
    async def scenario() -> None:
        if handler is None:
            await materialize(target, owning_uid)
            return
        async with mock_client(handler) as client:
            await materialize(target, owning_uid, http_client=client)

    asyncio.run(scenario())


def _unreachable(request: httpx.Request) -> httpx.Response:
    raise AssertionError(f"unexpected request to {request.url}")


def test_directory_is_created_once(tmp_path):
    destination = tmp_path / "data"
    target = TargetDescriptor.directory(str(destination))

    _materialize(target)
    assert destination.is_dir()
    marker = destination / "keep.txt"
    marker.write_text("kept")

    _materialize(target)
    assert destination.is_dir()
    assert marker.read_text() == "kept"


def test_directory_creation_is_not_recursive(tmp_path):
    target = TargetDescriptor.directory(str(tmp_path / "missing" / "leaf"))

    with pytest.raises(FilesystemError) as excinfo:
        _materialize(target)

    assert "cannot create directory" in str(excinfo.value)
    assert not (tmp_path / "missing").exists()


def test_existing_file_satisfies_directory_target(tmp_path):
    destination = tmp_path / "occupied"
    destination.write_bytes(b"plain file")

    _materialize(TargetDescriptor.directory(str(destination)))

    assert destination.is_file()
    assert destination.read_bytes() == b"plain file"


def test_file_download_creates_parents_and_publishes(tmp_path):
    destination = tmp_path / "a" / "b" / "c" / "model.bin"
    requested: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requested.append(str(request.url))
        return httpx.Response(200, content=b"payload-bytes")

    _materialize(TargetDescriptor.file(str(destination), "https://example.test/model.bin"), handler)

    assert requested == ["https://example.test/model.bin"]
    assert destination.read_bytes() == b"payload-bytes"
    assert not Path(f"{destination}.downloading").exists()


def test_chunks_are_written_in_arrival_order(tmp_path):
    destination = tmp_path / "ordered.txt"
    chunks = [b"first-", b"second-", b"third"]

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, stream=ChunkedStream(chunks))

    _materialize(TargetDescriptor.file(str(destination), "https://example.test/ordered"), handler)

    assert destination.read_bytes() == b"first-second-third"


def test_existing_file_is_not_fetched_again(tmp_path):
    destination = tmp_path / "cached.txt"
    destination.write_text("old contents")

    _materialize(TargetDescriptor.file(str(destination), "https://example.test/cached"), _unreachable)

    assert destination.read_text() == "old contents"
    assert not Path(f"{destination}.downloading").exists()


def test_missing_source_fails_without_creating_files(tmp_path):
    destination = tmp_path / "nested" / "orphan.txt"
    target = TargetDescriptor(kind=TargetKind.FILE, destination=str(destination))

    with pytest.raises(MissingSourceError) as excinfo:
        _materialize(target, _unreachable)

    assert "no URL found" in str(excinfo.value)
    assert not destination.exists()
    assert not Path(f"{destination}.downloading").exists()


def test_mid_stream_failure_leaves_destination_absent(tmp_path):
    destination = tmp_path / "broken.bin"
    staging = Path(f"{destination}.downloading")

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, stream=ChunkedStream([b"partial"], httpx.ReadError("connection reset")))

    with pytest.raises(DownloadError) as excinfo:
        _materialize(TargetDescriptor.file(str(destination), "https://example.test/broken"), handler)

    assert "connection reset" in str(excinfo.value)
    assert not destination.exists()
    assert staging.read_bytes() == b"partial"


def test_error_status_is_a_download_failure(tmp_path):
    destination = tmp_path / "missing.bin"

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, content=b"not here")

    with pytest.raises(DownloadError):
        _materialize(TargetDescriptor.file(str(destination), "https://example.test/missing"), handler)

    assert not destination.exists()


def test_stale_staging_file_is_overwritten(tmp_path):
    destination = tmp_path / "retry.txt"
    staging = Path(f"{destination}.downloading")
    staging.write_bytes(b"leftover from an earlier attempt that was much longer")

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"fresh")

    _materialize(TargetDescriptor.file(str(destination), "https://example.test/retry"), handler)

    assert destination.read_bytes() == b"fresh"
    assert not staging.exists()


def test_elevated_directory_is_handed_to_owner(tmp_path, chown_calls):
    destination = tmp_path / "owned"

    _materialize(TargetDescriptor.directory(str(destination)), owning_uid=4242)

    assert chown_calls == [(destination, 4242, -1)]


def test_elevated_download_is_chowned_before_publish(tmp_path, monkeypatch, chown_calls):
    destination = tmp_path / "deep" / "owned.bin"
    from fetchpool.core import privileges

    recorded = privileges.os.chown

    def checking_chown(path, uid, gid):
        assert not destination.exists()
        recorded(path, uid, gid)

    monkeypatch.setattr(privileges.os, "chown", checking_chown)

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"owned")

    _materialize(TargetDescriptor.file(str(destination), "https://example.test/owned"), handler, owning_uid=4242)

    assert destination.read_bytes() == b"owned"
    # parent directories created on the way are not normalized
    assert chown_calls == [(Path(f"{destination}.downloading"), 4242, -1)]


def test_unprivileged_run_never_changes_ownership(tmp_path, monkeypatch):
    from fetchpool.core import privileges

    def forbidden_chown(path, uid, gid):
        raise AssertionError("chown must not be attempted")

    monkeypatch.setattr(privileges.os, "chown", forbidden_chown)

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"data")

    _materialize(TargetDescriptor.directory(str(tmp_path / "plain")))
    _materialize(TargetDescriptor.file(str(tmp_path / "plain.bin"), "https://example.test/plain"), handler)

    assert (tmp_path / "plain").is_dir()
    assert (tmp_path / "plain.bin").read_bytes() == b"data"


def test_ownership_failure_keeps_download_unpublished(tmp_path, monkeypatch):
    from fetchpool.core import privileges

    def failing_chown(path, uid, gid):
        raise PermissionError(1, "Operation not permitted")

    monkeypatch.setattr(privileges, "is_elevated", lambda: True)
    monkeypatch.setattr(privileges.os, "chown", failing_chown)
    destination = tmp_path / "denied.bin"

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"denied")

    with pytest.raises(OwnershipError):
        _materialize(TargetDescriptor.file(str(destination), "https://example.test/denied"), handler)

    assert not destination.exists()
    assert Path(f"{destination}.downloading").read_bytes() == b"denied"


def test_failures_are_logged_with_their_cause(tmp_path, caplog):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503)

    destination = tmp_path / "unavailable.bin"
    with caplog.at_level("ERROR", logger="fetchpool"):
        with pytest.raises(DownloadError):
            _materialize(TargetDescriptor.file(str(destination), "https://example.test/unavailable"), handler)
        with pytest.raises(MissingSourceError):
            _materialize(TargetDescriptor(kind=TargetKind.FILE, destination=str(tmp_path / "nosource")))

    messages = [record.getMessage() for record in caplog.records]
    assert any("download failed" in message and "503" in message for message in messages)
    assert any("no URL found" in message for message in messages)


def test_unparseable_source_url_is_a_download_failure(tmp_path, caplog):
    destination = tmp_path / "bad-url.bin"
    target = TargetDescriptor.file(str(destination), "http://exa mple/\x00")

    with caplog.at_level("ERROR", logger="fetchpool"):
        with pytest.raises(DownloadError):
            _materialize(target, _unreachable)

    assert not destination.exists()
    assert any("download failed" in record.getMessage() for record in caplog.records)
