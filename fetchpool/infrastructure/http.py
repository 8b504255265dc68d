"""HTTP transport used for file targets."""
from __future__ import annotations

import httpx


def build_http_client(
    *,
    timeout: float | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Return the client shared by the workers.

    ``timeout=None`` disables httpx's default timeouts so large downloads are
    only bounded by the remote end. Redirects are followed.
    """

    return httpx.AsyncClient(
        timeout=httpx.Timeout(timeout),
        follow_redirects=True,
        transport=transport,
    )
