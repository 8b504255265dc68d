"""Message passing primitives between producers and workers.

The dispatch queue is an unbounded multi-consumer channel: every message is
handed to exactly one receiver. Each message carries its own one-shot
:class:`ReplyChannel` so the status is routed back to the producer that sent
it, whichever worker picked it up.
"""
from __future__ import annotations

import asyncio
from typing import cast

from fetchpool.core.errors import QueueClosedError, ReplyChannelClosedError, ReplyTimeoutError
from fetchpool.domain.messages import CompletionStatus, DispatchMessage

_CLOSED = object()


class DispatchQueue:
    """Unbounded point-to-point queue of :class:`DispatchMessage` objects."""

    def __init__(self) -> None:
        self._queue: asyncio.Queue[object] = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def qsize(self) -> int:
        size = self._queue.qsize()
        return size - 1 if self._closed and size else size

    def receiver(self) -> "DispatchQueue":
        """Return the shared receive handle handed to every worker."""

        return self

    def send(self, message: DispatchMessage) -> None:
        if self._closed:
            raise QueueClosedError("dispatch queue is closed")
        self._queue.put_nowait(message)

    async def receive(self) -> DispatchMessage:
        item = await self._queue.get()
        if item is _CLOSED:
            # leave the marker for the next receiver
            self._queue.put_nowait(_CLOSED)
            raise QueueClosedError("dispatch queue is closed")
        return cast(DispatchMessage, item)

    def close(self) -> None:
        """Stop accepting messages; receivers drain what is queued, then fail."""

        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(_CLOSED)


class ReplyChannel:
    """Single-use channel carrying one :class:`CompletionStatus`."""

    def __init__(self) -> None:
        self._future: asyncio.Future[CompletionStatus] = asyncio.get_running_loop().create_future()
        self._dropped = False

    def send(self, status: CompletionStatus) -> None:
        if self._dropped:
            raise ReplyChannelClosedError("reply receiver was dropped")
        if self._future.done():
            raise ReplyChannelClosedError("reply already sent")
        self._future.set_result(status)

    async def receive(self, timeout: float | None = None) -> CompletionStatus:
        if self._dropped:
            raise ReplyChannelClosedError("reply receiver was dropped")
        try:
            return await asyncio.wait_for(asyncio.shield(self._future), timeout)
        except asyncio.TimeoutError as exc:
            raise ReplyTimeoutError(f"no reply within {timeout} seconds") from exc

    def close(self) -> None:
        """Drop the receiving side; later sends fail."""

        self._dropped = True
        if not self._future.done():
            self._future.cancel()
