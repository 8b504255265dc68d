"""Producer side of the dispatch protocol."""
from __future__ import annotations

import asyncio
from typing import Iterable

from fetchpool.domain.messages import CompletionStatus, DispatchMessage
from fetchpool.domain.targets import TargetDescriptor
from fetchpool.infrastructure.channels import DispatchQueue, ReplyChannel


class DispatchService:
    """Submits targets to the worker pool and waits for their status."""

    def __init__(self, queue: DispatchQueue, *, reply_timeout: float | None = None) -> None:
        self._queue = queue
        self._reply_timeout = reply_timeout

    async def submit(self, target: TargetDescriptor) -> CompletionStatus:
        """Enqueue ``target`` with a fresh reply channel and await its status.

        Raises ``TargetConfigurationError`` before anything is queued when the
        descriptor is invalid, ``QueueClosedError`` when the pool is gone and
        ``ReplyTimeoutError`` when the configured timeout elapses.
        """

        target.validate()
        reply = ReplyChannel()
        try:
            self._queue.send(DispatchMessage(target=target, reply=reply))
            return await reply.receive(timeout=self._reply_timeout)
        finally:
            reply.close()

    async def submit_many(self, targets: Iterable[TargetDescriptor]) -> list[CompletionStatus]:
        """Submit every target concurrently; statuses follow the input order."""

        items = list(targets)
        for target in items:
            target.validate()
        return list(await asyncio.gather(*(self.submit(target) for target in items)))


_service: DispatchService | None = None


def configure_dispatch_service(service: DispatchService) -> None:
    """Install the service used by the HTTP routes."""

    global _service
    _service = service


def get_dispatch_service() -> DispatchService:
    """Return the configured dispatch service for the process."""

    if _service is None:
        raise RuntimeError("dispatch service is not configured; start the application first")
    return _service


def reset_dispatch_service() -> None:
    """Forget the configured service (used in tests and on shutdown)."""

    global _service
    _service = None
