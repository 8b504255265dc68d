from __future__ import annotations

import asyncio
import logging

import httpx

from fetchpool.config import AppConfig
from fetchpool.core.errors import MaterializeError, QueueClosedError, ReplyChannelClosedError
from fetchpool.domain.messages import CompletionStatus
from fetchpool.infrastructure.channels import DispatchQueue
from fetchpool.workers.materializer import materialize

logger = logging.getLogger(__name__)

# Strong references to running worker tasks; the event loop only keeps weak ones.
_running: set[asyncio.Task[None]] = set()


class Worker:
    """Pulls one message at a time from the dispatch queue and materializes it."""

    def __init__(
        self,
        worker_id: int,
        config: AppConfig,
        receiver: DispatchQueue,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.worker_id = worker_id
        self._config = config
        self._receiver = receiver
        self._http_client = http_client

    @classmethod
    def start(
        cls,
        worker_id: int,
        config: AppConfig,
        receiver: DispatchQueue,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Spawn the worker loop as a background task on the running loop."""

        worker = cls(worker_id, config, receiver, http_client=http_client)
        task = asyncio.get_running_loop().create_task(worker._run(), name=f"fetchpool-worker-{worker_id}")
        _running.add(task)
        task.add_done_callback(_running.discard)

    async def _run(self) -> None:
        logger.debug("worker %s started", self.worker_id)
        try:
            await self.work()
        except (QueueClosedError, ReplyChannelClosedError) as exc:
            logger.warning("worker %s stopped: %s", self.worker_id, exc)

    async def work(self) -> None:
        """Serve messages until the queue closes or a reply cannot be delivered."""

        while True:
            message = await self._receiver.receive()

            try:
                await materialize(message.target, self._config.owning_uid, http_client=self._http_client)
            except MaterializeError:
                status = CompletionStatus.FAILED
            except Exception:
                logger.exception("%s: unexpected failure in worker %s", message.target, self.worker_id)
                status = CompletionStatus.FAILED
            else:
                status = CompletionStatus.SUCCESS

            message.reply.send(status)


def start_pool(
    config: AppConfig,
    receiver: DispatchQueue,
    *,
    http_client: httpx.AsyncClient | None = None,
    count: int | None = None,
) -> None:
    """Start ``count`` workers (``config.worker_count`` by default) sharing ``receiver``."""

    total = count if count is not None else config.worker_count
    for worker_id in range(total):
        Worker.start(worker_id, config, receiver, http_client=http_client)
    logger.info("started %s workers", total)


def live_workers() -> int:
    """Count worker tasks still running on the current event loop."""

    loop = asyncio.get_running_loop()
    return sum(1 for task in _running if not task.done() and task.get_loop() is loop)
