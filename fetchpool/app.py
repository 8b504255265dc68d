from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

import httpx
from fastapi import FastAPI
from fastapi.responses import JSONResponse

from fetchpool import __version__
from fetchpool.application import DispatchService, configure_dispatch_service, reset_dispatch_service
from fetchpool.config import AppConfig, load_config
from fetchpool.infrastructure import DispatchQueue, build_http_client
from fetchpool.logging_config import configure_logging
from fetchpool.routes import targets
from fetchpool.workers import live_workers, start_pool


def create_app(config: AppConfig | None = None, *, http_client: httpx.AsyncClient | None = None) -> FastAPI:
    config = config or load_config()
    configure_logging(config.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        queue = DispatchQueue()
        client = http_client or build_http_client(timeout=config.http_timeout)
        start_pool(config, queue.receiver(), http_client=client)
        configure_dispatch_service(DispatchService(queue, reply_timeout=config.reply_timeout))
        app.state.queue = queue
        try:
            yield
        finally:
            queue.close()
            reset_dispatch_service()
            if http_client is None:
                await client.aclose()

    app = FastAPI(title="fetchpool", version=__version__, lifespan=lifespan)
    app.state.config = config
    app.include_router(targets.router, prefix="/api")

    @app.get("/", include_in_schema=False)
    async def root() -> JSONResponse:
        """Provide a lightweight landing page for container checks."""
        return JSONResponse(
            {
                "message": "fetchpool",
                "workers": config.worker_count,
                "workers_alive": live_workers(),
                "submit": "/api/targets",
            }
        )

    return app


app = create_app()
