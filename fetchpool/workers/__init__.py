"""Worker pool and materialization logic."""

from .materializer import materialize
from .pool import Worker, live_workers, start_pool

__all__ = [
    "Worker",
    "live_workers",
    "materialize",
    "start_pool",
]
