"""Application services."""

from .dispatch import (
    DispatchService,
    configure_dispatch_service,
    get_dispatch_service,
    reset_dispatch_service,
)

__all__ = [
    "DispatchService",
    "configure_dispatch_service",
    "get_dispatch_service",
    "reset_dispatch_service",
]
