"""Error taxonomy for target materialization and dispatch."""
from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from fetchpool.domain.targets import TargetDescriptor


class MaterializeError(RuntimeError):
    """Raised when a single target cannot be realized on disk."""

    def __init__(self, target: "TargetDescriptor", reason: str) -> None:
        super().__init__(f"{target}: {reason}")
        self.target = target
        self.reason = reason


class FilesystemError(MaterializeError):
    """Creating a directory, the staging file or the final rename failed."""


class MissingSourceError(MaterializeError):
    """A file target reached the materializer without a URL."""

    def __init__(self, target: "TargetDescriptor") -> None:
        super().__init__(target, "no URL found")


class DownloadError(MaterializeError):
    """The request or the response stream failed."""


class OwnershipError(MaterializeError):
    """Changing the owner of a created entry failed."""


class TargetConfigurationError(ValueError):
    """Raised before dispatch when a descriptor violates its invariants."""


class DispatchError(RuntimeError):
    """Base class for queue and reply channel failures."""


class QueueClosedError(DispatchError):
    """The dispatch queue was closed."""


class ReplyChannelClosedError(DispatchError):
    """The requester dropped its reply channel, or a reply was already sent."""


class ReplyTimeoutError(DispatchError):
    """No reply arrived within the requester's timeout."""


__all__ = [
    "DispatchError",
    "DownloadError",
    "FilesystemError",
    "MaterializeError",
    "MissingSourceError",
    "OwnershipError",
    "QueueClosedError",
    "ReplyChannelClosedError",
    "ReplyTimeoutError",
    "TargetConfigurationError",
]
