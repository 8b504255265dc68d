"""Domain layer definitions."""

from .messages import CompletionStatus, DispatchMessage
from .targets import TargetDescriptor, TargetKind

__all__ = [
    "CompletionStatus",
    "DispatchMessage",
    "TargetDescriptor",
    "TargetKind",
]
