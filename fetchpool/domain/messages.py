"""Messages exchanged between producers and the worker pool."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from .targets import TargetDescriptor

if TYPE_CHECKING:
    from fetchpool.infrastructure.channels import ReplyChannel


class CompletionStatus(str, Enum):
    """Outcome reported back to the requester; carries no error detail."""

    SUCCESS = "success"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class DispatchMessage:
    """One target paired with the reply channel of the producer that sent it."""

    target: TargetDescriptor
    reply: "ReplyChannel"
