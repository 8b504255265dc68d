"""Infrastructure layer exports."""

from .channels import DispatchQueue, ReplyChannel
from .http import build_http_client

__all__ = [
    "DispatchQueue",
    "ReplyChannel",
    "build_http_client",
]
