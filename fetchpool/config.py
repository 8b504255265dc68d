"""Application configuration loaded from the environment."""
from __future__ import annotations

import os

from pydantic import BaseModel, ConfigDict, Field


def _default_uid() -> int:
    getuid = getattr(os, "getuid", None)
    return getuid() if getuid is not None else 0


class AppConfig(BaseModel):
    """Read-only settings shared by every worker."""

    model_config = ConfigDict(frozen=True)

    owning_uid: int = Field(default_factory=_default_uid, ge=0)
    worker_count: int = Field(default=4, ge=1)
    reply_timeout: float | None = Field(default=None, gt=0)
    http_timeout: float | None = Field(default=None, gt=0)
    log_level: str = "INFO"


def load_config() -> AppConfig:
    """Build :class:`AppConfig` from ``FETCHPOOL_*`` environment variables."""

    values: dict[str, str] = {}
    env_map = {
        "owning_uid": "FETCHPOOL_OWNING_UID",
        "worker_count": "FETCHPOOL_WORKERS",
        "reply_timeout": "FETCHPOOL_REPLY_TIMEOUT",
        "http_timeout": "FETCHPOOL_HTTP_TIMEOUT",
        "log_level": "FETCHPOOL_LOG_LEVEL",
    }
    for field_name, env_name in env_map.items():
        raw = os.getenv(env_name)
        if raw is not None and raw.strip():
            values[field_name] = raw.strip()
    return AppConfig.model_validate(values)
