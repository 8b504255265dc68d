from __future__ import annotations

import logging
import time

_CONFIGURED = False


class TextFormatter(logging.Formatter):
    def __init__(self) -> None:
        super().__init__("%(asctime)s | %(levelname)s | %(name)s | %(message)s")
        self.converter = time.gmtime


def configure_logging(level: str | int = "INFO") -> logging.Logger:
    """Attach a UTC text handler to the ``fetchpool`` logger once."""

    global _CONFIGURED
    logger = logging.getLogger("fetchpool")
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logger.setLevel(level)
    if not _CONFIGURED:
        handler = logging.StreamHandler()
        handler.setFormatter(TextFormatter())
        logger.addHandler(handler)
        _CONFIGURED = True
    return logger
