"""Ownership normalization for entries created while running as root."""
from __future__ import annotations

import logging
import os

logger = logging.getLogger(__name__)


def is_elevated() -> bool:
    """Report whether the process may hand files to arbitrary users.

    Queried on every call; a process that drops privileges mid-run is
    observed immediately.
    """

    geteuid = getattr(os, "geteuid", None)
    if geteuid is None:
        return False
    return geteuid() == 0


def normalize_owner(path: str | os.PathLike[str], owning_uid: int) -> bool:
    """Give ``path`` to ``owning_uid`` when elevated.

    Returns ``True`` when ownership was changed. The group is left untouched.
    ``OSError`` from the underlying call propagates to the caller.
    """

    if not is_elevated():
        return False
    os.chown(path, owning_uid, -1)
    logger.debug("%s: owner set to uid %s", os.fspath(path), owning_uid)
    return True
