from __future__ import annotations

import os
from pathlib import Path

STAGING_SUFFIX = ".downloading"


def staging_path_for(destination: str | os.PathLike[str]) -> Path:
    """Return the private sibling a download is written to before publishing."""

    return Path(f"{os.fspath(destination)}{STAGING_SUFFIX}")


def ensure_parent_dirs(path: str | os.PathLike[str]) -> Path:
    """Create every missing parent directory of ``path`` and return the parent."""

    parent = Path(path).parent
    parent.mkdir(parents=True, exist_ok=True)
    return parent
