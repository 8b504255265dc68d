"""Descriptors for the filesystem artifacts the workers materialize."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from fetchpool.core.errors import TargetConfigurationError
from fetchpool.core.paths import staging_path_for


class TargetKind(str, Enum):
    DIRECTORY = "directory"
    FILE = "file"


@dataclass(frozen=True, slots=True)
class TargetDescriptor:
    """A single directory or file that must exist at ``destination``.

    ``source`` is the URL a file target is fetched from and stays ``None`` for
    directories. The descriptor does not enforce that pairing on construction;
    producers call :meth:`validate` before dispatch.
    """

    kind: TargetKind
    destination: str
    source: str | None = None

    @classmethod
    def directory(cls, destination: str) -> "TargetDescriptor":
        return cls(kind=TargetKind.DIRECTORY, destination=destination)

    @classmethod
    def file(cls, destination: str, source: str) -> "TargetDescriptor":
        return cls(kind=TargetKind.FILE, destination=destination, source=source)

    @property
    def path(self) -> Path:
        return Path(self.destination)

    @property
    def staging_path(self) -> Path:
        return staging_path_for(self.destination)

    def validate(self) -> None:
        if self.kind is TargetKind.FILE and not self.source:
            raise TargetConfigurationError(f"{self}: file target requires a source URL")

    def __str__(self) -> str:
        return f"{self.kind.value} {self.destination}"
