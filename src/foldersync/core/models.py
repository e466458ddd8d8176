"""Data types shared by the sync core."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import PurePath
from typing import Iterable, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class RunState(str, Enum):
    """Lifecycle of one orchestrator run."""
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class SyncStats:
    """Progress counters for one sync unit.

    ``files_copied`` counts every resolved entry (copied, skipped or hidden),
    so a finished unit reports ``files_copied == total_files``.
    """

    files_copied: int = 0
    total_files: int = 0

    def __add__(self, other: "SyncStats") -> "SyncStats":
        return SyncStats(
            files_copied=self.files_copied + other.files_copied,
            total_files=self.total_files + other.total_files
        )

    @property
    def is_complete(self) -> bool:
        return self.files_copied >= self.total_files


@dataclass(frozen=True)
class FolderPair:
    """A source folder mirrored into a subfolder of the destination root."""

    source_path: str
    destination_subpath: str
    name: str = field(default="")

    @property
    def label(self) -> str:
        return self.name or self.destination_subpath


class SyncRecord(BaseModel):
    """Outcome of one full sync run, kept in the history log."""

    model_config = ConfigDict(frozen=True)

    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    files_transferred: int = Field(default=0, ge=0)
    success: bool
    error_message: Optional[str] = None

    @classmethod
    def succeeded(cls, files_transferred: int) -> "SyncRecord":
        return cls(files_transferred=files_transferred, success=True)

    @classmethod
    def failed(cls, files_transferred: int, error_message: str) -> "SyncRecord":
        return cls(
            files_transferred=files_transferred,
            success=False,
            error_message=error_message
        )


def _subpath_parts(subpath: str) -> Tuple[str, ...]:
    parts = PurePath(subpath).parts
    if not parts or PurePath(subpath).is_absolute() or ".." in parts:
        raise ValueError(f"Destination subpath must be a relative path inside the destination root: {subpath!r}")
    return tuple(part for part in parts if part != ".")


def check_disjoint_destinations(subpaths: Iterable[str]) -> None:
    """Ensure no destination subpath equals or contains another.

    Raises:
        ValueError: On an invalid, duplicate or nested subpath
    """
    seen: List[Tuple[str, ...]] = []
    for subpath in subpaths:
        parts = _subpath_parts(subpath)
        for other in seen:
            shorter = min(len(parts), len(other))
            if parts[:shorter] == other[:shorter]:
                raise ValueError(
                    f"Destination subpaths overlap: {'/'.join(other)!r} and {'/'.join(parts)!r}"
                )
        seen.append(parts)
