"""Data models shared by the snapshot store, retention policy and scheduler."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from folder_backup.errors import BackupError, DeleteFailedError, ErrorKind

UNKNOWN_SIZE = -1


class TriggerMode(str, Enum):
    """Origin of a backup cycle."""

    AUTOMATIC = "auto"
    MANUAL = "manual"


@dataclass(frozen=True)
class Snapshot:
    """A completed snapshot entry under a destination directory."""

    id: str
    location: Path
    created_at: datetime
    size_bytes: Optional[int] = None

    @property
    def name(self) -> str:
        return self.id

    def sort_key(self) -> tuple[datetime, str]:
        return (self.created_at, self.id)

    def to_dict(self) -> Dict[str, Any]:
        """Listing payload consumed by host presentation code."""
        return {
            "name": self.id,
            "path": str(self.location),
            "size": self.size_bytes if self.size_bytes is not None else UNKNOWN_SIZE,
            "created": self.created_at.isoformat(),
        }


@dataclass(frozen=True)
class CycleResult:
    """Outcome of a single backup cycle."""

    success: bool
    mode: TriggerMode
    snapshot: Optional[Snapshot] = None
    error: Optional[ErrorKind] = None
    detail: Optional[str] = None

    @classmethod
    def ok(cls, snapshot: Snapshot, mode: TriggerMode) -> "CycleResult":
        return cls(success=True, mode=mode, snapshot=snapshot)

    @classmethod
    def failed(cls, error: ErrorKind, detail: str, mode: TriggerMode) -> "CycleResult":
        return cls(success=False, mode=mode, error=error, detail=detail)

    @classmethod
    def from_error(cls, exc: BackupError, mode: TriggerMode) -> "CycleResult":
        return cls.failed(exc.kind, exc.detail, mode)

    @property
    def skipped(self) -> bool:
        return self.error is ErrorKind.SKIPPED

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"success": self.success, "mode": self.mode.value}
        if self.snapshot is not None:
            payload["snapshot"] = self.snapshot.to_dict()
        if self.error is not None:
            payload["error"] = self.error.value
        if self.detail:
            payload["detail"] = self.detail
        return payload


@dataclass(frozen=True)
class PruneReport:
    """Snapshots removed by a retention pass and the deletions that failed."""

    removed: Tuple[str, ...] = ()
    failed: Tuple[DeleteFailedError, ...] = ()

    @property
    def success(self) -> bool:
        return not self.failed


__all__ = [
    "CycleResult",
    "PruneReport",
    "Snapshot",
    "TriggerMode",
    "UNKNOWN_SIZE",
]
