"""Filesystem storage for snapshot directories.

Snapshots are plain directory copies of the source. A copy is written to a
hidden staging entry inside the destination and renamed into place once
complete, so :meth:`SnapshotStore.list` never reports a partial snapshot.
Two creations racing for the same id resolve to ``id-NN`` suffixes instead
of overwriting each other. The rename is atomic on a single filesystem; the
existence check that precedes it is best-effort against other processes.
"""

from __future__ import annotations

import logging
import os
import shutil
import sys
import uuid
from pathlib import Path
from typing import Iterable, List, Optional, Union

from folder_backup import naming
from folder_backup.errors import (
    DeleteFailedError,
    DestinationUnwritableError,
    EnumerationFailedError,
    SourceMissingError,
)
from folder_backup.models import Snapshot

LOGGER = logging.getLogger("folder_backup.store")

STAGING_PREFIX = ".partial-"

PathLike = Union[str, Path]


def measure_size(path: Path) -> Optional[int]:
    """Return the total size in bytes of ``path``, or ``None`` when unreadable."""
    try:
        if not path.is_dir():
            return path.lstat().st_size
        total = 0
        for root, _dirs, files in os.walk(path):
            for filename in files:
                total += (Path(root) / filename).lstat().st_size
        return total
    except OSError:
        LOGGER.debug("Unable to measure %s", path, exc_info=True)
        return None


class SnapshotStore:
    """Create, enumerate and delete snapshot directories."""

    def create(self, source_path: PathLike, destination_path: PathLike, snapshot_id: str) -> Snapshot:
        """Copy ``source_path`` to ``destination_path/snapshot_id``.

        Raises :class:`SourceMissingError` or :class:`DestinationUnwritableError`.
        """
        created_at = naming.parse(snapshot_id)
        if created_at is None:
            raise ValueError(f"Invalid snapshot id: {snapshot_id!r}")

        source = Path(source_path)
        destination = Path(destination_path)

        if not source.exists():
            raise SourceMissingError(f"Source does not exist: {source}")
        if not os.access(source, os.R_OK):
            raise SourceMissingError(f"Source is not accessible: {source}")

        try:
            destination.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise DestinationUnwritableError(
                f"Cannot create destination {destination}: {exc}"
            ) from exc

        staging = destination / f"{STAGING_PREFIX}{snapshot_id}-{uuid.uuid4().hex[:8]}"
        try:
            staging.mkdir()
        except OSError as exc:
            raise DestinationUnwritableError(
                f"Cannot write to destination {destination}: {exc}"
            ) from exc

        try:
            self._copy(source, staging)
            size = measure_size(staging)
            location = self._publish(staging, destination, snapshot_id)
        except BaseException:
            shutil.rmtree(staging, ignore_errors=True)
            raise

        LOGGER.info("Created snapshot %s from %s", location, source)
        return Snapshot(
            id=location.name,
            location=location,
            created_at=created_at,
            size_bytes=size,
        )

    @staticmethod
    def _copy(source: Path, staging: Path) -> None:
        try:
            if source.is_dir():
                shutil.copytree(source, staging, symlinks=True, dirs_exist_ok=True)
            else:
                shutil.copy2(source, staging / source.name)
        except OSError as exc:
            raise DestinationUnwritableError(
                f"Failed to copy {source} to {staging}: {exc}"
            ) from exc

    @staticmethod
    def _publish(staging: Path, destination: Path, snapshot_id: str) -> Path:
        candidates = [snapshot_id] + [
            naming.with_suffix(snapshot_id, sequence)
            for sequence in range(1, naming.MAX_COLLISION_SUFFIX + 1)
        ]
        for name in candidates:
            target = destination / name
            if target.exists() or target.is_symlink():
                continue
            try:
                staging.rename(target)
            except OSError as exc:
                if target.exists():
                    continue
                raise DestinationUnwritableError(
                    f"Failed to finalise snapshot {target}: {exc}"
                ) from exc
            if name != snapshot_id:
                LOGGER.warning("Snapshot %s already existed; stored as %s", snapshot_id, name)
            return target
        raise DestinationUnwritableError(
            f"No free snapshot name for {snapshot_id} in {destination}"
        )

    def list(self, destination_path: PathLike, *, with_sizes: bool = False) -> List[Snapshot]:
        """Return snapshots newest first; a missing destination yields ``[]``."""
        destination = Path(destination_path)
        try:
            entries = sorted(destination.iterdir())
        except FileNotFoundError:
            return []
        except OSError as exc:
            raise EnumerationFailedError(f"Cannot read destination {destination}: {exc}") from exc

        snapshots: List[Snapshot] = []
        for entry in entries:
            created_at = naming.parse(entry.name)
            if created_at is None or not entry.is_dir():
                continue
            snapshots.append(
                Snapshot(
                    id=entry.name,
                    location=entry,
                    created_at=created_at,
                    size_bytes=measure_size(entry) if with_sizes else None,
                )
            )

        snapshots.sort(key=Snapshot.sort_key, reverse=True)
        return snapshots

    def resolve(self, destination_path: PathLike, identifier: PathLike) -> Snapshot:
        """Look up a snapshot by name, or by path inside ``destination_path``."""
        destination = Path(destination_path)
        candidate = Path(identifier)
        name = candidate.name
        if len(candidate.parts) > 1 and candidate.parent.resolve() != destination.resolve():
            raise DeleteFailedError(f"{identifier} is not inside {destination}", name=name)

        created_at = naming.parse(name)
        if created_at is None:
            raise DeleteFailedError(f"Not a snapshot name: {identifier}", name=name)

        location = destination / name
        if not location.is_dir():
            raise DeleteFailedError(f"Snapshot not found: {location}", name=name)
        return Snapshot(id=name, location=location, created_at=created_at)

    def delete(self, snapshot: Snapshot) -> None:
        """Recursively remove ``snapshot``, attempting every file.

        Raises :class:`DeleteFailedError` when anything is left behind.
        """
        location = snapshot.location
        if not location.exists() and not location.is_symlink():
            raise DeleteFailedError(f"Snapshot not found: {location}", name=snapshot.id)

        failures: List[str] = []

        def _record(_func, path, error) -> None:
            if isinstance(error, tuple):
                error = error[1]
            failures.append(f"{path}: {error}")

        if sys.version_info >= (3, 12):
            shutil.rmtree(location, onexc=_record)
        else:
            shutil.rmtree(location, onerror=_record)

        if failures or location.exists():
            summary = "; ".join(failures[:5]) or f"{location} still exists"
            if len(failures) > 5:
                summary += f" (+{len(failures) - 5} more)"
            raise DeleteFailedError(
                f"Failed to delete {snapshot.id}: {summary}",
                name=snapshot.id,
            )
        LOGGER.info("Deleted snapshot %s", location)

    def delete_many(self, snapshots: Iterable[Snapshot]) -> List[DeleteFailedError]:
        """Delete each snapshot independently, returning the failures."""
        failures: List[DeleteFailedError] = []
        for snapshot in snapshots:
            try:
                self.delete(snapshot)
            except DeleteFailedError as exc:
                LOGGER.warning("Failed to remove old snapshot %s: %s", snapshot.id, exc.detail)
                failures.append(exc)
        return failures

    def clear_stale_partials(self, destination_path: PathLike) -> List[Path]:
        """Remove staging entries left behind by an interrupted copy."""
        destination = Path(destination_path)
        try:
            entries = [
                entry for entry in destination.iterdir()
                if entry.name.startswith(STAGING_PREFIX)
            ]
        except OSError:
            return []

        for entry in entries:
            LOGGER.info("Removing stale partial snapshot %s", entry)
            shutil.rmtree(entry, ignore_errors=True)
        return entries


__all__ = [
    "STAGING_PREFIX",
    "SnapshotStore",
    "measure_size",
]
