"""
Folder Backup System
Copies a source folder into timestamped snapshots on an interval and keeps
only the newest snapshots.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from dotenv import load_dotenv

from folder_backup.config import BackupConfig, load_config, save_config
from folder_backup.errors import BackupError, ErrorKind
from folder_backup.models import CycleResult, PruneReport
from folder_backup.retention import prune
from folder_backup.scheduler import BackupScheduler, ResultCallback
from folder_backup.store import SnapshotStore

# Load environment variables
load_dotenv()

LOGGER = logging.getLogger("folder_backup.app")


def _failure(error: ErrorKind, detail: str) -> Dict[str, Any]:
    return {"success": False, "error": error.value, "detail": detail}


class FolderBackup:
    """Host-facing facade with an explicit ``init``/``destroy`` lifecycle."""

    def __init__(
        self,
        config_file: str | Path = "config.json",
        *,
        store: Optional[SnapshotStore] = None,
        on_result: Optional[ResultCallback] = None,
        env: Optional[Mapping[str, str]] = None,
    ) -> None:
        self.config_path = Path(config_file)
        self.config: BackupConfig = load_config(self.config_path, env)
        self.store = store or SnapshotStore()
        self.scheduler = BackupScheduler(
            self.config,
            store=self.store,
            on_result=on_result,
        )
        self._shutdown = threading.Event()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def init(self) -> None:
        """Clear interrupted copies and start the timer when enabled."""
        LOGGER.info("Initialising folder backup")
        if self.config.destination_path:
            self.store.clear_stale_partials(self.config.destination_path)
        if self.config.enabled:
            self.scheduler.start(self.config)

    def destroy(self) -> None:
        LOGGER.info("Shutting down folder backup")
        self.scheduler.stop()

    def run(self) -> None:
        """Run until interrupted or :meth:`shutdown` is called."""
        self.init()
        LOGGER.info("Folder backup system started")
        LOGGER.info("Source: %s", self.config.source_path or "<unset>")
        LOGGER.info("Destination: %s", self.config.destination_path or "<unset>")
        LOGGER.info(
            "Interval: %s minutes, keeping %s snapshots",
            self.config.interval_minutes,
            self.config.max_snapshots,
        )
        if not self.config.enabled:
            LOGGER.warning("Automatic backups are disabled; waiting for shutdown")

        try:
            while not self._shutdown.wait(1.0):
                pass
        except (KeyboardInterrupt, SystemExit):
            LOGGER.info("Folder backup system stopped")
        finally:
            self.destroy()

    def shutdown(self) -> None:
        self._shutdown.set()

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    def save_config(self) -> None:
        try:
            save_config(self.config, self.config_path)
        except OSError as exc:
            LOGGER.error("Failed to save configuration to %s: %s", self.config_path, exc)

    def set_interval(self, minutes: Any) -> None:
        self.config.set_interval(minutes)
        self.save_config()
        if self.config.enabled:
            self.scheduler.start(self.config)

    def set_source_path(self, path: Any) -> None:
        self.config.set_source_path(path)
        self.save_config()

    def set_destination_path(self, path: Any) -> None:
        self.config.set_destination_path(path)
        self.save_config()

    def set_max_snapshots(self, count: Any) -> None:
        self.config.set_max_snapshots(count)
        self.save_config()

    def set_enabled(self, enabled: Any) -> None:
        self.config.set_enabled(enabled)
        self.save_config()
        if self.config.enabled:
            self.scheduler.start(self.config)
        else:
            self.scheduler.stop()

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def manual_backup(self) -> CycleResult:
        return self.scheduler.manual_trigger()

    def list_snapshots(self, *, with_sizes: bool = False) -> List[Dict[str, Any]]:
        """Return listing payloads newest first.

        An unset or missing destination yields ``[]``; an unreadable one
        raises :class:`EnumerationFailedError`.
        """
        destination = self.config.destination_path
        if not destination:
            return []
        snapshots = self.store.list(destination, with_sizes=with_sizes)
        return [snapshot.to_dict() for snapshot in snapshots]

    def delete_snapshot(self, identifier: str | Path) -> Dict[str, Any]:
        """Delete one snapshot by name or path on behalf of the user."""
        destination = self.config.destination_path
        if not destination:
            return _failure(ErrorKind.NOT_CONFIGURED, "Destination path is not set")
        try:
            snapshot = self.store.resolve(destination, identifier)
            self.store.delete(snapshot)
        except BackupError as exc:
            LOGGER.warning("Failed to delete snapshot %s: %s", identifier, exc.detail)
            return _failure(exc.kind, exc.detail)
        return {"success": True, "name": snapshot.id}

    def apply_retention(self, *, dry_run: bool = False) -> PruneReport:
        """Prune the destination to ``max_snapshots`` without creating a snapshot.

        With ``dry_run`` the report lists what would be removed.
        """
        destination = self.config.destination_path
        if not destination:
            return PruneReport()
        victims = prune(self.store.list(destination), self.config.max_snapshots)
        if dry_run:
            for victim in victims:
                LOGGER.info("Would remove snapshot %s", victim.location)
            return PruneReport(removed=tuple(victim.id for victim in victims))

        failures = self.store.delete_many(victims)
        failed_names = {failure.name for failure in failures}
        return PruneReport(
            removed=tuple(victim.id for victim in victims if victim.id not in failed_names),
            failed=tuple(failures),
        )


__all__ = ["FolderBackup"]
