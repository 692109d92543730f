"""Scheduling orchestration for the folder backup system."""

from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import Callable, Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from folder_backup import naming
from folder_backup.config import BackupConfig
from folder_backup.errors import BackupError, ErrorKind, NotConfiguredError
from folder_backup.models import CycleResult, Snapshot, TriggerMode
from folder_backup.retention import prune
from folder_backup.store import SnapshotStore

LOGGER = logging.getLogger("folder_backup.scheduler")

JOB_ID = "backup_snapshot"
SKIPPED_DETAIL = "backup already in progress"

ResultCallback = Callable[[CycleResult], None]


class BackupScheduler:
    """Own the repeating backup timer and run one backup cycle at a time."""

    def __init__(
        self,
        config: BackupConfig,
        *,
        store: Optional[SnapshotStore] = None,
        on_result: Optional[ResultCallback] = None,
        clock: Callable[[], datetime] = naming.utc_now,
    ) -> None:
        self.config = config
        self.store = store or SnapshotStore()
        self.on_result = on_result
        self.clock = clock
        self._timer: Optional[BackgroundScheduler] = None
        self._timer_lock = threading.Lock()
        self._busy = threading.Lock()

    # ------------------------------------------------------------------
    # Timer lifecycle
    # ------------------------------------------------------------------

    @property
    def is_running(self) -> bool:
        return self._timer is not None

    @property
    def busy(self) -> bool:
        return self._busy.locked()

    @property
    def next_run_time(self) -> Optional[datetime]:
        timer = self._timer
        if timer is None:
            return None
        job = timer.get_job(JOB_ID)
        return job.next_run_time if job is not None else None

    def start(self, config: Optional[BackupConfig] = None) -> None:
        """(Re)install the repeating trigger for ``config.interval_minutes``."""
        if config is not None:
            self.config = config

        with self._timer_lock:
            self._stop_locked()

            interval = self.config.interval_minutes
            if interval <= 0:
                LOGGER.info("Automatic backups disabled (interval %s minutes)", interval)
                return

            timer = BackgroundScheduler()
            timer.add_job(
                self.run_cycle,
                trigger=IntervalTrigger(minutes=interval),
                args=(TriggerMode.AUTOMATIC,),
                id=JOB_ID,
                name="Folder Backup",
                max_instances=1,
                coalesce=True,
            )
            timer.start()
            self._timer = timer

        LOGGER.info("Automatic backups started, interval: %s minutes", interval)

    def stop(self) -> None:
        """Cancel future automatic cycles; a cycle already running completes."""
        with self._timer_lock:
            self._stop_locked()

    def _stop_locked(self) -> None:
        timer = self._timer
        if timer is None:
            return
        self._timer = None
        timer.shutdown(wait=False)
        LOGGER.info("Automatic backups stopped")

    # ------------------------------------------------------------------
    # Backup cycles
    # ------------------------------------------------------------------

    def manual_trigger(self) -> CycleResult:
        return self.run_cycle(TriggerMode.MANUAL)

    def run_cycle(self, mode: TriggerMode = TriggerMode.MANUAL) -> CycleResult:
        """Create a snapshot and apply retention, unless a cycle is already running."""
        if not self._busy.acquire(blocking=False):
            LOGGER.warning("Skipping %s backup: %s", mode.value, SKIPPED_DETAIL)
            result = CycleResult.failed(ErrorKind.SKIPPED, SKIPPED_DETAIL, mode)
        else:
            try:
                result = self._execute(mode)
            finally:
                self._busy.release()

        self._notify(result)
        return result

    def _execute(self, mode: TriggerMode) -> CycleResult:
        config = self.config
        LOGGER.info("Starting backup (mode: %s)", mode.value)

        try:
            if not config.is_configured():
                raise NotConfiguredError("Source and destination paths must both be set")
            snapshot_id = naming.generate(self.clock())
            snapshot = self.store.create(config.source_path, config.destination_path, snapshot_id)
        except BackupError as exc:
            log = LOGGER.warning if exc.kind is ErrorKind.NOT_CONFIGURED else LOGGER.error
            log("Backup failed (%s): %s", exc.kind.value, exc.detail)
            return CycleResult.from_error(exc, mode)
        except Exception as exc:
            LOGGER.exception("Unexpected error during backup")
            return CycleResult.failed(ErrorKind.UNEXPECTED, repr(exc), mode)

        LOGGER.info("Backup succeeded: %s", snapshot.location)
        self._cleanup(config, snapshot)
        return CycleResult.ok(snapshot, mode)

    def _cleanup(self, config: BackupConfig, created: Snapshot) -> None:
        """Delete snapshots beyond ``max_snapshots``; failures are only logged."""
        try:
            snapshots = self.store.list(config.destination_path)
            victims = prune(snapshots, max(1, config.max_snapshots))
        except BackupError as exc:
            LOGGER.warning("Cleanup of old snapshots failed: %s", exc.detail)
            return
        except Exception:
            LOGGER.exception("Unexpected error while listing old snapshots")
            return

        victims = [victim for victim in victims if victim.id != created.id]
        if not victims:
            return

        LOGGER.info("Removing %d old snapshot(s)", len(victims))
        try:
            self.store.delete_many(victims)
        except Exception:
            LOGGER.exception("Unexpected error while removing old snapshots")

    def _notify(self, result: CycleResult) -> None:
        if self.on_result is None:
            return
        try:
            self.on_result(result)
        except Exception:
            LOGGER.exception("Backup result callback failed")


__all__ = [
    "BackupScheduler",
    "JOB_ID",
    "SKIPPED_DETAIL",
]
