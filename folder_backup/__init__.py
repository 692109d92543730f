"""
Periodic folder snapshots with bounded retention.
"""

from .app import FolderBackup
from .config import BackupConfig, load_config, save_config
from .errors import BackupError, ErrorKind
from .models import CycleResult, PruneReport, Snapshot, TriggerMode
from .retention import RetentionPolicy, prune
from .scheduler import BackupScheduler
from .store import SnapshotStore

__all__ = [
    "FolderBackup",
    "BackupConfig",
    "BackupError",
    "BackupScheduler",
    "CycleResult",
    "ErrorKind",
    "PruneReport",
    "RetentionPolicy",
    "Snapshot",
    "SnapshotStore",
    "TriggerMode",
    "load_config",
    "prune",
    "save_config",
]
