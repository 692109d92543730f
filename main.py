"""CLI entrypoint for the folder backup system."""

import os

from folder_backup.app import FolderBackup
from folder_backup.logging_setup import configure_logging


def main() -> None:
    """Configure logging, instantiate the backup facade and run the scheduler."""
    configure_logging(
        level=os.environ.get("LOG_LEVEL", "INFO"),
        log_file=os.environ.get("LOG_FILE", "logs/folder_backup.log"),
    )
    backup_system = FolderBackup(os.environ.get("BACKUP_CONFIG", "config.json"))
    backup_system.run()


if __name__ == "__main__":
    main()
