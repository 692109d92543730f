#!/usr/bin/env python3
"""Create, list, delete and prune folder backup snapshots from the command line."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Optional, Sequence

from folder_backup.app import FolderBackup
from folder_backup.errors import BackupError
from folder_backup.logging_setup import configure_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Manage timestamped folder snapshots using the backup configuration."
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=Path("config.json"),
        help="Path to the configuration file (default: config.json)",
    )
    parser.add_argument(
        "--source",
        help="Override the configured source path.",
    )
    parser.add_argument(
        "--destination",
        help="Override the configured destination path.",
    )
    parser.add_argument(
        "--max-snapshots",
        type=int,
        help="Override the configured number of snapshots to keep.",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Logging verbosity (default: INFO).",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("run", help="Create a snapshot now and apply retention.")

    list_parser = subparsers.add_parser("list", help="List existing snapshots, newest first.")
    list_parser.add_argument(
        "--sizes",
        action="store_true",
        help="Measure snapshot sizes (walks every snapshot).",
    )
    list_parser.add_argument(
        "--json",
        action="store_true",
        help="Print the listing as JSON.",
    )

    delete_parser = subparsers.add_parser("delete", help="Delete a snapshot by name.")
    delete_parser.add_argument("name", help="Snapshot name, e.g. backup-20250101-120000")

    prune_parser = subparsers.add_parser(
        "prune",
        help="Remove snapshots beyond the configured maximum without creating one.",
    )
    prune_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Preview removals without deleting anything.",
    )
    return parser


def setup_logging(level: str) -> None:
    configure_logging("manage_snapshots", level=level, log_file=None)


def _format_size(size: int) -> str:
    if size < 0:
        return "unknown"
    value = float(size)
    for unit in ("B", "KB", "MB", "GB"):
        if value < 1024 or unit == "GB":
            return f"{value:.0f} {unit}" if unit == "B" else f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} GB"


def _apply_overrides(backup: FolderBackup, args: argparse.Namespace) -> None:
    if args.source is not None:
        backup.config.set_source_path(args.source)
    if args.destination is not None:
        backup.config.set_destination_path(args.destination)
    if args.max_snapshots is not None:
        backup.config.set_max_snapshots(args.max_snapshots)


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(args.log_level)

    backup = FolderBackup(args.config)
    _apply_overrides(backup, args)

    if args.command == "run":
        result = backup.manual_backup()
        if not result.success:
            print(f"Backup failed ({result.error.value}): {result.detail}", file=sys.stderr)
            return 1
        print(result.snapshot.location)
        return 0

    if args.command == "list":
        try:
            entries = backup.list_snapshots(with_sizes=args.sizes)
        except BackupError as exc:
            print(f"List failed ({exc.kind.value}): {exc.detail}", file=sys.stderr)
            return 1
        if args.json:
            print(json.dumps(entries, indent=2))
        else:
            for entry in entries:
                print(f"{entry['name']}\t{entry['created']}\t{_format_size(entry['size'])}")
        return 0

    if args.command == "delete":
        outcome = backup.delete_snapshot(args.name)
        if not outcome["success"]:
            print(f"Delete failed ({outcome['error']}): {outcome['detail']}", file=sys.stderr)
            return 1
        return 0

    if args.command == "prune":
        try:
            report = backup.apply_retention(dry_run=args.dry_run)
        except BackupError as exc:
            print(f"Prune failed ({exc.kind.value}): {exc.detail}", file=sys.stderr)
            return 1
        for name in report.removed:
            print(name)
        for failure in report.failed:
            print(f"Delete failed ({failure.kind.value}): {failure.detail}", file=sys.stderr)
        return 0 if report.success else 1

    parser.error(f"Unknown command {args.command}")
    return 2


if __name__ == "__main__":
    sys.exit(main())
