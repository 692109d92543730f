"""Snapshot naming helpers.

Snapshot ids have the form ``backup-YYYYMMDD-HHMMSS`` with an optional
``-NN`` collision suffix. Ids sort lexicographically in creation order.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Optional

SNAPSHOT_PREFIX = "backup-"
TIMESTAMP_FORMAT = "%Y%m%d-%H%M%S"
MAX_COLLISION_SUFFIX = 99

_SNAPSHOT_RE = re.compile(r"^backup-(\d{8}-\d{6})(?:-(\d{2}))?$")


def utc_now() -> datetime:
    """Current UTC time as a naive datetime; unaffected by daylight saving shifts."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def generate(now: Optional[datetime] = None) -> str:
    """Return the snapshot id for ``now`` (defaults to the current UTC time)."""
    if now is None:
        now = utc_now()
    return f"{SNAPSHOT_PREFIX}{now.strftime(TIMESTAMP_FORMAT)}"


def with_suffix(snapshot_id: str, sequence: int) -> str:
    """Return ``snapshot_id`` with a two-digit collision suffix."""
    if not 1 <= sequence <= MAX_COLLISION_SUFFIX:
        raise ValueError(f"Collision sequence out of range: {sequence}")
    return f"{snapshot_id}-{sequence:02d}"


def parse(name: str) -> Optional[datetime]:
    """Parse the timestamp encoded in a snapshot name."""
    match = _SNAPSHOT_RE.match(name)
    if match is None:
        return None
    try:
        return datetime.strptime(match.group(1), TIMESTAMP_FORMAT)
    except ValueError:
        return None


def is_snapshot_name(name: str) -> bool:
    return parse(name) is not None


__all__ = [
    "MAX_COLLISION_SUFFIX",
    "SNAPSHOT_PREFIX",
    "TIMESTAMP_FORMAT",
    "generate",
    "is_snapshot_name",
    "parse",
    "utc_now",
    "with_suffix",
]
