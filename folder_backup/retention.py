"""Retention decisions for snapshot directories."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence

from folder_backup.models import Snapshot


def prune(snapshots: Sequence[Snapshot], max_count: int) -> List[Snapshot]:
    """Return the snapshots beyond the newest ``max_count``.

    Order is ``created_at`` descending with ties broken by ``id`` descending,
    so the victim set is deterministic regardless of input order.
    """
    if max_count < 1:
        raise ValueError(f"max_count must be at least 1, got {max_count}")
    ordered = sorted(snapshots, key=Snapshot.sort_key, reverse=True)
    return ordered[max_count:]


@dataclass(frozen=True)
class RetentionPolicy:
    """Keep at most ``max_count`` snapshots."""

    max_count: int

    def __post_init__(self) -> None:
        if self.max_count < 1:
            raise ValueError(f"max_count must be at least 1, got {self.max_count}")

    def prune(self, snapshots: Sequence[Snapshot]) -> List[Snapshot]:
        return prune(snapshots, self.max_count)


__all__ = ["RetentionPolicy", "prune"]
