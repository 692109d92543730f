import sys
from datetime import datetime, timedelta
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from folder_backup import naming  # noqa: E402
from folder_backup.models import Snapshot  # noqa: E402
from folder_backup.retention import RetentionPolicy, prune  # noqa: E402


def _snapshot(moment: datetime, suffix: int = 0) -> Snapshot:
    snapshot_id = naming.generate(moment)
    if suffix:
        snapshot_id = naming.with_suffix(snapshot_id, suffix)
    return Snapshot(id=snapshot_id, location=Path("/backups") / snapshot_id, created_at=moment)


def _series(count: int) -> list[Snapshot]:
    base = datetime(2025, 1, 1, 0, 0, 0)
    return [_snapshot(base + timedelta(minutes=index)) for index in range(count)]


@pytest.mark.parametrize("count,max_count", [(0, 1), (1, 1), (3, 5), (5, 5), (6, 5), (10, 2), (10, 1)])
def test_prune_returns_excess_and_keeps_newest(count, max_count):
    snapshots = _series(count)

    victims = prune(list(reversed(snapshots)), max_count)

    assert len(victims) == max(0, count - max_count)
    kept = {s.id for s in snapshots} - {v.id for v in victims}
    expected_kept = {s.id for s in snapshots[-max_count:]} if count else set()
    assert kept == expected_kept


def test_prune_is_independent_of_input_order():
    snapshots = _series(6)
    shuffled = [snapshots[i] for i in (3, 0, 5, 1, 4, 2)]

    assert prune(shuffled, 2) == prune(list(reversed(snapshots)), 2)
    assert [v.id for v in prune(shuffled, 2)] == [s.id for s in reversed(snapshots[:4])]


def test_prune_breaks_timestamp_ties_by_id():
    moment = datetime(2025, 1, 1, 12, 0, 0)
    base = _snapshot(moment)
    first_collision = _snapshot(moment, 1)
    second_collision = _snapshot(moment, 2)

    victims = prune([base, second_collision, first_collision], 1)

    assert victims == [first_collision, base]


def test_prune_rejects_non_positive_limit():
    with pytest.raises(ValueError):
        prune(_series(2), 0)
    with pytest.raises(ValueError):
        RetentionPolicy(0)


def test_retention_policy_delegates_to_prune():
    snapshots = _series(4)

    assert RetentionPolicy(3).prune(snapshots) == [snapshots[0]]
