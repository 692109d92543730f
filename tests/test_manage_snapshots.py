import json
import logging
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import manage_snapshots  # noqa: E402
from folder_backup.errors import DeleteFailedError  # noqa: E402
from folder_backup.store import SnapshotStore  # noqa: E402


@pytest.fixture(autouse=True)
def restore_root_logging():
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def _config(tmp_path: Path, max_snapshots: int = 2) -> Path:
    source = tmp_path / "src"
    source.mkdir()
    (source / "item.txt").write_text("item")
    path = tmp_path / "config.json"
    path.write_text(
        json.dumps(
            {
                "auto_backup": {
                    "source_path": str(source),
                    "destination_path": str(tmp_path / "dst"),
                    "max_snapshots": max_snapshots,
                }
            }
        ),
        encoding="utf-8",
    )
    return path


def test_run_then_list_json(tmp_path, capsys):
    config_path = _config(tmp_path)

    assert manage_snapshots.main(["--config", str(config_path), "run"]) == 0
    created = Path(capsys.readouterr().out.strip())
    assert created.parent == tmp_path / "dst"

    assert manage_snapshots.main(["--config", str(config_path), "list", "--json", "--sizes"]) == 0
    listing = json.loads(capsys.readouterr().out)
    assert [entry["name"] for entry in listing] == [created.name]
    assert listing[0]["size"] == 4


def test_run_with_missing_source_fails(tmp_path, capsys):
    config_path = _config(tmp_path)

    code = manage_snapshots.main(
        ["--config", str(config_path), "--source", str(tmp_path / "missing"), "run"]
    )

    assert code == 1
    assert "source_missing" in capsys.readouterr().err


def test_delete_and_prune(tmp_path, capsys):
    config_path = _config(tmp_path)
    destination = tmp_path / "dst"
    for name in ("backup-20250101-000000", "backup-20250102-000000", "backup-20250103-000000"):
        (destination / name).mkdir(parents=True)

    assert manage_snapshots.main(
        ["--config", str(config_path), "--max-snapshots", "1", "prune", "--dry-run"]
    ) == 0
    assert capsys.readouterr().out.split() == ["backup-20250102-000000", "backup-20250101-000000"]
    assert len(list(destination.iterdir())) == 3

    assert manage_snapshots.main(["--config", str(config_path), "delete", "backup-20250103-000000"]) == 0
    assert manage_snapshots.main(["--config", str(config_path), "delete", "backup-20250103-000000"]) == 1
    assert "delete_failed" in capsys.readouterr().err

    assert manage_snapshots.main(["--config", str(config_path), "prune"]) == 0
    assert sorted(entry.name for entry in destination.iterdir()) == [
        "backup-20250101-000000",
        "backup-20250102-000000",
    ]


def test_format_size():
    assert manage_snapshots._format_size(-1) == "unknown"
    assert manage_snapshots._format_size(512) == "512 B"
    assert manage_snapshots._format_size(2048) == "2.0 KB"


def test_list_unreadable_destination_fails(tmp_path, capsys):
    config_path = _config(tmp_path)
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory")

    code = manage_snapshots.main(
        ["--config", str(config_path), "--destination", str(blocker), "list"]
    )

    assert code == 1
    assert "enumeration_failed" in capsys.readouterr().err


def test_prune_reports_failed_deletions(tmp_path, capsys, monkeypatch):
    config_path = _config(tmp_path)
    destination = tmp_path / "dst"
    for name in ("backup-20250101-000000", "backup-20250102-000000", "backup-20250103-000000"):
        (destination / name).mkdir(parents=True)

    def _refuse(self, snapshot):
        raise DeleteFailedError(f"Permission denied: {snapshot.location}", name=snapshot.id)

    monkeypatch.setattr(SnapshotStore, "delete", _refuse)

    code = manage_snapshots.main(["--config", str(config_path), "--max-snapshots", "1", "prune"])

    assert code == 1
    captured = capsys.readouterr()
    assert captured.out.split() == []
    assert captured.err.count("Delete failed (delete_failed)") == 2
    assert len(list(destination.iterdir())) == 3


def test_logging_goes_through_shared_configuration(tmp_path, monkeypatch):
    calls = []
    monkeypatch.setattr(
        manage_snapshots,
        "configure_logging",
        lambda *args, **kwargs: calls.append((args, kwargs)),
    )

    manage_snapshots.main(["--config", str(_config(tmp_path)), "--log-level", "DEBUG", "list"])

    assert calls == [(("manage_snapshots",), {"level": "DEBUG", "log_file": None})]
