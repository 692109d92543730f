"""Configuration state and persistence for the folder backup system."""

from __future__ import annotations

import json
import os
import re
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

CONFIG_SECTION = "auto_backup"

DEFAULT_INTERVAL_MINUTES = 60
DEFAULT_MAX_SNAPSHOTS = 10

_LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")


def _parse_bool(value: Any, default: bool) -> bool:
    """Parse truthy/falsy values from multiple input types."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    if isinstance(value, (int, float)):
        return value != 0
    return default


def _parse_positive_int(value: Any, default: int) -> int:
    """Parse an integer of at least one.

    Strings are read by their leading integer (``"30abc"`` and ``"30.5"``
    give 30). Missing, unparsable and zero values fall back to ``default``;
    negative values clamp to one.
    """
    if isinstance(value, bool):
        return default
    if isinstance(value, str):
        match = _LEADING_INT_RE.match(value)
        if match is None:
            return default
        parsed = int(match.group(1))
    else:
        try:
            parsed = int(value)
        except (TypeError, ValueError, OverflowError):
            return default
    if parsed == 0:
        return default
    return max(1, parsed)


def _parse_path(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


@dataclass
class BackupConfig:
    """Mutable settings read by the scheduler at the start of each cycle."""

    interval_minutes: int = DEFAULT_INTERVAL_MINUTES
    source_path: str = ""
    destination_path: str = ""
    max_snapshots: int = DEFAULT_MAX_SNAPSHOTS
    enabled: bool = False

    def set_interval(self, minutes: Any) -> None:
        self.interval_minutes = _parse_positive_int(minutes, DEFAULT_INTERVAL_MINUTES)

    def set_source_path(self, path: Any) -> None:
        self.source_path = _parse_path(path)

    def set_destination_path(self, path: Any) -> None:
        self.destination_path = _parse_path(path)

    def set_max_snapshots(self, count: Any) -> None:
        self.max_snapshots = _parse_positive_int(count, DEFAULT_MAX_SNAPSHOTS)

    def set_enabled(self, enabled: Any) -> None:
        self.enabled = _parse_bool(enabled, False)

    def is_configured(self) -> bool:
        return bool(self.source_path) and bool(self.destination_path)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "BackupConfig":
        config = cls()
        if not isinstance(raw, Mapping):
            return config
        config.set_interval(raw.get("interval_minutes"))
        config.set_source_path(raw.get("source_path"))
        config.set_destination_path(raw.get("destination_path"))
        config.set_max_snapshots(raw.get("max_snapshots"))
        config.set_enabled(raw.get("enabled", False))
        return config


def _load_env_config(env: Mapping[str, str]) -> BackupConfig:
    """Fallback configuration derived from environment variables."""
    return BackupConfig.from_mapping({
        "interval_minutes": env.get("BACKUP_INTERVAL_MINUTES"),
        "source_path": env.get("BACKUP_SOURCE_PATH"),
        "destination_path": env.get("BACKUP_DESTINATION_PATH"),
        "max_snapshots": env.get("BACKUP_MAX_SNAPSHOTS"),
        "enabled": env.get("BACKUP_ENABLED", "false"),
    })


def load_config(config_path: Path | str, env: Optional[Mapping[str, str]] = None) -> BackupConfig:
    """Load configuration from a JSON file or environment defaults."""
    source_env = env if env is not None else os.environ
    path = Path(config_path)

    if path.exists():
        with path.open("r", encoding="utf-8") as handle:
            data = json.load(handle)
        if not isinstance(data, Mapping):
            return BackupConfig()
        return BackupConfig.from_mapping(data.get(CONFIG_SECTION, {}))

    return _load_env_config(source_env)


def save_config(config: BackupConfig, config_path: Path | str) -> None:
    """Persist ``config`` under its section, keeping other top-level keys."""
    path = Path(config_path)
    data: Dict[str, Any] = {}
    if path.exists():
        with path.open("r", encoding="utf-8") as handle:
            existing = json.load(handle)
        if isinstance(existing, dict):
            data = existing
    data[CONFIG_SECTION] = config.to_dict()

    path.parent.mkdir(parents=True, exist_ok=True)
    temp_path = path.with_name(f".{path.name}.tmp")
    with temp_path.open("w", encoding="utf-8") as handle:
        json.dump(data, handle, indent=2)
    temp_path.replace(path)


__all__ = [
    "BackupConfig",
    "CONFIG_SECTION",
    "DEFAULT_INTERVAL_MINUTES",
    "DEFAULT_MAX_SNAPSHOTS",
    "load_config",
    "save_config",
    "_parse_bool",
    "_parse_positive_int",
]
