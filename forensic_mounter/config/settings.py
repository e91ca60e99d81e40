"""Settings storage for mount session configuration."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any


SETTINGS_PATH = Path(
    os.environ.get(
        "FORENSIC_MOUNTER_SETTINGS_PATH",
        Path.home() / ".config" / "forensic-mounter" / "settings.json",
    )
)

# Default values - use these constants instead of hardcoding values elsewhere
DEFAULT_MOUNT_ROOT = "/mnt"
DEFAULT_RAID_DEVICE = "/dev/md0"
DEFAULT_PARTITION_SCAN_WAIT_SECONDS = 1.0

DEFAULT_SETTINGS: dict[str, Any] = {
    "mount_root": DEFAULT_MOUNT_ROOT,
    "raid_device": DEFAULT_RAID_DEVICE,
    "partition_scan_wait_seconds": DEFAULT_PARTITION_SCAN_WAIT_SECONDS,
    "read_only_loop": True,
}


@dataclass
class SettingsStore:
    values: dict[str, Any] = field(default_factory=dict)


settings_store = SettingsStore()


def load_settings() -> None:
    settings_store.values = dict(DEFAULT_SETTINGS)
    if not SETTINGS_PATH.exists():
        return
    try:
        data = json.loads(SETTINGS_PATH.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError):
        return
    if isinstance(data, dict):
        settings_store.values.update(data)


def get_setting(key: str, default: Any | None = None) -> Any:
    return settings_store.values.get(key, default)


def get_bool(key: str, default: bool = False) -> bool:
    return bool(get_setting(key, default))


def get_float(key: str, default: float = 0.0) -> float:
    value = get_setting(key, default)
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def get_path(key: str, default: str) -> Path:
    value = get_setting(key, default)
    return Path(value or default)


load_settings()
