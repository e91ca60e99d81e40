"""Domain models for forensic image mount sessions."""

from __future__ import annotations

from .models import (
    EXTENSION_FORMATS,
    AttachedImage,
    ImageFormat,
    ImageReference,
    Mode,
    MountKind,
    MountRecord,
    RaidAssembly,
    SessionResult,
    mount_target,
    raid_target,
)


__all__ = [
    "EXTENSION_FORMATS",
    "AttachedImage",
    "ImageFormat",
    "ImageReference",
    "Mode",
    "MountKind",
    "MountRecord",
    "RaidAssembly",
    "SessionResult",
    "mount_target",
    "raid_target",
]
