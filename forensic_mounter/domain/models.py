"""Domain model for forensic image mount sessions.

Typed records for the objects a session passes between its steps: the input
images, the resolved mode, the mount records and the RAID assembly result.
Mountpoint naming lives here too so every step derives the same paths.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Sequence

from forensic_mounter.storage.exceptions import InvalidModeError


# ==============================================================================
# Mode
# ==============================================================================


class Mode(Enum):
    """How a set of input images is treated."""

    AUTO = "auto"  # resolved to SINGLE or RAID before any resource is acquired
    SINGLE = "single"  # every image mounted on its own
    RAID = "raid"  # all images assembled into one array

    @classmethod
    def parse(cls, value: str) -> Mode:
        """Convert a command-line value to a Mode.

        Raises:
            InvalidModeError: If value is not auto, single or raid
        """
        try:
            return cls(value)
        except ValueError:
            raise InvalidModeError(value) from None


# ==============================================================================
# Images
# ==============================================================================


class ImageFormat(Enum):
    """Container format of an input image."""

    EWF = "ewf"  # Expert Witness Format, needs ewfmount
    RAW = "raw"  # dd/raw, attached directly


EXTENSION_FORMATS: dict[str, ImageFormat] = {
    "e01": ImageFormat.EWF,
    "dd": ImageFormat.RAW,
    "raw": ImageFormat.RAW,
}


@dataclass(frozen=True)
class ImageReference:
    """An input image as given on the command line."""

    path: Path

    @classmethod
    def from_argument(cls, argument: str) -> ImageReference:
        return cls(path=Path(argument))

    @property
    def filename(self) -> str:
        return self.path.name

    @property
    def base_name(self) -> str:
        """Filename without its trailing extension (``disk.E01`` -> ``disk``)."""
        name = self.filename
        if "." not in name:
            return name
        return name.rsplit(".", 1)[0]

    @property
    def extension(self) -> str:
        """Lowercased text after the last dot (``disk.E01`` -> ``e01``)."""
        return self.filename.rsplit(".", 1)[-1].lower()

    @property
    def format(self) -> ImageFormat | None:
        return EXTENSION_FORMATS.get(self.extension)


@dataclass(frozen=True)
class AttachedImage:
    """An image whose raw content is reachable through a loop device."""

    image: ImageReference
    loop_device: str
    container_mount: Path | None = None  # ewfmount directory for EWF images


# ==============================================================================
# Mounts
# ==============================================================================


class MountKind(Enum):
    """What a mountpoint holds. The value is the directory name suffix."""

    CONTAINER = "mount"  # ewfmount FUSE directory exposing ewf1
    PARTITION = "p1"  # first partition of an image
    WHOLE = "whole"  # whole loop device, no usable partition
    RAID = "raid"  # assembled RAID array


@dataclass(frozen=True)
class MountRecord:
    """A directory with the device mounted on it."""

    target: Path
    device: str
    kind: MountKind


def mount_target(root: Path, base_name: str, kind: MountKind) -> Path:
    """Deterministic mountpoint for one image.

    >>> mount_target(Path("/mnt"), "disk", MountKind.WHOLE)
    PosixPath('/mnt/disk_whole')
    """
    if kind is MountKind.RAID:
        raise ValueError("RAID mountpoints are named from all members, use raid_target()")
    return root / f"{base_name}_{kind.value}"


def raid_target(root: Path, base_names: Sequence[str]) -> Path:
    """Mountpoint for an array assembled from the given images."""
    return root / "_".join(["raid", *base_names])


@dataclass(frozen=True)
class RaidAssembly:
    """Result of a successful RAID assembly."""

    members: tuple[str, ...]
    array_device: str
    mount: MountRecord
    strategy: str  # "explicit" or "scan"


# ==============================================================================
# Session
# ==============================================================================


@dataclass(frozen=True)
class SessionResult:
    """Everything a completed session acquired."""

    mode: Mode
    images: tuple[AttachedImage, ...]
    mounts: tuple[MountRecord, ...]
    raid: RaidAssembly | None = None
