"""Read-only mounting and unmounting with validated arguments.

Every mount goes through :func:`mount_readonly`, so there is exactly one
place that decides the mount options. Device paths must live under /dev/.
Commands run without a shell, so the path needs no other checks.

Functions:
    - prepare_mountpoint(): Create a mount directory that is not in use
    - mount_readonly(): Mount a block device read-only
    - unmount(): Unmount a directory if it is a mountpoint
"""

from __future__ import annotations

from pathlib import Path

from . import devices
from .commands import CommandRunner
from .exceptions import MountFailedError, MountpointBusyError


# Evidence is never written to, executed from, or trusted for device nodes.
READ_ONLY_OPTIONS = ("ro", "nosuid", "nodev", "noexec")


def validate_device_path(device: str) -> None:
    """Reject anything that is not a /dev/ node path.

    Raises:
        ValueError: If the path is not under /dev/
    """
    if not isinstance(device, str) or not device.startswith("/dev/"):
        raise ValueError(f"Invalid device path: {device}")


def prepare_mountpoint(target: Path) -> Path:
    """Create a mount directory, refusing one that already has something mounted.

    Raises:
        MountpointBusyError: If target is already a mountpoint
        MountFailedError: If the directory cannot be created
    """
    if devices.is_mountpoint(target):
        raise MountpointBusyError(str(target))
    try:
        target.mkdir(parents=True, exist_ok=True)
    except OSError as error:
        raise MountFailedError("-", str(target), f"cannot create directory: {error}") from error
    return target


def mount_readonly(runner: CommandRunner, device: str, target: Path) -> None:
    """Mount device on target with read-only options.

    Raises:
        MountFailedError: If device is not a /dev/ path or the mount command fails
    """
    try:
        validate_device_path(device)
    except ValueError as error:
        raise MountFailedError(device, str(target), str(error)) from error
    result = runner.run(["mount", "-o", ",".join(READ_ONLY_OPTIONS), device, str(target)])
    if not result.ok:
        raise MountFailedError(device, str(target), result.message)


def unmount(runner: CommandRunner, target: Path) -> bool:
    """Unmount target. Returns False if it was not mounted or umount failed."""
    if not devices.is_mountpoint(target):
        return False
    return runner.run(["umount", str(target)]).ok
