"""Loop device attach and detach through losetup."""

from __future__ import annotations

from pathlib import Path

from forensic_mounter.logging import LoggerFactory

from . import devices
from .commands import CommandRunner
from .exceptions import AttachFailedError


log = LoggerFactory.for_attach()


def _parse_loop_device(output: str) -> str | None:
    # losetup --show prints the allocated device on a line of its own.
    for line in output.splitlines():
        line = line.strip()
        if line.startswith("/dev/"):
            return line
    return None


def attach(
    runner: CommandRunner,
    backing_file: str | Path,
    *,
    partscan: bool = True,
    read_only: bool = True,
) -> str:
    """Attach a file to the first free loop device.

    Args:
        runner: Command runner
        backing_file: Image file (or unwrapped ewf1 file) to attach
        partscan: Ask the kernel to create per-partition nodes (loopNpM)
        read_only: Attach the loop device read-only

    Returns:
        The loop device path (e.g., '/dev/loop3')

    Raises:
        AttachFailedError: If losetup fails or does not report a device
    """
    command = ["losetup", "--find", "--show"]
    if partscan:
        command.append("--partscan")
    if read_only:
        command.append("--read-only")
    command.append(str(backing_file))

    result = runner.run(command)
    if not result.ok:
        raise AttachFailedError(str(backing_file), f"losetup failed: {result.message}")

    loop_device = _parse_loop_device(result.stdout)
    if not loop_device:
        raise AttachFailedError(str(backing_file), "losetup did not report a loop device")
    return loop_device


def detach(runner: CommandRunner, loop_device: str) -> bool:
    """Detach a loop device. Returns False if there was nothing to detach."""
    if not devices.is_block_device(loop_device):
        return False
    result = runner.run(["losetup", "--detach", loop_device])
    if not result.ok:
        log.debug(f"losetup --detach {loop_device}: {result.message}")
    return result.ok
