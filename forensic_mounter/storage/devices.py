"""Block device queries: node checks, mountpoint checks and lsblk listings.

The lsblk listing uses JSON output so partition children of a loop device
can be read without scraping column layouts.
"""

from __future__ import annotations

import json
import os
from pathlib import Path

from forensic_mounter.logging import LoggerFactory

from .commands import CommandRunner
from .exceptions import CommandError


log = LoggerFactory.for_mount()


def is_block_device(path: str | Path) -> bool:
    try:
        return Path(path).is_block_device()
    except OSError:
        return False


def is_mountpoint(path: str | Path) -> bool:
    return os.path.ismount(str(path))


def get_children(device: dict) -> list[dict]:
    return device.get("children", []) or []


def list_partitions(runner: CommandRunner, device: str) -> list[str]:
    """Return the partition nodes the kernel created for a device.

    Args:
        runner: Command runner used to invoke lsblk
        device: Parent device path (e.g., '/dev/loop0')

    Returns:
        Partition device paths in lsblk order, or an empty list when lsblk
        fails or reports no partitions.
    """
    try:
        result = runner.run(["lsblk", "-J", "-p", "-o", "NAME,TYPE", device]).check()
        data = json.loads(result.stdout)
    except (CommandError, json.JSONDecodeError) as error:
        log.debug(f"lsblk failed for {device}: {error}")
        return []

    partitions: list[str] = []
    for entry in data.get("blockdevices", []):
        for child in get_children(entry):
            if child.get("type") == "part" and child.get("name"):
                partitions.append(child["name"])
    return partitions
