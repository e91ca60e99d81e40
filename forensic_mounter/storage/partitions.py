"""Partition table detection and partition node lookup.

Detection asks two tools and requires both to agree:

1. ``parted -s <dev> print`` must report a ``Partition Table:`` label that
   names a real partitioning scheme ("loop" means a bare filesystem and
   "unknown" means nothing was recognized).
2. ``file -s <dev>`` must see a DOS/MBR or GPT signature.

Forensic copies with damaged headers can fool either check on its own.

Partition nodes come from the kernel first (``<loop>p1`` created by a
partition-scanning attach, or the first ``part`` child lsblk reports) and
from kpartx device-mapper nodes second.
"""

from __future__ import annotations

import re

from forensic_mounter.logging import LoggerFactory

from . import commands, devices
from .commands import CommandRunner


log = LoggerFactory.for_mount()

PARTITION_TABLE_PATTERN = re.compile(r"^Partition Table:\s*(\S+)", re.MULTILINE)
SIGNATURE_PATTERN = re.compile(r"dos/mbr|gpt", re.IGNORECASE)
KPARTX_MAP_PATTERN = re.compile(r"^add map (\S+)", re.MULTILINE)
UNRECOGNIZED_LABELS = {"loop", "unknown"}


def read_table_label(runner: CommandRunner, device: str) -> str | None:
    """Return the partition table label parted reports, or None."""
    result = runner.run(["parted", "-s", device, "print"])
    match = PARTITION_TABLE_PATTERN.search(result.stdout)
    if not match:
        return None
    return match.group(1).lower()


def has_known_signature(runner: CommandRunner, device: str) -> bool:
    result = runner.run(["file", "-s", device])
    return bool(SIGNATURE_PATTERN.search(result.output))


def has_partition_table(runner: CommandRunner, device: str) -> bool:
    """Check whether a device carries a partition table both tools agree on."""
    label = read_table_label(runner, device)
    if label is None or label in UNRECOGNIZED_LABELS:
        log.debug(f"parted reports no partition table on {device} (label: {label})")
        return False
    if not has_known_signature(runner, device):
        log.debug(f"parted reports '{label}' on {device} but file sees no MBR/GPT signature")
        return False
    log.debug(f"Partition table '{label}' confirmed on {device}")
    return True


def kernel_first_partition(runner: CommandRunner, device: str) -> str | None:
    """Return the kernel-created node of the first partition, if any."""
    candidate = f"{device}p1"
    if devices.is_block_device(candidate):
        return candidate
    for partition in devices.list_partitions(runner, device):
        if devices.is_block_device(partition):
            return partition
    return None


def mapper_available() -> bool:
    return commands.command_exists("kpartx")


def _parse_kpartx_maps(output: str) -> list[str]:
    # Expected: "add map loop0p1 (253:0): 0 409600 linear 7:0 2048"
    return [f"/dev/mapper/{name}" for name in KPARTX_MAP_PATTERN.findall(output)]


def map_first_partition(runner: CommandRunner, device: str) -> str | None:
    """Create device-mapper nodes with kpartx and return the first partition's node.

    Returns None when kpartx is unavailable, fails, or maps nothing usable.
    """
    if not mapper_available():
        return None
    result = runner.run(["kpartx", "-av", device])
    if not result.ok:
        log.debug(f"kpartx -av {device} failed: {result.message}")
        return None
    for mapping in _parse_kpartx_maps(result.stdout):
        if mapping.endswith("p1") and devices.is_block_device(mapping):
            return mapping
    return None


def remove_mappings(runner: CommandRunner, device: str) -> bool:
    """Remove kpartx mappings for a device. Returns False if nothing was removed."""
    if not mapper_available():
        return False
    return runner.run(["kpartx", "-d", device]).ok
