"""Software RAID assembly through mdadm.

Two assembly strategies exist: an explicit member list against a fixed
array device, and ``mdadm --assemble --scan`` which lets mdadm find members
by superblock. The scan may start the array under a different name, which
is reported back so the caller mounts (and later stops) the right device.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

from .commands import CommandRunner


MDSTAT_PATH = Path("/proc/mdstat")
STARTED_PATTERN = re.compile(r"(/dev/\S+) has been started")


@dataclass(frozen=True)
class AssemblyOutcome:
    ok: bool
    array_device: str | None
    message: str = ""


def assemble(
    runner: CommandRunner, array_device: str, members: Sequence[str]
) -> AssemblyOutcome:
    """Assemble array_device from an explicit member list, read-only."""
    result = runner.run(
        ["mdadm", "--assemble", "--run", "--readonly", array_device, *members]
    )
    if not result.ok:
        return AssemblyOutcome(False, None, result.message)
    return AssemblyOutcome(True, array_device, result.output.strip())


def assemble_scan(runner: CommandRunner) -> AssemblyOutcome:
    """Assemble whatever arrays mdadm finds by scanning superblocks, read-only."""
    result = runner.run(["mdadm", "--assemble", "--scan", "--readonly"])
    if not result.ok:
        return AssemblyOutcome(False, None, result.message)
    match = STARTED_PATTERN.search(result.output)
    return AssemblyOutcome(True, match.group(1) if match else None, result.output.strip())


def stop(runner: CommandRunner, array_device: str) -> bool:
    """Stop an array. Returns False if the device does not exist or stopping failed."""
    if not Path(array_device).exists():
        return False
    return runner.run(["mdadm", "--stop", array_device]).ok


def read_status(path: Path = MDSTAT_PATH) -> str | None:
    """Return the kernel RAID status text, or None if unreadable."""
    try:
        return path.read_text(encoding="utf-8").strip()
    except OSError:
        return None
