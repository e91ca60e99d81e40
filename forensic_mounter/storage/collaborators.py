"""Startup check for the external tools a session depends on."""

from __future__ import annotations

import os
from dataclasses import dataclass

from forensic_mounter.logging import LoggerFactory

from . import commands
from .exceptions import MissingCollaboratorError


log = LoggerFactory.for_system()

# tool -> (purpose, Debian/Ubuntu package)
REQUIRED_TOOLS: dict[str, tuple[str, str]] = {
    "ewfmount": ("E01 unwrapping", "ewf-tools"),
    "losetup": ("loop devices", "util-linux"),
    "mount": ("mounting", "mount"),
    "umount": ("unmounting", "mount"),
    "mdadm": ("RAID assembly", "mdadm"),
    "parted": ("partition table detection", "parted"),
    "file": ("partition signature detection", "file"),
    "lsblk": ("partition node listing", "util-linux"),
}

OPTIONAL_TOOLS: dict[str, tuple[str, str]] = {
    "kpartx": ("device-mapper partition mapping", "kpartx"),
}


@dataclass(frozen=True)
class Capabilities:
    partition_mapper: bool


def check_collaborators() -> Capabilities:
    """Verify required tools are installed and report optional ones.

    Raises:
        MissingCollaboratorError: If any required tool is missing
    """
    missing = [name for name in REQUIRED_TOOLS if not commands.command_exists(name)]
    if missing:
        packages = sorted({REQUIRED_TOOLS[name][1] for name in missing})
        log.error(f"Install with: sudo apt install {' '.join(packages)}")
        raise MissingCollaboratorError(missing)

    available = {name: commands.command_exists(name) for name in OPTIONAL_TOOLS}
    for name, found in available.items():
        if not found:
            purpose, package = OPTIONAL_TOOLS[name]
            log.warning(
                f"{name} not found ({purpose}, sudo apt install {package}); "
                "partitions the kernel does not expose will be mounted as whole devices"
            )
    mapper = available["kpartx"]

    if hasattr(os, "geteuid") and os.geteuid() != 0:
        log.warning("Not running as root; loop, mount and mdadm calls will likely fail")

    return Capabilities(partition_mapper=mapper)
