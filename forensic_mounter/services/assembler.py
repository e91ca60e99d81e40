"""Assemble attached images into one RAID array and mount it read-only."""

from __future__ import annotations

from pathlib import Path
from typing import Sequence

from forensic_mounter.domain import AttachedImage, MountKind, MountRecord, RaidAssembly, raid_target
from forensic_mounter.logging import EventLogger, LoggerFactory
from forensic_mounter.storage import mount, raid
from forensic_mounter.storage.commands import CommandRunner
from forensic_mounter.storage.exceptions import AssemblyFailedError, InsufficientDevicesError
from forensic_mounter.storage.resources import ResourceRegistry


log = LoggerFactory.for_raid()


class RaidAssembler:
    """Builds a read-only array from loop devices.

    Assembly is first tried against ``array_device`` with the explicit
    member list. If mdadm refuses, a scan-based assembly gets one more
    chance, since superblocks on forensic copies are sometimes only found
    that way.
    """

    def __init__(
        self,
        runner: CommandRunner,
        registry: ResourceRegistry,
        mount_root: Path,
        array_device: str,
    ) -> None:
        self.runner = runner
        self.registry = registry
        self.mount_root = mount_root
        self.array_device = array_device

    def assemble(self, attached: Sequence[AttachedImage]) -> RaidAssembly:
        """Assemble and mount the array.

        Raises:
            InsufficientDevicesError: If fewer than two devices are given
            AssemblyFailedError: If both assembly strategies fail
            MountFailedError: If the assembled array cannot be mounted
        """
        if len(attached) < 2:
            raise InsufficientDevicesError(len(attached))

        members = [item.loop_device for item in attached]
        target = raid_target(self.mount_root, [item.image.base_name for item in attached])
        log.info(f"Creating RAID mount directory: {target}")
        mount.prepare_mountpoint(target)
        self.registry.add_mountpoint(target)

        array_device, strategy = self._assemble_array(members)

        log.info(f"Mounting RAID array {array_device} read-only on '{target}'")
        mount.mount_readonly(self.runner, array_device, target)
        EventLogger.log_mounted(log, array_device, str(target), MountKind.RAID.value)

        return RaidAssembly(
            members=tuple(members),
            array_device=array_device,
            mount=MountRecord(target=target, device=array_device, kind=MountKind.RAID),
            strategy=strategy,
        )

    def _assemble_array(self, members: list[str]) -> tuple[str, str]:
        # Only an array this session started is registered, so teardown never
        # stops one that was already running on the host.
        log.info(f"Assembling RAID array {self.array_device} from {', '.join(members)}")
        outcome = raid.assemble(self.runner, self.array_device, members)
        if outcome.ok:
            self.registry.add_raid_array(self.array_device)
            log.success(f"RAID array {self.array_device} assembled")
            status = raid.read_status()
            if status:
                log.debug(f"Current RAID status:\n{status}")
            return self.array_device, "explicit"

        log.warning(f"mdadm --assemble failed: {outcome.message}")
        log.info("Trying to assemble the RAID array with --scan")
        outcome = raid.assemble_scan(self.runner)
        if not outcome.ok:
            raise AssemblyFailedError(self.array_device, members, outcome.message)

        array_device = outcome.array_device or self.array_device
        self.registry.add_raid_array(array_device)
        log.success(f"RAID array {array_device} assembled by scan")
        return array_device, "scan"
