"""Pick the best mount target for an attached image and mount it read-only.

Decision order, first match wins:

1. Partition table confirmed and the kernel created a first-partition node:
   mount that node on ``<root>/<base>_p1``.
2. Partition table confirmed and kpartx maps a first partition: mount the
   mapper node on ``<root>/<base>_p1``.
3. Otherwise mount the whole loop device on ``<root>/<base>_whole``.
"""

from __future__ import annotations

from pathlib import Path

from forensic_mounter.domain import Mode, MountKind, MountRecord, mount_target
from forensic_mounter.logging import EventLogger, LoggerFactory
from forensic_mounter.storage import mount, partitions
from forensic_mounter.storage.commands import CommandRunner
from forensic_mounter.storage.resources import ResourceRegistry


log = LoggerFactory.for_mount()


class MountResolver:
    def __init__(
        self,
        runner: CommandRunner,
        registry: ResourceRegistry,
        mount_root: Path,
        *,
        use_mapper: bool = True,
    ) -> None:
        self.runner = runner
        self.registry = registry
        self.mount_root = mount_root
        self.use_mapper = use_mapper

    def resolve_and_mount(
        self, device: str, base_name: str, mode: Mode = Mode.SINGLE
    ) -> MountRecord:
        """Mount the first partition of device, or the whole device, read-only.

        Raises:
            ValueError: If called for a mode other than SINGLE
            MountFailedError: If the mount command fails
        """
        if mode is not Mode.SINGLE:
            raise ValueError(f"Individual mounts are only made in single mode, not {mode.value}")

        if partitions.has_partition_table(self.runner, device):
            partition = partitions.kernel_first_partition(self.runner, device)
            if partition:
                log.info(f"Partition {partition} detected")
                return self._mount(partition, base_name, MountKind.PARTITION)

            partition = self._map_first_partition(device)
            if partition:
                log.info(f"kpartx mapping found: {partition}")
                return self._mount(partition, base_name, MountKind.PARTITION)

            log.info(f"No partition node available for {device}, mounting the whole device")
        else:
            log.info(f"No partition table detected on {device}")

        return self._mount(device, base_name, MountKind.WHOLE)

    def _map_first_partition(self, device: str) -> str | None:
        if not self.use_mapper:
            return None
        self.registry.add_partition_mapping(device)
        return partitions.map_first_partition(self.runner, device)

    def _mount(self, device: str, base_name: str, kind: MountKind) -> MountRecord:
        target = mount_target(self.mount_root, base_name, kind)
        log.info(f"Creating mount directory: {target}")
        mount.prepare_mountpoint(target)
        self.registry.add_mountpoint(target)
        mount.mount_readonly(self.runner, device, target)
        EventLogger.log_mounted(log, device, str(target), kind.value)
        return MountRecord(target=target, device=device, kind=kind)
