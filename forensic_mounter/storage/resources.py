"""Resource registry: the single record of what a session must tear down.

Every acquisition step registers its resource immediately after creating it
(or, for mountpoints and mappings, just before the call that creates it), so
a failure at any later point still leaves a complete teardown list.

Teardown runs by kind, in this order, each kind newest-first:

    RAID arrays -> mountpoints -> loop devices -> partition mappings
    -> ewfmount container directories

The containers go last because the loop devices read from the ewf1 file
they expose. Each release is best-effort: errors are logged and the next
resource is released regardless. Released entries are dropped from the
registry, so calling :meth:`ResourceRegistry.release_all` again is a no-op.

Usage:
    with ResourceRegistry(runner) as registry:
        loop_device = loop.attach(runner, image_path)
        registry.add_loop_device(loop_device)
        ...
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable

from forensic_mounter.logging import EventLogger, LoggerFactory

from . import loop, mount, partitions, raid
from .commands import CommandRunner


log = LoggerFactory.for_cleanup()


class ResourceKind(Enum):
    RAID_ARRAY = "RAID array"
    MOUNTPOINT = "mountpoint"
    LOOP_DEVICE = "loop device"
    PARTITION_MAPPING = "partition mapping"
    CONTAINER_MOUNT = "container mount"


TEARDOWN_ORDER = (
    ResourceKind.RAID_ARRAY,
    ResourceKind.MOUNTPOINT,
    ResourceKind.LOOP_DEVICE,
    ResourceKind.PARTITION_MAPPING,
    ResourceKind.CONTAINER_MOUNT,
)


@dataclass(frozen=True)
class Resource:
    kind: ResourceKind
    identifier: str
    release: Callable[[], bool]


class ResourceRegistry:
    """Ordered teardown list owned by one mount session."""

    def __init__(self, runner: CommandRunner) -> None:
        self.runner = runner
        self._resources: list[Resource] = []

    def __enter__(self) -> ResourceRegistry:
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.release_all()
        return False

    def __len__(self) -> int:
        return len(self._resources)

    @property
    def resources(self) -> list[Resource]:
        return list(self._resources)

    def identifiers(self, kind: ResourceKind) -> list[str]:
        return [res.identifier for res in self._resources if res.kind is kind]

    @property
    def loop_devices(self) -> list[str]:
        return self.identifiers(ResourceKind.LOOP_DEVICE)

    @property
    def mountpoints(self) -> list[str]:
        return self.identifiers(ResourceKind.MOUNTPOINT)

    def register(
        self, kind: ResourceKind, identifier: str, release: Callable[[], bool]
    ) -> None:
        """Append a resource to the teardown list. Duplicates are ignored."""
        if identifier in self.identifiers(kind):
            log.trace(f"{kind.value} {identifier} already registered")
            return
        self._resources.append(Resource(kind, identifier, release))
        EventLogger.log_resource_acquired(log, kind.value, identifier)

    def add_loop_device(self, loop_device: str) -> None:
        self.register(
            ResourceKind.LOOP_DEVICE,
            loop_device,
            lambda: loop.detach(self.runner, loop_device),
        )

    def add_mountpoint(self, target: Path) -> None:
        self.register(
            ResourceKind.MOUNTPOINT,
            str(target),
            lambda: mount.unmount(self.runner, target),
        )

    def add_container_mount(self, target: Path) -> None:
        self.register(
            ResourceKind.CONTAINER_MOUNT,
            str(target),
            lambda: mount.unmount(self.runner, target),
        )

    def add_partition_mapping(self, device: str) -> None:
        self.register(
            ResourceKind.PARTITION_MAPPING,
            device,
            lambda: partitions.remove_mappings(self.runner, device),
        )

    def add_raid_array(self, array_device: str) -> None:
        self.register(
            ResourceKind.RAID_ARRAY,
            array_device,
            lambda: raid.stop(self.runner, array_device),
        )

    def release_all(self) -> None:
        """Tear down every registered resource in dependency order."""
        if not self._resources:
            return
        log.info("Starting cleanup")
        pending = list(self._resources)
        self._resources.clear()
        for kind in TEARDOWN_ORDER:
            for resource in reversed([res for res in pending if res.kind is kind]):
                self._release(resource)
        log.info("Cleanup finished")

    def _release(self, resource: Resource) -> None:
        try:
            released = resource.release()
        except Exception as error:
            log.warning(
                f"Releasing {resource.kind.value} {resource.identifier} failed: {error}"
            )
            return
        EventLogger.log_resource_released(
            log, resource.kind.value, resource.identifier, released
        )
