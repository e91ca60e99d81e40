"""One mount session: classify the inputs, attach each image, then mount.

The session never releases anything itself. Every resource lands in the
:class:`ResourceRegistry` handed in by the caller, and the caller guarantees
``release_all()`` runs on every exit path.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

from forensic_mounter.config import settings
from forensic_mounter.domain import AttachedImage, ImageReference, Mode, MountRecord, SessionResult
from forensic_mounter.logging import LoggerFactory, operation_context
from forensic_mounter.storage.commands import CommandRunner
from forensic_mounter.storage.exceptions import ConfigurationError
from forensic_mounter.storage.resources import ResourceRegistry

from .assembler import RaidAssembler
from .attacher import ImageAttacher
from .classifier import classify
from .resolver import MountResolver


log = LoggerFactory.for_system()


@dataclass(frozen=True)
class SessionConfig:
    mount_root: Path
    raid_device: str
    partition_scan_wait: float = 0.0
    read_only_loop: bool = True
    use_mapper: bool = True

    def __post_init__(self) -> None:
        if not str(self.raid_device).startswith("/dev/"):
            raise ConfigurationError("raid_device", self.raid_device, "must be a path under /dev/")

    @classmethod
    def from_settings(
        cls,
        *,
        mount_root: Path | None = None,
        raid_device: str | None = None,
        use_mapper: bool = True,
    ) -> SessionConfig:
        """Build a config from stored settings, with per-run overrides."""
        return cls(
            mount_root=mount_root
            or settings.get_path("mount_root", settings.DEFAULT_MOUNT_ROOT),
            raid_device=raid_device
            or settings.get_setting("raid_device", settings.DEFAULT_RAID_DEVICE),
            partition_scan_wait=settings.get_float(
                "partition_scan_wait_seconds",
                settings.DEFAULT_PARTITION_SCAN_WAIT_SECONDS,
            ),
            read_only_loop=settings.get_bool("read_only_loop", True),
            use_mapper=use_mapper,
        )


class MountSession:
    def __init__(
        self, runner: CommandRunner, registry: ResourceRegistry, config: SessionConfig
    ) -> None:
        self.runner = runner
        self.registry = registry
        self.config = config
        self.attacher = ImageAttacher(
            runner,
            registry,
            config.mount_root,
            partition_scan_wait=config.partition_scan_wait,
            read_only=config.read_only_loop,
        )
        self.resolver = MountResolver(
            runner, registry, config.mount_root, use_mapper=config.use_mapper
        )
        self.assembler = RaidAssembler(
            runner, registry, config.mount_root, config.raid_device
        )

    def run(self, images: Sequence[ImageReference], requested: Mode) -> SessionResult:
        """Attach and mount all images in order.

        The first failure propagates; nothing acquired so far is released
        here.
        """
        with operation_context("session", images=len(images), requested_mode=requested.value):
            mode = classify(images, requested)

            attached: list[AttachedImage] = []
            mounts: list[MountRecord] = []
            for image in images:
                item = self.attacher.attach(image)
                attached.append(item)
                if mode is Mode.SINGLE:
                    mounts.append(
                        self.resolver.resolve_and_mount(item.loop_device, image.base_name, mode)
                    )

            assembly = None
            if mode is Mode.RAID:
                assembly = self.assembler.assemble(attached)
                mounts.append(assembly.mount)
            else:
                log.info("Single mode: individual mount operations completed")

            return SessionResult(
                mode=mode, images=tuple(attached), mounts=tuple(mounts), raid=assembly
            )
