"""Turn an input image into a loop device holding its raw bytes."""

from __future__ import annotations

import time
from pathlib import Path

from forensic_mounter.domain import AttachedImage, ImageFormat, ImageReference, MountKind, mount_target
from forensic_mounter.logging import LoggerFactory
from forensic_mounter.storage import ewf, loop, mount
from forensic_mounter.storage.commands import CommandRunner
from forensic_mounter.storage.exceptions import (
    AttachFailedError,
    ImageNotFoundError,
    MountFailedError,
    UnsupportedFormatError,
)
from forensic_mounter.storage.resources import ResourceRegistry


log = LoggerFactory.for_attach()


class ImageAttacher:
    """Attaches images to loop devices and registers everything it creates.

    Args:
        runner: Command runner for ewfmount and losetup
        registry: Teardown list for the session
        mount_root: Directory under which ewfmount directories are created
        partition_scan_wait: Seconds to let the kernel create partition nodes
        read_only: Attach loop devices read-only
    """

    def __init__(
        self,
        runner: CommandRunner,
        registry: ResourceRegistry,
        mount_root: Path,
        *,
        partition_scan_wait: float = 0.0,
        read_only: bool = True,
    ) -> None:
        self.runner = runner
        self.registry = registry
        self.mount_root = mount_root
        self.partition_scan_wait = partition_scan_wait
        self.read_only = read_only

    def attach(self, image: ImageReference) -> AttachedImage:
        """Expose an image's raw content as a registered loop device.

        Raises:
            ImageNotFoundError: If the path is not an existing regular file
            UnsupportedFormatError: If the extension is not e01, dd or raw
            AttachFailedError: If unwrapping or loop attachment fails
        """
        log.info(f"Processing image: {image.path}")
        if not image.path.is_file():
            raise ImageNotFoundError(str(image.path))

        image_format = image.format
        if image_format is None:
            raise UnsupportedFormatError(str(image.path), image.extension)

        container_mount = None
        if image_format is ImageFormat.EWF:
            container_mount, backing_file = self._unwrap(image)
        else:
            log.info(f"dd/raw image detected: '{image.path}'")
            backing_file = image.path

        loop_device = loop.attach(self.runner, backing_file, read_only=self.read_only)
        self.registry.add_loop_device(loop_device)
        log.info(f"Attached '{backing_file}' to loop device {loop_device}")

        if self.partition_scan_wait > 0:
            time.sleep(self.partition_scan_wait)

        return AttachedImage(image=image, loop_device=loop_device, container_mount=container_mount)

    def _unwrap(self, image: ImageReference) -> tuple[Path, Path]:
        mount_dir = mount_target(self.mount_root, image.base_name, MountKind.CONTAINER)
        log.info(f"E01 detected. Creating mount directory: {mount_dir}")
        try:
            mount.prepare_mountpoint(mount_dir)
        except MountFailedError as error:
            raise AttachFailedError(str(image.path), str(error)) from error
        self.registry.add_container_mount(mount_dir)

        log.info(f"Mounting E01 image '{image.path}' on '{mount_dir}'")
        raw_file = ewf.unwrap(self.runner, image.path, mount_dir)
        return mount_dir, raw_file
