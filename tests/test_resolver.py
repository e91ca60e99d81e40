"""Tests for services/resolver.py - choosing what to mount for one image."""

import pytest

from forensic_mounter.domain import Mode, MountKind
from forensic_mounter.services.resolver import MountResolver
from forensic_mounter.storage.exceptions import MountFailedError
from forensic_mounter.storage.resources import ResourceKind

READ_ONLY = "ro,nosuid,nodev,noexec"


@pytest.fixture
def resolver(fake_runner, registry, mount_root, mountpoints, block_devices):
    return MountResolver(fake_runner, registry, mount_root)


class TestWholeDevice:
    def test_no_partition_table(self, resolver, unpartitioned_device, mount_root, registry):
        record = resolver.resolve_and_mount("/dev/loop0", "carimage")

        target = mount_root / "carimage_whole"
        assert record.kind is MountKind.WHOLE
        assert record.target == target
        assert record.device == "/dev/loop0"
        assert target.is_dir()
        assert unpartitioned_device.called("mount") == [
            ("mount", "-o", READ_ONLY, "/dev/loop0", str(target))
        ]
        assert registry.mountpoints == [str(target)]

    def test_table_without_partition_node(self, resolver, partitioned_device, kpartx_missing, mount_root):
        record = resolver.resolve_and_mount("/dev/loop0", "disk")

        assert record.kind is MountKind.WHOLE
        assert record.target == mount_root / "disk_whole"

    def test_bare_filesystem_reported_as_loop_label(
        self, resolver, fake_runner, parted_loop_output, file_mbr_output, mount_root
    ):
        fake_runner.add(["parted"], stdout=parted_loop_output)
        fake_runner.add(["file"], stdout=file_mbr_output)

        record = resolver.resolve_and_mount("/dev/loop0", "usbstick")

        assert record.kind is MountKind.WHOLE


class TestFirstPartition:
    def test_kernel_partition_node(self, resolver, partitioned_device, block_devices, mount_root):
        block_devices.add("/dev/loop0p1")

        record = resolver.resolve_and_mount("/dev/loop0", "disk")

        target = mount_root / "disk_p1"
        assert record.kind is MountKind.PARTITION
        assert record.device == "/dev/loop0p1"
        assert partitioned_device.called("mount") == [
            ("mount", "-o", READ_ONLY, "/dev/loop0p1", str(target))
        ]
        assert partitioned_device.called("kpartx") == []

    def test_kpartx_mapping(
        self, resolver, partitioned_device, block_devices, kpartx_installed, registry, mount_root
    ):
        block_devices.add("/dev/mapper/loop0p1")
        partitioned_device.add(
            ["kpartx", "-av"], stdout="add map loop0p1 (253:0): 0 2095104 linear 7:0 2048\n"
        )

        record = resolver.resolve_and_mount("/dev/loop0", "disk")

        assert record.kind is MountKind.PARTITION
        assert record.device == "/dev/mapper/loop0p1"
        assert partitioned_device.called("mount") == [
            ("mount", "-o", READ_ONLY, "/dev/mapper/loop0p1", str(mount_root / "disk_p1"))
        ]
        assert registry.identifiers(ResourceKind.PARTITION_MAPPING) == ["/dev/loop0"]

    def test_mapper_disabled(self, fake_runner, registry, mount_root, partitioned_device, mountpoints, block_devices):
        resolver = MountResolver(fake_runner, registry, mount_root, use_mapper=False)

        record = resolver.resolve_and_mount("/dev/loop0", "disk")

        assert record.kind is MountKind.WHOLE
        assert fake_runner.called("kpartx") == []
        assert registry.identifiers(ResourceKind.PARTITION_MAPPING) == []


class TestFailures:
    def test_mount_failure_keeps_mountpoint_registered(
        self, resolver, unpartitioned_device, registry, mount_root
    ):
        unpartitioned_device.add(["mount"], returncode=32, stderr="mount: unknown filesystem type")

        with pytest.raises(MountFailedError, match="unknown filesystem type"):
            resolver.resolve_and_mount("/dev/loop0", "disk")
        assert registry.mountpoints == [str(mount_root / "disk_whole")]

    def test_busy_target(self, resolver, unpartitioned_device, mountpoints, mount_root):
        mountpoints.add(str(mount_root / "disk_whole"))

        with pytest.raises(MountFailedError, match="already a mountpoint"):
            resolver.resolve_and_mount("/dev/loop0", "disk")
        assert unpartitioned_device.called("mount") == []

    def test_raid_mode_rejected(self, resolver, fake_runner):
        with pytest.raises(ValueError):
            resolver.resolve_and_mount("/dev/loop0", "disk", Mode.RAID)
        assert fake_runner.calls == []
