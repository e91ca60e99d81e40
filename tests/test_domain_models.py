"""Tests for domain models: image references, modes and mountpoint naming."""
from __future__ import annotations

from pathlib import Path

import pytest

from forensic_mounter.domain import (
    ImageFormat,
    ImageReference,
    Mode,
    MountKind,
    mount_target,
    raid_target,
)
from forensic_mounter.storage.exceptions import InvalidModeError


# ==============================================================================
# Mode Tests
# ==============================================================================


class TestMode:
    @pytest.mark.parametrize("value", ["auto", "single", "raid"])
    def test_parse_valid(self, value):
        assert Mode.parse(value).value == value

    @pytest.mark.parametrize("value", ["", "RAID", "jbod", "singles"])
    def test_parse_invalid_raises(self, value):
        with pytest.raises(InvalidModeError) as excinfo:
            Mode.parse(value)
        assert excinfo.value.value == value


# ==============================================================================
# ImageReference Tests
# ==============================================================================


class TestImageReference:
    def test_base_name_strips_last_extension(self):
        image = ImageReference.from_argument("/cases/42/disk.E01")
        assert image.base_name == "disk"
        assert image.filename == "disk.E01"

    def test_base_name_keeps_inner_dots(self):
        image = ImageReference(Path("suspect.laptop.dd"))
        assert image.base_name == "suspect.laptop"

    def test_base_name_without_extension(self):
        assert ImageReference(Path("/x/rawdump")).base_name == "rawdump"

    @pytest.mark.parametrize(
        "name,extension",
        [("disk.E01", "e01"), ("disk.e01", "e01"), ("disk.DD", "dd"), ("disk.Raw", "raw")],
    )
    def test_extension_is_lowercased(self, name, extension):
        assert ImageReference(Path(name)).extension == extension

    @pytest.mark.parametrize(
        "name,image_format",
        [
            ("disk.E01", ImageFormat.EWF),
            ("disk.dd", ImageFormat.RAW),
            ("disk.RAW", ImageFormat.RAW),
        ],
    )
    def test_recognized_formats(self, name, image_format):
        assert ImageReference(Path(name)).format is image_format

    @pytest.mark.parametrize("name", ["disk.E02", "disk.img", "disk.vmdk", "disk"])
    def test_unrecognized_formats(self, name):
        assert ImageReference(Path(name)).format is None

    def test_is_immutable(self):
        image = ImageReference(Path("disk.dd"))
        with pytest.raises(AttributeError):
            image.path = Path("other.dd")


# ==============================================================================
# Mountpoint Naming Tests
# ==============================================================================


class TestMountpointNaming:
    root = Path("/mnt")

    def test_container_mountpoint(self):
        assert mount_target(self.root, "disk", MountKind.CONTAINER) == Path("/mnt/disk_mount")

    def test_partition_mountpoint(self):
        assert mount_target(self.root, "disk", MountKind.PARTITION) == Path("/mnt/disk_p1")

    def test_whole_device_mountpoint(self):
        assert mount_target(self.root, "disk", MountKind.WHOLE) == Path("/mnt/disk_whole")

    def test_raid_kind_needs_raid_target(self):
        with pytest.raises(ValueError):
            mount_target(self.root, "disk", MountKind.RAID)

    def test_raid_target_joins_all_base_names(self):
        assert raid_target(self.root, ["a", "b", "c"]) == Path("/mnt/raid_a_b_c")
