"""
Pytest configuration and shared fixtures for forensic-mounter tests.

No test touches real devices. External tools are replaced by FakeRunner,
and block-device / mountpoint checks are answered from in-memory sets.
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable, List, Optional, Sequence, Set

import pytest

from forensic_mounter.storage.commands import CommandResult
from forensic_mounter.storage.resources import ResourceRegistry


# ==============================================================================
# Command Runner Fakes
# ==============================================================================


class FakeRunner:
    """Scripted stand-in for CommandRunner.

    Responses are matched by command prefix, most recently added first.
    Unmatched commands succeed with empty output.
    """

    def __init__(self) -> None:
        self.calls: List[tuple] = []
        self._responses: list = []

    def add(
        self,
        prefix: Sequence[str],
        returncode: int = 0,
        stdout: str = "",
        stderr: str = "",
        effect: Optional[Callable[[tuple], Optional[CommandResult]]] = None,
    ) -> "FakeRunner":
        self._responses.insert(0, (tuple(prefix), returncode, stdout, stderr, effect))
        return self

    def run(self, command: Sequence[str]) -> CommandResult:
        command = tuple(str(part) for part in command)
        self.calls.append(command)
        for prefix, returncode, stdout, stderr, effect in self._responses:
            if command[: len(prefix)] == prefix:
                if effect is not None:
                    result = effect(command)
                    if result is not None:
                        return result
                return CommandResult(command, returncode, stdout, stderr)
        return CommandResult(command, 0, "", "")

    def called(self, *prefix: str) -> List[tuple]:
        return [call for call in self.calls if call[: len(prefix)] == prefix]

    def index_of(self, *prefix: str) -> int:
        for index, call in enumerate(self.calls):
            if call[: len(prefix)] == prefix:
                return index
        raise AssertionError(f"{prefix} was never called; calls: {self.calls}")


def loop_sequence(*devices: str) -> Callable[[tuple], CommandResult]:
    """Effect handing out loop devices in order, one per losetup call."""
    pending = list(devices)

    def effect(command: tuple) -> CommandResult:
        return CommandResult(command, 0, pending.pop(0) + "\n", "")

    return effect


def ewfmount_creates_raw(command: tuple) -> None:
    """Effect emulating ewfmount exposing <mount_dir>/ewf1."""
    (Path(command[-1]) / "ewf1").write_bytes(b"\x00" * 512)
    return None


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def registry(fake_runner) -> ResourceRegistry:
    return ResourceRegistry(fake_runner)


# ==============================================================================
# Device and Mountpoint Fixtures
# ==============================================================================


@pytest.fixture
def block_devices(monkeypatch) -> Set[str]:
    """Set of paths that count as existing block devices."""
    present: Set[str] = set()
    monkeypatch.setattr(
        "forensic_mounter.storage.devices.is_block_device",
        lambda path: str(path) in present,
    )
    return present


@pytest.fixture
def mountpoints(monkeypatch) -> Set[str]:
    """Set of paths that count as active mountpoints."""
    active: Set[str] = set()
    monkeypatch.setattr(
        "forensic_mounter.storage.devices.is_mountpoint",
        lambda path: str(path) in active,
    )
    return active


@pytest.fixture
def kpartx_installed(monkeypatch):
    monkeypatch.setattr("forensic_mounter.storage.commands.command_exists", lambda name: True)


@pytest.fixture
def kpartx_missing(monkeypatch):
    monkeypatch.setattr(
        "forensic_mounter.storage.commands.command_exists", lambda name: name != "kpartx"
    )


@pytest.fixture
def mount_root(tmp_path) -> Path:
    root = tmp_path / "mnt"
    root.mkdir()
    return root


# ==============================================================================
# Image Fixtures
# ==============================================================================


@pytest.fixture
def make_image(tmp_path) -> Callable[[str], Path]:
    """Create an (empty-ish) image file with the given name."""
    evidence = tmp_path / "evidence"
    evidence.mkdir()

    def _make(name: str) -> Path:
        path = evidence / name
        path.write_bytes(b"\x00" * 1024)
        return path

    return _make


# ==============================================================================
# Tool Output Fixtures
# ==============================================================================


@pytest.fixture
def parted_msdos_output() -> str:
    return """Model: Loopback device (loopback)
Disk /dev/loop0: 1074MB
Sector size (logical/physical): 512B/512B
Partition Table: msdos
Disk Flags:

Number  Start   End     Size    Type     File system  Flags
 1      1049kB  1074MB  1073MB  primary  ext4
"""


@pytest.fixture
def parted_loop_output() -> str:
    return """Model: Loopback device (loopback)
Disk /dev/loop0: 1074MB
Sector size (logical/physical): 512B/512B
Partition Table: loop
Disk Flags:

Number  Start  End     Size    File system  Flags
 1      0.00B  1074MB  1074MB  ext4
"""


@pytest.fixture
def file_mbr_output() -> str:
    return (
        "/dev/loop0: DOS/MBR boot sector; partition 1 : ID=0x83, start-CHS (0x0,32,33), "
        "end-CHS (0x82,138,8), startsector 2048, 2095104 sectors\n"
    )


@pytest.fixture
def partitioned_device(fake_runner, parted_msdos_output, file_mbr_output) -> FakeRunner:
    """Runner whose parted and file calls report an MBR partition table."""
    fake_runner.add(["parted"], stdout=parted_msdos_output)
    fake_runner.add(["file"], stdout=file_mbr_output)
    return fake_runner


@pytest.fixture
def unpartitioned_device(fake_runner) -> FakeRunner:
    """Runner whose parted call finds no partition table."""
    fake_runner.add(
        ["parted"], returncode=1, stderr="Error: /dev/loop0: unrecognised disk label"
    )
    fake_runner.add(["file"], stdout="/dev/loop0: Linux rev 1.0 ext4 filesystem data\n")
    return fake_runner


# ==============================================================================
# Log Capture
# ==============================================================================


@pytest.fixture
def log_records():
    """Capture loguru records emitted during a test."""
    from loguru import logger

    records: list = []
    handler_id = logger.add(lambda message: records.append(message.record), level="TRACE")
    yield records
    logger.remove(handler_id)


# ==============================================================================
# Effect Fixtures
# ==============================================================================


@pytest.fixture
def loop_devices_effect() -> Callable[..., Callable[[tuple], CommandResult]]:
    return loop_sequence


@pytest.fixture
def ewfmount_effect() -> Callable[[tuple], None]:
    return ewfmount_creates_raw
