"""Expert Witness Format (E01) unwrapping through ewfmount.

ewfmount exposes the acquired media as a single raw file named ``ewf1``
inside a FUSE directory. That file is what gets attached to a loop device.
"""

from __future__ import annotations

from pathlib import Path

from .commands import CommandRunner
from .exceptions import AttachFailedError


EWF_RAW_FILENAME = "ewf1"


def unwrap(runner: CommandRunner, image_path: Path, mount_dir: Path) -> Path:
    """Mount an E01 container and return the path of its raw content.

    Args:
        runner: Command runner
        image_path: First segment of the E01 image
        mount_dir: Existing, empty directory for the FUSE mount

    Returns:
        Path to the exposed raw file (``<mount_dir>/ewf1``)

    Raises:
        AttachFailedError: If ewfmount fails or ewf1 is absent afterwards
    """
    result = runner.run(["ewfmount", str(image_path), str(mount_dir)])
    if not result.ok:
        raise AttachFailedError(str(image_path), f"ewfmount failed: {result.message}")

    raw_file = mount_dir / EWF_RAW_FILENAME
    if not raw_file.is_file():
        raise AttachFailedError(
            str(image_path), f"{raw_file} not found in {mount_dir} after ewfmount"
        )
    return raw_file
