"""Custom exceptions for image attachment and mounting.

Every fatal condition of a mount session has its own exception class so the
entry point can report which step failed and which resource was involved.
Each class carries a ``step`` label used as the diagnostic prefix.

Exception Hierarchy:
    ForensicMountError (base)
        ├── CommandError
        ├── InvalidModeError
        ├── ConfigurationError
        ├── MissingCollaboratorError
        ├── ImageError
        │   ├── ImageNotFoundError
        │   ├── UnsupportedFormatError
        │   └── AttachFailedError
        ├── MountError
        │   └── MountFailedError
        │       └── MountpointBusyError
        └── RaidError
            ├── InsufficientDevicesError
            └── AssemblyFailedError

    SessionInterrupted is raised from the SIGTERM handler. It is not a
    ForensicMountError so it never gets reported as a step failure.

Usage:
    from forensic_mounter.storage.exceptions import UnsupportedFormatError

    if image.format is None:
        raise UnsupportedFormatError(str(image.path), image.extension)
"""

from __future__ import annotations

from typing import Sequence


class ForensicMountError(Exception):
    """Base exception for all mount session failures."""

    step = "session"


class CommandError(ForensicMountError):
    """An external command exited with a non-zero status."""

    step = "command"

    def __init__(self, command: Sequence[str], returncode: int, output: str = ""):
        self.command = list(command)
        self.returncode = returncode
        self.output = output
        message = f"Command failed ({' '.join(self.command)}) with exit code {returncode}"
        if output:
            message += f": {output}"
        super().__init__(message)


class InvalidModeError(ForensicMountError):
    """Requested mode is not one of auto, single, raid."""

    step = "arguments"

    def __init__(self, value: str):
        self.value = value
        super().__init__(f"Invalid mode: {value}. Choose auto, raid or single.")


class ConfigurationError(ForensicMountError):
    """A setting or override has an unusable value."""

    step = "config"

    def __init__(self, key: str, value: object, reason: str):
        self.key = key
        self.value = value
        super().__init__(f"Invalid {key} '{value}': {reason}")


class MissingCollaboratorError(ForensicMountError):
    """One or more required external tools are not installed."""

    step = "startup"

    def __init__(self, missing: Sequence[str]):
        self.missing = list(missing)
        super().__init__(
            f"Required tools not installed: {', '.join(self.missing)}. "
            "Install them and try again."
        )


class ImageError(ForensicMountError):
    """Base exception for image attachment errors."""

    step = "attach"


class ImageNotFoundError(ImageError):
    """Image path does not reference an existing regular file."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Image file does not exist: {path}")


class UnsupportedFormatError(ImageError):
    """Image extension is not a recognized forensic image format."""

    def __init__(self, path: str, extension: str):
        self.path = path
        self.extension = extension
        super().__init__(f"Unknown extension '{extension}' for image '{path}'")


class AttachFailedError(ImageError):
    """Unwrapping or loop attachment of an image failed."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Could not attach {path}: {reason}")


class MountError(ForensicMountError):
    """Base exception for mount errors."""

    step = "mount"


class MountFailedError(MountError):
    """The mount collaborator reported an error."""

    def __init__(self, device: str, target: str, reason: str = ""):
        self.device = device
        self.target = target
        self.reason = reason
        message = f"Mounting {device} on {target} failed"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class MountpointBusyError(MountFailedError):
    """Target directory is already a mountpoint."""

    def __init__(self, target: str):
        super().__init__("-", target, "target directory is already a mountpoint")


class RaidError(ForensicMountError):
    """Base exception for RAID assembly errors."""

    step = "raid"


class InsufficientDevicesError(RaidError):
    """Fewer than two member devices were supplied."""

    def __init__(self, count: int):
        self.count = count
        super().__init__(
            f"At least two loop devices are required for RAID assembly, got {count}"
        )


class AssemblyFailedError(RaidError):
    """Both the explicit and the scan-based assembly attempts failed."""

    def __init__(self, array_device: str, members: Sequence[str], reason: str = ""):
        self.array_device = array_device
        self.members = list(members)
        self.reason = reason
        message = f"RAID assembly of {array_device} from {', '.join(self.members)} failed"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class SessionInterrupted(Exception):
    """A termination signal arrived while resources were being acquired."""

    def __init__(self, signum: int):
        self.signum = signum
        super().__init__(f"Interrupted by signal {signum}")
