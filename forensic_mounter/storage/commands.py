"""External command execution with typed results.

All collaborators are invoked through :class:`CommandRunner`, which never
raises on a non-zero exit status. Callers inspect :class:`CommandResult`
and translate failures into the domain exceptions, so raw tool output is
only ever parsed inside the adapter modules.
"""

from __future__ import annotations

import shutil
import subprocess
from dataclasses import dataclass
from typing import Sequence

from forensic_mounter.logging import LoggerFactory

from .exceptions import CommandError


log = LoggerFactory.for_command()
output_log = log.bind(tags=["command", "command-output"])

# Exit status used when the executable itself could not be started.
COMMAND_NOT_FOUND = 127


@dataclass(frozen=True)
class CommandResult:
    command: tuple[str, ...]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def output(self) -> str:
        """stdout and stderr combined, for tools that report on either stream."""
        return "\n".join(part for part in (self.stdout, self.stderr) if part)

    @property
    def message(self) -> str:
        """Short failure description for diagnostics."""
        stderr = self.stderr.strip()
        stdout = self.stdout.strip()
        return stderr or stdout or f"exit code {self.returncode}"

    def check(self) -> CommandResult:
        """Return self, or raise CommandError if the command failed."""
        if not self.ok:
            raise CommandError(self.command, self.returncode, self.message)
        return self


class CommandRunner:
    """Runs external commands synchronously and captures their output."""

    def run(self, command: Sequence[str]) -> CommandResult:
        command = tuple(str(part) for part in command)
        log.debug(f"Running command: {' '.join(command)}")
        try:
            completed = subprocess.run(
                list(command), text=True, capture_output=True, check=False
            )
        except (FileNotFoundError, PermissionError) as error:
            log.debug(f"Could not start {command[0]}: {error}")
            return CommandResult(command, COMMAND_NOT_FOUND, "", str(error))

        result = CommandResult(
            command,
            completed.returncode,
            completed.stdout or "",
            completed.stderr or "",
        )
        if result.stdout.strip():
            output_log.debug(f"stdout: {result.stdout.strip()}")
        if result.stderr.strip():
            output_log.debug(f"stderr: {result.stderr.strip()}")
        log.debug(f"Command completed with return code {result.returncode}")
        return result


def command_exists(name: str) -> bool:
    """Check if an executable is available on PATH."""
    return shutil.which(name) is not None
