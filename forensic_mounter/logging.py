from __future__ import annotations

import os
import sys
import time
import uuid
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Iterable

if TYPE_CHECKING:
    from loguru import Logger

from loguru import logger

DEFAULT_LOG_DIR = Path(
    os.environ.get(
        "FORENSIC_MOUNTER_LOG_DIR",
        Path.home() / ".local" / "state" / "forensic-mounter" / "logs",
    )
)


def _command_output_filter(trace: bool):
    """Build a sink filter that drops captured command output unless tracing."""

    def _filter(record) -> bool:
        if "command-output" in record["extra"].get("tags", []):
            return trace
        return True

    return _filter


def setup_logging(
    *,
    debug: bool = False,
    trace: bool = False,
    log_dir: Path | None = None,
    file_sinks: bool = True,
) -> Logger:
    """
    Setup console and file logging for a mount session.

    Logging Tiers:
    - CRITICAL/ERROR: Fatal failures (missing tools, failed attach/mount/assembly)
    - SUCCESS/INFO: Resource acquisition, mode decisions, cleanup steps
    - DEBUG: Every external command with its exit code
    - --trace: Adds captured stdout/stderr of external commands (tag "command-output")

    Log Files:
    - operations.log: INFO+ events (14 day retention)
    - debug.log: DEBUG+ events when --debug or --trace is enabled (3 day retention)
    - structured.jsonl: Structured JSON logs for case notes (14 day retention)

    Args:
        debug: Enable DEBUG level logging
        trace: Enable TRACE level logging (includes command output)
        log_dir: Custom log directory (defaults to ~/.local/state/forensic-mounter/logs)
        file_sinks: Set to False to log to the console only
    """
    logger.remove()
    logger.configure(extra={"tags": [], "source": "system"})

    if trace:
        console_level = "TRACE"
    elif debug:
        console_level = "DEBUG"
    else:
        console_level = "INFO"

    # SINK 1: Console (stderr)
    logger.add(
        sys.stderr,
        level=console_level,
        backtrace=False,
        diagnose=False,
        filter=_command_output_filter(trace),
        colorize=True,
        format=(
            "<green>{time:HH:mm:ss}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{extra[source]: <8}</cyan> | "
            "{message}"
        ),
    )

    if not file_sinks:
        return logger

    log_dir = log_dir or DEFAULT_LOG_DIR
    log_dir.mkdir(parents=True, exist_ok=True)

    # SINK 2: Operations Log (INFO+)
    logger.add(
        log_dir / "operations.log",
        level="INFO",
        rotation="5 MB",
        retention="14 days",
        compression="zip",
        backtrace=False,
        diagnose=False,
        format=(
            "{time:YYYY-MM-DD HH:mm:ss.SSS} | "
            "{level: <8} | "
            "{extra[source]: <8} | "
            "{message}"
        ),
    )

    # SINK 3: Debug Log (DEBUG+ when debug or trace)
    if debug or trace:
        logger.add(
            log_dir / "debug.log",
            level="TRACE" if trace else "DEBUG",
            filter=_command_output_filter(trace),
            rotation="10 MB",
            retention="3 days",
            compression="zip",
            backtrace=True,
            diagnose=True,
            format=(
                "{time:YYYY-MM-DD HH:mm:ss.SSS} | "
                "{level: <8} | "
                "{extra[source]: <8} | "
                "{extra[tags]} | "
                "{message}"
            ),
        )

    # SINK 4: Structured JSON Log (INFO+)
    logger.add(
        log_dir / "structured.jsonl",
        level="INFO",
        rotation="10 MB",
        retention="14 days",
        compression="zip",
        serialize=True,
        format="{message}",
    )

    return logger


def get_logger(
    *,
    tags: Iterable[str] | None = None,
    source: str | None = None,
) -> Logger:
    """
    Get a logger with bound context.

    Args:
        tags: Tags for filtering (e.g., ["loop", "attach"])
        source: Pipeline step emitting the record (e.g., "attach", "raid")

    Returns:
        Logger with bound context
    """
    extras: dict[str, object] = {}
    if tags is not None:
        extras["tags"] = list(tags)
    if source is not None:
        extras["source"] = source
    return logger.bind(**extras)


@contextmanager
def operation_context(operation: str, **details):
    """
    Context manager for tracking an operation with automatic timing.

    Logs operation start, completion, and failure with duration tracking.
    Exceptions are logged and re-raised.

    Example:
        with operation_context("session", images=2, mode="auto") as log:
            log.debug("Classifying images")
    """
    run_id = f"{operation}-{uuid.uuid4().hex[:8]}"

    with logger.contextualize(run_id=run_id, operation=operation):
        start_time = time.time()
        log = logger.bind(source=operation, tags=[operation])

        log.info(f"{operation.capitalize()} started", **details)

        try:
            yield log
            duration = time.time() - start_time
            log.success(
                f"{operation.capitalize()} completed", duration_seconds=round(duration, 2)
            )
        except Exception as e:
            duration = time.time() - start_time
            log.error(
                f"{operation.capitalize()} failed",
                error=str(e),
                error_type=type(e).__name__,
                duration_seconds=round(duration, 2),
            )
            raise


class LoggerFactory:
    """
    Factory for creating step-specific loggers.

    The bound ``source`` labels every diagnostic with the pipeline step
    that produced it.
    """

    @staticmethod
    def for_classify() -> Logger:
        return logger.bind(source="classify", tags=["classify"])

    @staticmethod
    def for_attach() -> Logger:
        """Logger for image unwrapping and loop attachment."""
        return logger.bind(source="attach", tags=["attach", "loop"])

    @staticmethod
    def for_mount() -> Logger:
        """Logger for partition probing, mapping and mounting."""
        return logger.bind(source="mount", tags=["mount", "partition"])

    @staticmethod
    def for_raid() -> Logger:
        """Logger for RAID assembly."""
        return logger.bind(source="raid", tags=["raid", "mdadm"])

    @staticmethod
    def for_cleanup() -> Logger:
        """Logger for resource teardown."""
        return logger.bind(source="cleanup", tags=["cleanup"])

    @staticmethod
    def for_command() -> Logger:
        """Logger for external command execution."""
        return logger.bind(source="command", tags=["command"])

    @staticmethod
    def for_system() -> Logger:
        """Logger for startup, argument handling and shutdown."""
        return logger.bind(source="system", tags=["system"])


class EventLogger:
    """
    Structured event logger for resource lifecycle events.

    Every acquisition and release goes through here so the JSON log can be
    used to reconstruct exactly what a run touched on the examiner's host.
    """

    @staticmethod
    def log_resource_acquired(log: Logger, kind: str, identifier: str, **extra) -> None:
        log.info(
            f"Registered {kind} {identifier}",
            event_type="resource_acquired",
            resource_kind=kind,
            resource=identifier,
            **extra,
        )

    @staticmethod
    def log_resource_released(
        log: Logger, kind: str, identifier: str, released: bool, **extra
    ) -> None:
        if released:
            message = f"Released {kind} {identifier}"
        else:
            message = f"Nothing to release for {kind} {identifier}"
        log.info(
            message,
            event_type="resource_released",
            resource_kind=kind,
            resource=identifier,
            released=released,
            **extra,
        )

    @staticmethod
    def log_mounted(log: Logger, device: str, target: str, kind: str, **extra) -> None:
        log.success(
            f"Mounted {device} read-only on {target}",
            event_type="mounted",
            device=device,
            mountpoint=target,
            mount_kind=kind,
            **extra,
        )
