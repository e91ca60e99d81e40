import argparse
import signal
from pathlib import Path

from forensic_mounter.__version__ import __version__
from forensic_mounter.domain import ImageReference, Mode, SessionResult
from forensic_mounter.logging import DEFAULT_LOG_DIR, LoggerFactory, setup_logging
from forensic_mounter.services.session import MountSession, SessionConfig
from forensic_mounter.storage.collaborators import check_collaborators
from forensic_mounter.storage.commands import CommandRunner
from forensic_mounter.storage.exceptions import ForensicMountError, SessionInterrupted
from forensic_mounter.storage.resources import ResourceRegistry


DESCRIPTION = """\
Mount forensic images (E01, dd, raw) read-only. Depending on the mode:
  single  Mount every image on its own. If a partition table is found the
          first partition is mounted (kernel node or kpartx mapping),
          otherwise the whole loop device.
  raid    Assemble all images with mdadm into one array and mount the array.
  auto    (default) One image is single. Several images are raid when their
          file names share the same first five characters, single otherwise.

All loop devices, mappings, arrays and mounts are removed again when the
program exits, whether it succeeded, failed or was interrupted."""

EXAMPLES = """\
examples:
  Mount a single E01 image:
    %(prog)s /path/to/carimage.E01

  Mount a dd/raw image:
    %(prog)s /path/to/driverbox.dd

  Assemble a RAID array from several images:
    %(prog)s --mode raid /path/to/carimage1.E01 /path/to/carimage2.E01

  Keep everything mounted until Enter or Ctrl-C:
    %(prog)s --hold /path/to/diskimage.E01"""

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="forensic-mounter",
        description=DESCRIPTION,
        epilog=EXAMPLES,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("images", nargs="*", metavar="IMAGE", help="E01, dd or raw image files")
    parser.add_argument(
        "--mode", default="auto", help="force the mode: auto, raid or single (default: auto)"
    )
    parser.add_argument("--mount-root", type=Path, help="directory for mountpoints (default: /mnt)")
    parser.add_argument("--raid-device", help="array device for RAID assembly (default: /dev/md0)")
    parser.add_argument(
        "--hold",
        action="store_true",
        help="keep mounts until Enter is pressed or the program is interrupted",
    )
    parser.add_argument("-d", "--debug", action="store_true", help="log every external command")
    parser.add_argument("--trace", action="store_true", help="also log command output")
    parser.add_argument("--log-dir", type=Path, help=f"log file directory (default: {DEFAULT_LOG_DIR})")
    parser.add_argument("--no-log-files", action="store_true", help="log to the console only")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def _raise_interrupted(signum, _frame):
    raise SessionInterrupted(signum)


def _log_summary(log, result: SessionResult) -> None:
    for record in result.mounts:
        log.info(f"{record.device} -> {record.target} ({record.kind.value}, read-only)")
    if result.raid:
        log.info(
            f"RAID array {result.raid.array_device} assembled ({result.raid.strategy}) "
            f"from {', '.join(result.raid.members)}"
        )


def _wait_for_release(log) -> None:
    log.info("Mounts are in place. Press Enter (or Ctrl-C) to unmount and clean up.")
    try:
        input()
    except (EOFError, KeyboardInterrupt):
        pass


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(
        debug=args.debug,
        trace=args.trace,
        log_dir=args.log_dir,
        file_sinks=not args.no_log_files,
    )
    log = LoggerFactory.for_system()

    try:
        requested = Mode.parse(args.mode)
    except ForensicMountError as error:
        log.bind(source=error.step).error(f"{error.step} failed: {error}")
        return EXIT_FAILURE

    if not args.images:
        parser.print_help()
        return EXIT_OK

    try:
        capabilities = check_collaborators()
        config = SessionConfig.from_settings(
            mount_root=args.mount_root,
            raid_device=args.raid_device,
            use_mapper=capabilities.partition_mapper,
        )
    except ForensicMountError as error:
        log.bind(source=error.step).error(f"{error.step} failed: {error}")
        return EXIT_FAILURE

    images = [ImageReference.from_argument(argument) for argument in args.images]
    runner = CommandRunner()
    registry = ResourceRegistry(runner)
    previous_sigint = signal.getsignal(signal.SIGINT)
    previous_sigterm = signal.signal(signal.SIGTERM, _raise_interrupted)
    exit_code = EXIT_OK
    try:
        result = MountSession(runner, registry, config).run(images, requested)
        _log_summary(log, result)
        if args.hold:
            _wait_for_release(log)
    except ForensicMountError as error:
        log.bind(source=error.step).error(f"{error.step} failed: {error}")
        exit_code = EXIT_FAILURE
    except SessionInterrupted as interrupt:
        log.warning(f"Interrupted by signal {interrupt.signum}, cleaning up")
        exit_code = 128 + interrupt.signum
    except KeyboardInterrupt:
        log.warning("Interrupted, cleaning up")
        exit_code = EXIT_INTERRUPTED
    finally:
        # No second signal may cut teardown short.
        signal.signal(signal.SIGTERM, signal.SIG_IGN)
        signal.signal(signal.SIGINT, signal.SIG_IGN)
        try:
            registry.release_all()
        finally:
            signal.signal(signal.SIGTERM, previous_sigterm)
            signal.signal(signal.SIGINT, previous_sigint)

    if exit_code == EXIT_OK:
        log.success("All operations completed successfully")
    return exit_code


if __name__ == "__main__":
    raise SystemExit(main())
