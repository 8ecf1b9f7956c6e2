"""
Command-line interface for snaprotate.

Usage:
    snaprotate                      # take and rotate all configured snapshots
    snaprotate --take -s home       # only take a snapshot of "home"
    snaprotate --rotate --dry-run   # show which snapshots would be dropped
    snaprotate --list               # print the keep/drop plan per target
"""

import argparse
import sys

from loguru import logger

from snaprotate import __version__
from snaprotate.commands import CommandRunner
from snaprotate.errors import ConfigError, SnaprotateError
from snaprotate.runner import RotationJob
from snaprotate.store import SnapshotStore
from snaprotate.utils.config import DEFAULT_CONFIG_PATH, load_config
from snaprotate.utils.startup import fail_fast_startup
from snaprotate.volume import VolumeAccess


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="snaprotate",
        description="Create rotating btrfs subvolume snapshots",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  Take and rotate all snapshots:
    snaprotate

  Only rotate, printing btrfs commands instead of running them:
    snaprotate --rotate --dry-run

  Only take a snapshot of two targets:
    snaprotate --take -s home -s root

  Show which snapshots would be kept and dropped:
    snaprotate --list
""",
    )

    parser.add_argument(
        "-c",
        "--config",
        metavar="FILE",
        help=f"Path to the configuration file (default: $SNAPROTATE_CONFIG or {DEFAULT_CONFIG_PATH})",
    )
    parser.add_argument(
        "-n",
        "--dry-run",
        action="store_true",
        help="Show btrfs operations without executing",
    )
    parser.add_argument(
        "-r",
        "--rotate",
        action="store_true",
        help="Only rotate snapshots",
    )
    parser.add_argument(
        "-t",
        "--take",
        action="store_true",
        help="Only take snapshots",
    )
    parser.add_argument(
        "-s",
        "--snapshot",
        metavar="NAME",
        action="append",
        help="Only operate on specific snapshots (repeatable)",
    )
    parser.add_argument(
        "-l",
        "--list",
        action="store_true",
        help="List snapshots with their tier and whether rotation would keep them",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="More logging (-v debug, -vv trace)",
    )
    parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Suppress output except errors",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def configure_logging(verbose: int = 0, quiet: bool = False) -> None:
    """Route loguru output to stderr at the requested level."""
    if quiet:
        level = "ERROR"
    elif verbose >= 2:
        level = "TRACE"
    elif verbose == 1:
        level = "DEBUG"
    else:
        level = "INFO"
    logger.remove()
    logger.add(sys.stderr, level=level)


def _print_plans(job: RotationJob) -> int:
    exit_code = 0
    for target in job.selected_targets():
        try:
            plan = job.plan_target(target)
        except SnaprotateError as e:
            logger.error(f"{target.name}: {e}")
            exit_code = 1
            continue

        report = plan.to_dict()
        print(f"{target.name}: keep {report['keep_count']}, drop {report['delete_count']}")
        for line in target.tier_table().describe():
            print(f"  {line}")
        for entry in report["entries"]:
            tier = "-" if entry["tier"] is None else entry["tier"]
            print(f"  {entry['action']:<6} tier {tier:<2} age {entry['age']:<12} {entry['identifier']}")
    return exit_code


def main(argv: list[str] | None = None) -> int:
    """
    CLI entry point.

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose, args.quiet)

    # Neither flag means both phases
    both = not args.rotate and not args.take
    do_take = both or args.take
    do_rotate = both or args.rotate

    try:
        config = load_config(args.config)
    except ConfigError as e:
        logger.error(str(e))
        return 1

    try:
        fail_fast_startup(dry_run=args.dry_run or args.list)
    except RuntimeError:
        return 1

    runner = CommandRunner(dry_run=args.dry_run)
    volume = VolumeAccess(runner)
    job = RotationJob(
        config,
        volume=volume,
        store=SnapshotStore(runner),
        take=do_take,
        rotate=do_rotate,
        only=args.snapshot,
    )

    if args.list:
        try:
            exit_code = _print_plans(job)
        finally:
            try:
                volume.release_all()
            except SnaprotateError as e:
                logger.error(f"Cleanup failed: {e}")
                exit_code = 1
        return exit_code

    job.run()
    return 0 if job.success else 1


if __name__ == "__main__":
    sys.exit(main())
