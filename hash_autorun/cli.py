"""CLI entry point for the headless autorun host."""

import argparse
import asyncio
import logging
import os
import sys
from functools import partial
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

from hash_autorun.debouncer import MountDebouncer
from hash_autorun.director import RunDirector
from hash_autorun.errors import HashError
from hash_autorun.models.config import RunnerConfig
from hash_autorun.mounts.loading import default_mount_event_source, watch_supported
from hash_autorun.sweeper import SweepReport, sweep_directory

DIST_NAME = "hash-autorun"


def default_host_id() -> str:
    """Host identifier used when neither --id nor HASH_HOST is given."""
    try:
        dist_version = version(DIST_NAME)
    except PackageNotFoundError:
        dist_version = "0"
    return f"Hash host v{dist_version}"


def log_sweep_summary(log: logging.Logger, report: SweepReport) -> None:
    """Log which files ran and which failed."""
    for path in report.ran:
        log.info("✓ %s", path.name)
    for path in report.failed:
        log.info("✗ %s", path.name)


async def run(path: Path, config: RunnerConfig, *, watch: bool = False) -> int:
    """Run a script, sweep a directory or watch a mount point.

    Watching only needs PATH not to be a file: the mount point may not exist
    until the first mount. Returns the process exit code.
    """
    log = logging.getLogger("hash_autorun")
    director = RunDirector(config=config)

    if watch and not path.is_file():
        debouncer = MountDebouncer(
            mount_point=os.path.abspath(path),
            source=default_mount_event_source(),
            on_trigger=partial(sweep_directory, path, director, wait=False),
        )
        await debouncer.run()
        return 0

    if not path.is_dir():
        try:
            run_dir = await director.execute(path)
        except (HashError, OSError) as e:
            log.error("Script evaluation error: %s", e)
            return 1
        log.info("Run recorded in %s", run_dir)
        return 0

    report = await sweep_directory(path, director)
    log_sweep_summary(log, report)
    return 1 if report.failed else 0


def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(prog=DIST_NAME, description="Headless autorun")
    parser.add_argument(
        "-i",
        "--id",
        default=os.environ.get("HASH_HOST") or default_host_id(),
        help="Host id (env: HASH_HOST)",
    )
    parser.add_argument(
        "-d",
        "--decoder",
        default=os.environ.get("HASH_DECODER"),
        help="Script decoder command (env: HASH_DECODER)",
    )
    parser.add_argument(
        "-e",
        "--encoder",
        default=os.environ.get("HASH_ENCODER"),
        help="Output encoder command (env: HASH_ENCODER)",
    )
    parser.add_argument(
        "-w",
        "--watch",
        action="store_true",
        help=(
            "Watch for removable media mounted at PATH"
            if watch_supported()
            else argparse.SUPPRESS
        ),
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument("path", type=Path, help="Script path or directory")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    config = RunnerConfig(host_id=args.id, decoder=args.decoder, encoder=args.encoder)
    try:
        exit_code = asyncio.run(run(args.path, config, watch=args.watch))
    except KeyboardInterrupt:
        exit_code = 130
    sys.exit(exit_code)


if __name__ == "__main__":  # pragma: no cover
    main()
