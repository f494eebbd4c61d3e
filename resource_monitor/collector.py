"""
Background collector process.

This module:
- loads settings once
- samples the configured BASE_PATH (file count, disk usage, free inodes/space)
- writes ResourceUsage rows into the database

Run it as:

    BASE_PATH=/srv/data python -m resource_monitor.collector

or, to keep sampling every POLL_INTERVAL_SECONDS:

    BASE_PATH=/srv/data python -m resource_monitor.collector --loop
"""

import argparse
import logging
import time
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError

from resource_monitor.config import Settings, get_settings
from resource_monitor.database import make_engine, make_session_factory
from resource_monitor.jobs import run_check
from resource_monitor.sampler import CheckResult, Sampler
from resource_monitor.schemas import Sample
from resource_monitor.store import SampleStore

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

logger = logging.getLogger(__name__)


def parse_args(args: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Check resource usage (file count, disk usage, available inodes and space).",
    )
    parser.add_argument(
        "--loop",
        help="Keep checking every POLL_INTERVAL_SECONDS. Default: run once.",
        default=False,
        action="store_true",
    )
    parser.add_argument(
        "--debug",
        help="Enable debug logging.",
        default=False,
        action="store_true",
    )
    return parser.parse_args(args)


def build_sampler(settings: Settings) -> Sampler:
    engine = make_engine(settings.database_url)
    store = SampleStore(make_session_factory(engine))
    return Sampler(settings, store)


def format_sample(sample: Sample) -> str:
    """Render a sample as a two-column metric/value table."""
    rows = [
        ("Base Path", sample.monitored_path),
        ("File Count", f"{sample.file_count:,}"),
        ("Disk Usage (MB)", f"{sample.disk_usage_mb:,}"),
        ("Available Inodes", f"{sample.available_inodes:,}"),
        ("Available Space (MB)", f"{sample.available_space_mb:,}"),
        ("Checked At", sample.checked_at.strftime("%Y-%m-%d %H:%M:%S")),
    ]
    width = max(len(name) for name, _ in rows)
    lines = [f"{'Metric'.ljust(width)}  Value", f"{'-' * width}  -----"]
    lines += [f"{name.ljust(width)}  {value}" for name, value in rows]
    return "\n".join(lines)


def poll_once(sampler: Sampler, attempts: int) -> CheckResult:
    """
    Run one check and print the outcome.
    """
    result = run_check(sampler, attempts)
    if result.ok:
        print("Resource usage check completed successfully!")
        print(format_sample(result.sample))
    else:
        print(f"Resource usage check failed: {result.error}")
    return result


def run_loop(sampler: Sampler, settings: Settings) -> None:
    """
    Main collector loop: check, sleep, repeat.
    """
    logger.info("Starting resource usage collector loop for %s", settings.base_path)
    logger.info("Poll interval: %s seconds", settings.poll_interval_seconds)

    while True:
        try:
            run_check(sampler, settings.check_attempts)
        except SQLAlchemyError:
            logger.exception("Could not store resource usage sample, will retry next interval")
        time.sleep(settings.poll_interval_seconds)


def main(*, cli_args: Optional[List[str]] = None, settings: Optional[Settings] = None) -> int:
    """Main entry point."""
    args = parse_args(cli_args)
    settings = settings or get_settings()

    logging.basicConfig(
        level=logging.DEBUG if args.debug else settings.log_level.upper(),
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
    )

    sampler = build_sampler(settings)

    if args.loop:
        run_loop(sampler, settings)
        return 0

    result = poll_once(sampler, settings.check_attempts)
    return 0 if result.ok else 1


if __name__ == "__main__":
    raise SystemExit(main())
