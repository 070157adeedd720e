#!/usr/bin/env python3
"""Command-line interface for the synchronization jobs.

Usage:
    payouts-sync run invoices
    payouts-sync run sellers --delta 2024-01-01T00:00:00
    payouts-sync run credit-notes --ids 2001,2002 --format text
"""

import argparse
import logging
import sys
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from ..config import Settings
from .batch import BatchJobStatus
from .definitions import JOB_NAMES, build_jobs
from .report import JobReportGenerator

logger = logging.getLogger(__name__)


def parse_datetime(dt_string: str) -> datetime:
    """Parse a datetime string; naive values are taken as UTC.

    Raises:
        ValueError: If the string cannot be parsed.
    """
    formats = [
        "%Y-%m-%dT%H:%M:%S%z",
        "%Y-%m-%dT%H:%M:%S",
        "%Y-%m-%dT%H:%M:%S.%f",
        "%Y-%m-%d %H:%M:%S",
        "%Y-%m-%d",
    ]

    for fmt in formats:
        try:
            parsed = datetime.strptime(dt_string, fmt)
        except ValueError:
            continue
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed

    raise ValueError(
        f"Unable to parse datetime: {dt_string}. "
        f"Expected formats: YYYY-MM-DD or YYYY-MM-DDTHH:MM:SS"
    )


def parse_ids(raw: str) -> List[str]:
    return [item.strip() for item in raw.split(",") if item.strip()]


def default_delta(settings: Settings) -> datetime:
    return datetime.now(timezone.utc) - timedelta(minutes=settings.default_lookback_minutes)


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="payouts-sync",
        description="Synchronize marketplace sellers and accounting documents with the payouts provider.",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    run_parser = subparsers.add_parser("run", help="Run a job once")
    run_parser.add_argument("job", choices=JOB_NAMES, help="Job to run")
    run_parser.add_argument(
        "--delta", "-d",
        help="Only process items changed since this date/time (default: the configured lookback)",
    )
    run_parser.add_argument(
        "--ids",
        help="Comma separated document ids (invoices and credit-notes only)",
    )
    run_parser.add_argument(
        "--output", "-o",
        help="Output file path (default: stdout)",
    )
    run_parser.add_argument(
        "--format", "-f",
        choices=["json", "text", "detailed_text"],
        default="json",
        help="Output format (default: json)",
    )
    run_parser.add_argument(
        "--summary-only",
        action="store_true",
        help="Only include summary statistics, not per-item results",
    )

    return parser


def main(args: Optional[list] = None, settings: Optional[Settings] = None) -> int:
    """Main entry point for the CLI.

    Args:
        args: Optional list of command-line arguments (for testing).
        settings: Optional settings; read from the environment by default.

    Returns:
        Exit code: 0 success, 1 completed with failures or bad input, 2 failed.
    """
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )
    parser = create_parser()
    parsed_args = parser.parse_args(args)

    if not parsed_args.command:
        parser.print_help()
        return 1

    try:
        settings = settings or Settings.from_env()
        jobs = build_jobs(settings)
        delta = parse_datetime(parsed_args.delta) if parsed_args.delta else default_delta(settings)
    except ValueError as e:
        logger.error(str(e))
        return 1

    definition = jobs[parsed_args.job]
    if parsed_args.ids:
        if not definition.supports_ids:
            logger.error(f"Job {parsed_args.job} does not support --ids")
            return 1
        result = definition.run_by_ids(parse_ids(parsed_args.ids))
    else:
        result = definition.run(delta)

    output = JobReportGenerator(result).render(
        parsed_args.format, include_details=not parsed_args.summary_only
    )
    if parsed_args.output:
        with open(parsed_args.output, "w") as f:
            f.write(output)
        logger.info(f"Report written to {parsed_args.output}")
    else:
        print(output)

    if result.status == BatchJobStatus.FAILED:
        logger.error(f"Job {parsed_args.job} failed: {result.error_message}")
        return 2
    if result.failed_items:
        logger.warning(f"Job {parsed_args.job} completed with {result.failed_items} failed items")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
