"""Command-line argument parsing for the community analytics generator."""

from __future__ import annotations

import argparse
from typing import Optional, Sequence

from .config import (
    DEFAULT_LOOKBACK_DAYS,
    DEFAULT_MAX_REPOSITORIES,
    DEFAULT_ORGANIZATION,
    DEFAULT_OUTPUT_PATH,
)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def _positive_int(value: str) -> int:
    """Parse and validate a positive integer CLI value.

    Raises:
        argparse.ArgumentTypeError: If value is not a positive integer.
    """
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError("must be an integer") from exc

    if parsed <= 0:
        raise argparse.ArgumentTypeError("must be greater than 0")

    return parsed


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments for analytics generation.

    Every option has a default so the scheduled job can run with no arguments.
    """
    parser = argparse.ArgumentParser(
        prog="community-analytics-generator",
        description=(
            "Generate review and issue-triage analytics for a GitHub "
            "organization and write them as a JSON snapshot."
        ),
    )

    parser.add_argument(
        "--org",
        default=DEFAULT_ORGANIZATION,
        help=f"GitHub organization to analyze (default: {DEFAULT_ORGANIZATION}).",
    )
    parser.add_argument(
        "--days",
        type=_positive_int,
        default=DEFAULT_LOOKBACK_DAYS,
        help=f"Lookback window in days (default: {DEFAULT_LOOKBACK_DAYS}).",
    )
    parser.add_argument(
        "--max-repos",
        type=_positive_int,
        default=DEFAULT_MAX_REPOSITORIES,
        help=f"Maximum number of repositories to process (default: {DEFAULT_MAX_REPOSITORIES}).",
    )
    parser.add_argument(
        "--output",
        default=str(DEFAULT_OUTPUT_PATH),
        help=f"Snapshot output path (default: {DEFAULT_OUTPUT_PATH}).",
    )
    parser.add_argument(
        "--log-level",
        choices=LOG_LEVELS,
        default="INFO",
        help="Logging verbosity (default: INFO).",
    )

    return parser.parse_args(argv)
