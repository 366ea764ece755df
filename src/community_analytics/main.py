"""Entry point for the community analytics generator."""

from __future__ import annotations

import logging
import sys
from typing import Optional, Sequence

from .cli import parse_args
from .config import load_config
from .errors import ConfigurationError, ConfigurationMissingError, UpstreamError
from .github_client import GitHubClient
from .orchestrator import AnalyticsOrchestrator
from .publisher import JsonFileSink
from .stats import generate_summary

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_UNEXPECTED_ERROR = 1
EXIT_CONFIGURATION_ERROR = 2
EXIT_UPSTREAM_ERROR = 4


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def generate_analytics(argv: Optional[Sequence[str]] = None) -> int:
    """Run one analytics generation and map the outcome to a process exit code.

    A missing ``GITHUB_TOKEN`` is an expected skip and exits with ``0``.
    """
    try:
        args = parse_args(argv)
        _configure_logging(args.log_level)

        config = load_config(
            organization=args.org,
            days=args.days,
            max_repositories=args.max_repos,
            output_path=args.output,
        )
        client = GitHubClient(config=config)
        run = AnalyticsOrchestrator(config=config, client=client).run()
        output_path = JsonFileSink(config.output_path).publish(run.snapshot)
    except ConfigurationMissingError as exc:
        logger.warning("%s", exc)
        return EXIT_OK
    except ConfigurationError as exc:
        logger.error("Invalid configuration: %s", exc)
        return EXIT_CONFIGURATION_ERROR
    except UpstreamError as exc:
        logger.exception("Failed to generate analytics: %s", exc)
        return EXIT_UPSTREAM_ERROR
    except Exception:
        logger.exception("Failed to generate analytics")
        return EXIT_UNEXPECTED_ERROR

    if run.failed_repositories:
        logger.warning(
            "Some repositories could not be processed",
            extra={"repositories": run.failed_repositories},
        )

    print(f"Analytics data saved to: {output_path}")
    print(generate_summary(run.snapshot, config.lookback_days))
    return EXIT_OK


def main() -> None:
    sys.exit(generate_analytics())


if __name__ == "__main__":
    main()
