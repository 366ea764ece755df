"""Configuration parsing and validation for the community analytics generator."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Union

from .errors import ConfigurationError, ConfigurationMissingError

DEFAULT_ORGANIZATION = "CircuitVerse"
DEFAULT_LOOKBACK_DAYS = 180
DEFAULT_MAX_REPOSITORIES = 15
DEFAULT_REVIEWS_PER_REPOSITORY = 30
DEFAULT_OUTPUT_PATH = Path("public") / "analytics" / "analytics.json"
DEFAULT_API_BASE_URL = "https://api.github.com"


@dataclass(frozen=True)
class Config:
    """Validated runtime settings, held unchanged for the whole run."""

    organization: str
    token: str
    lookback_days: int = DEFAULT_LOOKBACK_DAYS
    max_repositories: int = DEFAULT_MAX_REPOSITORIES
    reviews_per_repository: int = DEFAULT_REVIEWS_PER_REPOSITORY
    output_path: Path = DEFAULT_OUTPUT_PATH
    api_base_url: str = DEFAULT_API_BASE_URL


def _require_positive(name: str, value: int) -> None:
    if value <= 0:
        raise ConfigurationError(
            f"Invalid value for '{name}': expected an integer greater than 0."
        )


def load_config(
    organization: str = DEFAULT_ORGANIZATION,
    days: int = DEFAULT_LOOKBACK_DAYS,
    max_repositories: int = DEFAULT_MAX_REPOSITORIES,
    output_path: Union[str, Path] = DEFAULT_OUTPUT_PATH,
) -> Config:
    """Build and validate application configuration.

    Args:
        organization: GitHub organization login.
        days: Lookback window in days.
        max_repositories: Upper bound on repositories processed per run.
        output_path: Where the snapshot JSON is written.

    Returns:
        A validated ``Config`` instance.

    Raises:
        ConfigurationError: If a numeric option is not greater than ``0`` or
            the organization is blank.
        ConfigurationMissingError: If ``GITHUB_TOKEN`` is not configured.
    """
    if not organization or not organization.strip():
        raise ConfigurationError("Invalid value for 'organization': must not be empty.")
    _require_positive("days", days)
    _require_positive("max_repositories", max_repositories)

    token: str = os.getenv("GITHUB_TOKEN", "").strip()
    if not token:
        raise ConfigurationMissingError(
            "GITHUB_TOKEN is not set. Skipping analytics generation; "
            "analytics are generated by the scheduled workflow."
        )

    return Config(
        organization=organization.strip(),
        token=token,
        lookback_days=days,
        max_repositories=max_repositories,
        output_path=Path(output_path),
    )
