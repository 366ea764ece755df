"""Custom exception types for the community analytics generator."""

from __future__ import annotations

from typing import Optional


class AnalyticsError(Exception):
    """Base exception for all recoverable analytics generator errors."""


class ConfigurationError(AnalyticsError):
    """Raised when runtime configuration values are invalid."""


class ConfigurationMissingError(ConfigurationError):
    """Raised when the GitHub credential is not configured.

    This is an expected skip condition for scheduled runs, not a failure.
    """


class UpstreamError(AnalyticsError):
    """Raised when a GitHub API request fails or returns a non-success status."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: str = "") -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class DataValidationError(AnalyticsError):
    """Raised when API payloads do not have the expected shape."""
