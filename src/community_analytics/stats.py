"""Time, rounding and formatting helpers for analytics aggregation.

This module provides utilities for:
- Half-up rounding that matches the dashboard's historical numbers.
- Signed hour differences and UTC calendar-day keys.
- The trailing 14-day date window used by both daily series.
- Bucketing ages into the fixed triage histogram.
- Building the human-readable end-of-run summary.
"""

from __future__ import annotations

import math
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, List, Optional, Sequence

if TYPE_CHECKING:
    from .models import AnalyticsSnapshot

SECONDS_PER_HOUR = 3600.0
DAILY_SERIES_DAYS = 14

AGE_LESS_THAN_24H = "lessThan24h"
AGE_ONE_TO_SEVEN_DAYS = "oneToSevenDays"
AGE_SEVEN_TO_THIRTY_DAYS = "sevenToThirtyDays"
AGE_MORE_THAN_THIRTY_DAYS = "moreThanThirtyDays"


def round_half_up(value: float, digits: int) -> float:
    """Round ``value`` to ``digits`` decimals, with ties going towards +infinity.

    Python's :func:`round` uses banker's rounding; ages and averages published
    to the dashboard have always rounded ``x.x5`` upwards.
    """
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def hours_between(start: datetime, end: datetime) -> float:
    """Return ``end - start`` in hours. The result is negative when ``end`` precedes ``start``."""
    return (end - start).total_seconds() / SECONDS_PER_HOUR


def mean(values: Sequence[float]) -> float:
    """Arithmetic mean, ``0`` for an empty sequence."""
    if not values:
        return 0.0
    return sum(values) / len(values)


def format_date(value: datetime) -> str:
    """Return the UTC calendar date of ``value`` as ``YYYY-MM-DD``."""
    return value.astimezone(timezone.utc).strftime("%Y-%m-%d")


def format_timestamp(value: datetime, milliseconds: bool = False) -> str:
    """Format a datetime as UTC ISO-8601 with a ``Z`` suffix."""
    timespec = "milliseconds" if milliseconds else "seconds"
    return value.astimezone(timezone.utc).isoformat(timespec=timespec).replace("+00:00", "Z")


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse GitHub ISO-8601 timestamps into timezone-aware UTC datetimes."""
    if not value:
        return None

    normalized = value[:-1] + "+00:00" if value.endswith("Z") else value
    parsed = datetime.fromisoformat(normalized)
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def trailing_dates(now: datetime, days: int = DAILY_SERIES_DAYS) -> List[str]:
    """Return ``days`` date keys, oldest first, ending with the date of ``now``."""
    return [format_date(now - timedelta(days=offset)) for offset in range(days - 1, -1, -1)]


def age_bucket(age_hours: float) -> str:
    """Map an age in hours onto a half-open triage histogram bucket."""
    if age_hours < 24:
        return AGE_LESS_THAN_24H
    if age_hours < 24 * 7:
        return AGE_ONE_TO_SEVEN_DAYS
    if age_hours < 24 * 30:
        return AGE_SEVEN_TO_THIRTY_DAYS
    return AGE_MORE_THAN_THIRTY_DAYS


def generate_summary(snapshot: "AnalyticsSnapshot", lookback_days: int) -> str:
    """Generate the human-readable end-of-run summary for a snapshot.

    Args:
        snapshot: The published analytics snapshot.
        lookback_days: Lookback window the run was computed with.

    Returns:
        Formatted multi-line text summary.
    """
    review_metrics = snapshot.reviewMetrics
    issue_metrics = snapshot.issueMetrics

    lines = [
        f"Organization: {snapshot.organization}",
        f"Repositories processed: {snapshot.repositories}",
        "Analytics Summary",
        "",
        f"   Total Reviews: {review_metrics.totalReviews}",
        f"   Avg Review Time: {review_metrics.averageReviewTimeHours:.1f}h",
        f"   Pending Triage: {issue_metrics.pendingTriage}",
        f"   Open Issues: {issue_metrics.openIssues}",
        f"   Data Range: Last {lookback_days} days",
        f"   PRs Needing Review: {len(review_metrics.prsNeedingReview)}",
        f"   PRs Ready to Merge: {len(review_metrics.prsReadyToMerge)}",
    ]

    return "\n".join(lines)
