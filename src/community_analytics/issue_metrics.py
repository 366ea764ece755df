"""Issue triage metrics aggregation."""

from __future__ import annotations

import logging
from collections import Counter
from datetime import datetime, timedelta
from typing import List, Mapping

from .joiner import RepoKey, RepositoryIndex
from .models import AgeDistribution, DailyTriagePoint, Issue, IssueMetrics, IssuePendingTriage, TriageVelocity
from .stats import age_bucket, format_date, format_timestamp, hours_between, round_half_up, trailing_dates

logger = logging.getLogger(__name__)

RECOGNIZED_LABELS = frozenset(
    {
        "bug",
        "enhancement",
        "feature",
        "documentation",
        "question",
        "help wanted",
        "good first issue",
    }
)
PENDING_TRIAGE_LIMIT = 50


def is_pending_triage(issue: Issue) -> bool:
    """An open issue is pending triage unless it carries a recognized label."""
    if issue.state != "open":
        return False
    return not any(label.name.lower() in RECOGNIZED_LABELS for label in issue.labels)


def calculate_issue_metrics(
    issues: Mapping[RepoKey, Issue],
    index: RepositoryIndex,
    now: datetime,
) -> IssueMetrics:
    """Compute triage metrics relative to ``now``.

    The daily series counts ``triaged`` by update date and ``pending`` by
    creation date, so one issue can land in both on different days.
    """
    last_7_days = now - timedelta(days=7)

    open_issues = [issue for issue in issues.values() if issue.state == "open"]
    closed_issues = [issue for issue in issues.values() if issue.state == "closed"]
    recently_triaged = [
        issue for issue in issues.values() if issue.updated_at >= last_7_days and issue.labels
    ]

    buckets: Counter = Counter()
    pending_details: List[IssuePendingTriage] = []

    for key, issue in issues.items():
        if not is_pending_triage(issue):
            continue

        age_hours = hours_between(issue.created_at, now)
        buckets[age_bucket(age_hours)] += 1
        pending_details.append(
            IssuePendingTriage(
                number=issue.number,
                title=issue.title,
                author=issue.user.login if issue.user else "",
                authorAvatar=issue.user.avatar_url if issue.user else "",
                createdAt=format_timestamp(issue.created_at),
                url=issue.html_url,
                repository=index.resolve(key),
                ageHours=round_half_up(age_hours, 1),
                labels=issue.label_names,
            )
        )

    triaged_by_day = Counter(format_date(issue.updated_at) for issue in issues.values() if issue.labels)
    pending_by_day = Counter(format_date(issue.created_at) for issue in issues.values() if not issue.labels)
    daily_triage_data = [
        DailyTriagePoint(
            date=date,
            triaged=triaged_by_day[date],
            pending=pending_by_day[date],
            total=triaged_by_day[date] + pending_by_day[date],
        )
        for date in trailing_dates(now)
    ]

    logger.info(
        "Calculated issue metrics",
        extra={
            "issues_total": len(issues),
            "open_issues": len(open_issues),
            "pending_triage": len(pending_details),
        },
    )

    return IssueMetrics(
        totalIssues=len(issues),
        openIssues=len(open_issues),
        closedIssues=len(closed_issues),
        pendingTriage=len(pending_details),
        recentlyTriaged=len(recently_triaged),
        triageVelocity=TriageVelocity(daily=len(recently_triaged) / 7, weekly=len(recently_triaged)),
        ageDistribution=AgeDistribution(**buckets),
        dailyTriageData=daily_triage_data,
        issuesPendingTriage=sorted(pending_details, key=lambda item: item.ageHours)[:PENDING_TRIAGE_LIMIT],
    )
