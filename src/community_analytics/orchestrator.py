"""Sequences collection and aggregation for one analytics run."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

from .config import Config
from .github_client import GitHubClient
from .issue_metrics import calculate_issue_metrics
from .joiner import RepoKey, RepositoryIndex
from .models import AnalyticsSnapshot, Issue, PullRequest, Repository, Review
from .review_metrics import calculate_review_metrics
from .stats import format_timestamp

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class RepositoryResult:
    """Outcome of collecting one repository.

    A failed repository may still have contributed the items fetched before
    the failure.
    """

    repository: str
    succeeded: bool = True
    error: Optional[str] = None
    pull_requests: int = 0
    reviewed_pull_requests: int = 0
    issues: int = 0


@dataclass(slots=True)
class CollectedData:
    """Mutable collections accumulated across repositories during one run."""

    pull_requests: Dict[RepoKey, PullRequest] = field(default_factory=dict)
    issues: Dict[RepoKey, Issue] = field(default_factory=dict)
    reviews: Dict[RepoKey, List[Review]] = field(default_factory=dict)
    index: RepositoryIndex = field(default_factory=RepositoryIndex)


@dataclass(frozen=True)
class AnalyticsRun:
    snapshot: AnalyticsSnapshot
    results: List[RepositoryResult]

    @property
    def failed_repositories(self) -> List[str]:
        return [result.repository for result in self.results if not result.succeeded]


class AnalyticsOrchestrator:
    """Fetches, joins and aggregates organization data into one snapshot."""

    def __init__(self, config: Config, client: GitHubClient) -> None:
        self._config = config
        self._client = client

    def run(self, now: Optional[datetime] = None) -> AnalyticsRun:
        """Run one full collection and aggregation pass.

        Args:
            now: Reference time for the lookback window and every aggregate.
                Defaults to the current UTC time.

        Raises:
            AnalyticsError: If the repository listing itself fails.
        """
        now = now or datetime.now(timezone.utc)
        since = now - timedelta(days=self._config.lookback_days)

        repositories = self._client.list_repositories(self._config.organization)
        selected = repositories[: self._config.max_repositories]
        logger.info(
            "Processing repositories",
            extra={
                "organization": self._config.organization,
                "found": len(repositories),
                "selected": len(selected),
                "since": format_timestamp(since),
            },
        )

        data = CollectedData()
        results = [self._collect_repository(repository, since, data) for repository in selected]

        logger.info(
            "Collected organization data",
            extra={
                "pull_requests": len(data.pull_requests),
                "issues": len(data.issues),
                "indexed_items": len(data.index),
                "reviews": sum(len(reviews) for reviews in data.reviews.values()),
                "failed_repositories": sum(1 for result in results if not result.succeeded),
            },
        )

        snapshot = AnalyticsSnapshot(
            organization=self._config.organization,
            lastUpdated=format_timestamp(now, milliseconds=True),
            reviewMetrics=calculate_review_metrics(data.pull_requests, data.reviews, data.index, now),
            issueMetrics=calculate_issue_metrics(data.issues, data.index, now),
            repositories=len(selected),
        )
        return AnalyticsRun(snapshot=snapshot, results=results)

    def _collect_repository(
        self,
        repository: Repository,
        since: datetime,
        data: CollectedData,
    ) -> RepositoryResult:
        owner, name = repository.owner, repository.name
        result = RepositoryResult(repository=repository.full_name)

        try:
            pull_requests = self._client.list_pull_requests(owner, name, since)
            keys = data.index.record(owner, name, (pr.number for pr in pull_requests))
            data.pull_requests.update(zip(keys, pull_requests))
            result.pull_requests = len(pull_requests)

            # Pull requests arrive most recently updated first
            for key in keys[: self._config.reviews_per_repository]:
                reviews = self._client.list_reviews(owner, name, key.number)
                if reviews:
                    data.reviews[key] = reviews
                    result.reviewed_pull_requests += 1

            issues = self._client.list_issues(owner, name, since)
            keys = data.index.record(owner, name, (issue.number for issue in issues))
            data.issues.update(zip(keys, issues))
            result.issues = len(issues)
        except Exception as exc:
            logger.error(
                "Error processing %s: %s",
                repository.full_name,
                exc,
                exc_info=True,
                extra={"repository": repository.full_name},
            )
            result.succeeded = False
            result.error = str(exc)
            return result

        logger.info(
            "Processed repository",
            extra={
                "repository": repository.full_name,
                "pull_requests": result.pull_requests,
                "reviewed_pull_requests": result.reviewed_pull_requests,
                "issues": result.issues,
            },
        )
        return result
