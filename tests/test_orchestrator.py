"""Tests for run orchestration across repositories."""

import json
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from unittest.mock import Mock

import pytest

# Add src directory to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from community_analytics.config import Config
from community_analytics.errors import UpstreamError
from community_analytics.github_client import GitHubClient
from community_analytics.models import Issue, Label, PullRequest, Repository, Review, ReviewState, User
from community_analytics.orchestrator import AnalyticsOrchestrator

NOW = datetime(2026, 3, 15, 12, 0, 0, tzinfo=timezone.utc)
AUTHOR = User(login="author", avatar_url="https://avatars/author", type="User")


def _config(**overrides) -> Config:
    values = {"organization": "CircuitVerse", "token": "gh-token"}
    values.update(overrides)
    return Config(**values)


def _pr(number: int, state: str = "open", merged: datetime | None = None) -> PullRequest:
    created = NOW - timedelta(hours=10 * number)
    return PullRequest(
        number=number,
        title=f"PR {number}",
        user=AUTHOR,
        created_at=created,
        updated_at=created,
        merged_at=merged,
        state=state,
        html_url=f"https://github.com/CircuitVerse/cv/pull/{number}",
    )


def _issue(number: int, labels=()) -> Issue:
    created = NOW - timedelta(days=1, hours=number)
    return Issue(
        number=number,
        title=f"Issue {number}",
        user=AUTHOR,
        created_at=created,
        updated_at=created,
        closed_at=None,
        state="open",
        html_url=f"https://github.com/CircuitVerse/cv/issues/{number}",
        labels=tuple(Label(name=name) for name in labels),
    )


def _approval(number: int) -> Review:
    return Review(
        id=number,
        user=User(login="maintainer", avatar_url="https://avatars/maintainer", type="User"),
        state=ReviewState.APPROVED,
        submitted_at=NOW - timedelta(hours=1),
        pull_request_url=f"https://api.github.com/repos/CircuitVerse/cv/pulls/{number}",
    )


def _scenario_client() -> Mock:
    client = Mock()
    client.list_repositories.return_value = [Repository(name="cv", owner="CircuitVerse")]
    client.list_pull_requests.return_value = [
        _pr(1, state="closed", merged=NOW - timedelta(hours=2)),
        _pr(2),
        _pr(3),
    ]
    client.list_reviews.side_effect = lambda owner, repo, number: [_approval(number)] if number == 2 else []
    client.list_issues.return_value = [_issue(10, labels=["bug"]), _issue(11)]
    return client


def test_run_end_to_end_scenario():
    """Verify one repository with merged, approved and unreviewed PRs and two issues."""
    client = _scenario_client()

    run = AnalyticsOrchestrator(config=_config(), client=client).run(now=NOW)

    snapshot = run.snapshot
    assert snapshot.organization == "CircuitVerse"
    assert snapshot.lastUpdated == "2026-03-15T12:00:00.000Z"
    assert snapshot.repositories == 1
    assert [pr.number for pr in snapshot.reviewMetrics.prsReadyToMerge] == [2]
    assert [pr.number for pr in snapshot.reviewMetrics.prsNeedingReview] == [3]
    assert snapshot.reviewMetrics.prsNeedingReview[0].repository == "cv"
    assert snapshot.reviewMetrics.totalReviews == 1
    assert snapshot.issueMetrics.pendingTriage == 1
    assert snapshot.issueMetrics.openIssues == 2
    assert run.results[0].succeeded is True
    assert run.results[0].reviewed_pull_requests == 1
    assert run.failed_repositories == []


def test_run_uses_lookback_window_for_fetches():
    """Verify the cutoff handed to fetchers is now minus the lookback window."""
    client = _scenario_client()

    AnalyticsOrchestrator(config=_config(lookback_days=30), client=client).run(now=NOW)

    client.list_repositories.assert_called_once_with("CircuitVerse")
    client.list_pull_requests.assert_called_once_with("CircuitVerse", "cv", NOW - timedelta(days=30))
    client.list_issues.assert_called_once_with("CircuitVerse", "cv", NOW - timedelta(days=30))


def test_run_limits_repositories_and_review_fetches():
    """Verify only the first repositories are processed and reviews are fetched for the first PRs."""
    client = _scenario_client()
    client.list_repositories.return_value = [Repository(name=f"repo-{i}", owner="CircuitVerse") for i in range(5)]

    run = AnalyticsOrchestrator(
        config=_config(max_repositories=2, reviews_per_repository=2),
        client=client,
    ).run(now=NOW)

    assert run.snapshot.repositories == 2
    assert [result.repository for result in run.results] == ["CircuitVerse/repo-0", "CircuitVerse/repo-1"]
    assert client.list_reviews.call_count == 4
    reviewed_numbers = [call.args[2] for call in client.list_reviews.call_args_list]
    assert reviewed_numbers == [1, 2, 1, 2]


def test_repository_failure_is_recorded_and_run_continues():
    """Verify a failing repository keeps already collected data and later repositories still run."""
    client = _scenario_client()
    client.list_repositories.return_value = [
        Repository(name="broken", owner="CircuitVerse"),
        Repository(name="cv", owner="CircuitVerse"),
    ]
    client.list_issues.side_effect = [
        UpstreamError("GitHub API 502", status_code=502, body="Bad Gateway"),
        [_issue(11)],
    ]

    run = AnalyticsOrchestrator(config=_config(), client=client).run(now=NOW)

    broken, healthy = run.results
    assert broken.succeeded is False
    assert "502" in broken.error
    assert broken.pull_requests == 3
    assert healthy.succeeded is True
    assert run.failed_repositories == ["CircuitVerse/broken"]
    repositories = {pr.repository for pr in run.snapshot.reviewMetrics.prsNeedingReview}
    assert repositories == {"broken", "cv"}
    assert run.snapshot.issueMetrics.totalIssues == 1


def test_repository_listing_failure_propagates():
    """Verify a failure listing repositories aborts the run."""
    client = Mock()
    client.list_repositories.side_effect = UpstreamError("GitHub API 401", status_code=401, body="Bad credentials")

    with pytest.raises(UpstreamError):
        AnalyticsOrchestrator(config=_config(), client=client).run(now=NOW)


def test_repeated_runs_produce_identical_snapshots():
    """Verify two runs over the same data and now serialize identically."""
    first = AnalyticsOrchestrator(config=_config(), client=_scenario_client()).run(now=NOW)
    second = AnalyticsOrchestrator(config=_config(), client=_scenario_client()).run(now=NOW)

    assert json.dumps(first.snapshot.to_dict()) == json.dumps(second.snapshot.to_dict())


def test_malformed_review_payload_does_not_fail_repository():
    """Verify a bad review payload for one PR still lets the repository's issues through."""
    client = GitHubClient(config=_config())
    pages = {
        "/orgs/CircuitVerse/repos": [{"name": "cv", "owner": {"login": "CircuitVerse"}}],
        "/repos/CircuitVerse/cv/pulls": [
            {
                "number": 1,
                "title": "PR 1",
                "user": {"login": "author", "type": "User"},
                "created_at": "2026-03-14T00:00:00Z",
                "updated_at": "2026-03-14T00:00:00Z",
                "state": "open",
            }
        ],
        "/repos/CircuitVerse/cv/pulls/1/reviews": [
            {"id": 9, "user": {"login": "bob", "type": "User"}, "state": "APPROVED", "submitted_at": "garbage"}
        ],
        "/repos/CircuitVerse/cv/issues": [
            {
                "number": 2,
                "title": "Issue 2",
                "user": {"login": "reporter", "type": "User"},
                "created_at": "2026-03-14T00:00:00Z",
                "updated_at": "2026-03-14T00:00:00Z",
                "state": "open",
                "labels": [],
            }
        ],
    }
    client.fetch = Mock(side_effect=lambda endpoint, params=None: pages[endpoint])

    run = AnalyticsOrchestrator(config=_config(), client=client).run(now=NOW)

    assert run.failed_repositories == []
    assert run.snapshot.issueMetrics.totalIssues == 1
    assert run.snapshot.reviewMetrics.totalReviews == 0
    assert [pr.number for pr in run.snapshot.reviewMetrics.prsNeedingReview] == [1]
