"""Review metrics aggregation for pull requests and their reviews.

This module turns the joined pull request and review collections of one run
into the dashboard's review metrics:
- review counts over the whole window and the trailing 7 and 30 days
- review latency (PR creation to review submission) overall and per day
- the top reviewer leaderboard and the review state distribution
- the "needing review" and "ready to merge" worklists
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Dict, List, Mapping, Sequence

from .joiner import RepoKey, RepositoryIndex
from .models import (
    DailyReviewPoint,
    PullRequest,
    PullRequestNeedingReview,
    PullRequestReadyToMerge,
    Review,
    ReviewMetrics,
    ReviewState,
    ReviewStateDistribution,
    ReviewVelocity,
    TopReviewer,
)
from .stats import format_date, format_timestamp, hours_between, mean, round_half_up, trailing_dates

logger = logging.getLogger(__name__)

TOP_REVIEWERS_LIMIT = 10
WORKLIST_LIMIT = 20


class _ReviewerTally:
    __slots__ = ("count", "avatar_url")

    def __init__(self, avatar_url: str) -> None:
        self.count = 0
        self.avatar_url = avatar_url


def needs_review(reviews: Sequence[Review]) -> bool:
    """A pull request needs review when it has no reviews or only comments."""
    return all(review.state == ReviewState.COMMENTED for review in reviews)


def is_ready_to_merge(reviews: Sequence[Review]) -> bool:
    """A pull request is ready when it has an approval and no change requests."""
    states = [review.state for review in reviews]
    return ReviewState.APPROVED in states and ReviewState.CHANGES_REQUESTED not in states


def calculate_review_metrics(
    pull_requests: Mapping[RepoKey, PullRequest],
    reviews: Mapping[RepoKey, Sequence[Review]],
    index: RepositoryIndex,
    now: datetime,
) -> ReviewMetrics:
    """Compute review metrics relative to ``now``.

    Business logic:
    - Reviews whose key does not resolve to a fetched pull request are ignored.
    - Latency is ``submitted_at - pr.created_at`` in hours and is kept signed.
    - Dismissed reviews count towards totals but not towards any state bucket.
    - Only open, unmerged, non-draft pull requests enter the worklists.
    - ``reviewStateDistribution.pending`` is the number of pull requests
      needing review, unlike the other buckets which count review events.
    """
    last_7_days = now - timedelta(days=7)
    last_30_days = now - timedelta(days=30)

    total_reviews = 0
    reviews_last_7_days = 0
    reviews_last_30_days = 0
    reviewer_tallies: Dict[str, _ReviewerTally] = {}
    review_times: List[float] = []
    daily_times: Dict[str, List[float]] = {}
    approved = changes_requested = commented = 0
    unresolved_keys = 0

    for key, pr_reviews in reviews.items():
        pr = pull_requests.get(key)
        if pr is None or key not in index:
            unresolved_keys += 1
            continue

        for review in pr_reviews:
            total_reviews += 1
            if review.submitted_at >= last_7_days:
                reviews_last_7_days += 1
            if review.submitted_at >= last_30_days:
                reviews_last_30_days += 1

            if review.user is not None:
                tally = reviewer_tallies.get(review.user.login)
                if tally is None:
                    tally = reviewer_tallies[review.user.login] = _ReviewerTally(review.user.avatar_url)
                tally.count += 1

            hours_to_review = hours_between(pr.created_at, review.submitted_at)
            review_times.append(hours_to_review)
            daily_times.setdefault(format_date(review.submitted_at), []).append(hours_to_review)

            if review.state == ReviewState.APPROVED:
                approved += 1
            elif review.state == ReviewState.CHANGES_REQUESTED:
                changes_requested += 1
            elif review.state == ReviewState.COMMENTED:
                commented += 1

    if unresolved_keys:
        logger.debug("Ignored reviews without a matching pull request", extra={"keys": unresolved_keys})

    prs_needing_review: List[PullRequestNeedingReview] = []
    prs_ready_to_merge: List[PullRequestReadyToMerge] = []

    for key, pr in pull_requests.items():
        if not pr.is_open or pr.merged_at is not None or pr.draft:
            continue

        pr_reviews = reviews.get(key, ())
        age_hours = round_half_up(hours_between(pr.created_at, now), 1)
        author = pr.user.login if pr.user else ""
        author_avatar = pr.user.avatar_url if pr.user else ""
        repository = index.resolve(key)

        if needs_review(pr_reviews):
            prs_needing_review.append(
                PullRequestNeedingReview(
                    number=pr.number,
                    title=pr.title,
                    author=author,
                    authorAvatar=author_avatar,
                    createdAt=format_timestamp(pr.created_at),
                    url=pr.html_url,
                    repository=repository,
                    ageHours=age_hours,
                    isDraft=pr.draft,
                )
            )

        if is_ready_to_merge(pr_reviews):
            prs_ready_to_merge.append(
                PullRequestReadyToMerge(
                    number=pr.number,
                    title=pr.title,
                    author=author,
                    authorAvatar=author_avatar,
                    createdAt=format_timestamp(pr.created_at),
                    url=pr.html_url,
                    repository=repository,
                    approvals=sum(1 for review in pr_reviews if review.state == ReviewState.APPROVED),
                    ageHours=age_hours,
                )
            )

    daily_review_data = [
        DailyReviewPoint(
            date=date,
            reviews=len(daily_times.get(date, ())),
            avgTimeHours=mean(daily_times.get(date, ())),
        )
        for date in trailing_dates(now)
    ]

    # sorted() is stable, so equal counts keep first-seen order
    ranked_reviewers = sorted(reviewer_tallies.items(), key=lambda item: item[1].count, reverse=True)
    top_reviewers = [
        TopReviewer(username=login, reviewCount=tally.count, avatarUrl=tally.avatar_url)
        for login, tally in ranked_reviewers[:TOP_REVIEWERS_LIMIT]
    ]

    logger.info(
        "Calculated review metrics",
        extra={
            "total_reviews": total_reviews,
            "reviewers": len(reviewer_tallies),
            "prs_needing_review": len(prs_needing_review),
            "prs_ready_to_merge": len(prs_ready_to_merge),
        },
    )

    return ReviewMetrics(
        totalReviews=total_reviews,
        reviewsLast7Days=reviews_last_7_days,
        reviewsLast30Days=reviews_last_30_days,
        averageReviewTimeHours=round_half_up(mean(review_times), 2),
        topReviewers=top_reviewers,
        reviewVelocity=ReviewVelocity(
            daily=reviews_last_7_days / 7,
            weekly=reviews_last_7_days,
            monthly=reviews_last_30_days,
        ),
        dailyReviewData=daily_review_data,
        reviewStateDistribution=ReviewStateDistribution(
            approved=approved,
            changesRequested=changes_requested,
            commented=commented,
            pending=len(prs_needing_review),
        ),
        prsNeedingReview=sorted(prs_needing_review, key=lambda item: item.ageHours)[:WORKLIST_LIMIT],
        prsReadyToMerge=sorted(prs_ready_to_merge, key=lambda item: item.ageHours)[:WORKLIST_LIMIT],
    )
