"""Domain models for GitHub review and triage analytics.

Raw entities model only the subset of GitHub REST payload fields needed for
aggregation. Output models use the exact JSON key names the dashboard reads,
so a snapshot serializes with :func:`dataclasses.asdict` and no renaming.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

BOT_LOGIN_SUFFIX = "[bot]"
HUMAN_ACCOUNT_TYPE = "User"


@dataclass(frozen=True, slots=True)
class User:
    """A GitHub account embedded in pull request, issue and review payloads."""

    login: str
    avatar_url: str = ""
    type: Optional[str] = None


def is_bot_user(user: Optional[User]) -> bool:
    """Return ``True`` when ``user`` should be excluded as an automated account."""
    if user is None or not user.login:
        return True
    if user.type and user.type != HUMAN_ACCOUNT_TYPE:
        return True
    return user.login.endswith(BOT_LOGIN_SUFFIX)


@dataclass(frozen=True, slots=True)
class Label:
    name: str
    color: str = ""


@dataclass(frozen=True, slots=True)
class Repository:
    """A repository returned by the organization listing."""

    name: str
    owner: str
    archived: bool = False
    disabled: bool = False

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"


@dataclass(frozen=True, slots=True)
class PullRequest:
    number: int
    title: str
    user: Optional[User]
    created_at: datetime
    updated_at: datetime
    merged_at: Optional[datetime]
    state: str
    html_url: str
    draft: bool = False

    @property
    def is_open(self) -> bool:
        return self.state == "open"


@dataclass(frozen=True, slots=True)
class Issue:
    number: int
    title: str
    user: Optional[User]
    created_at: datetime
    updated_at: datetime
    closed_at: Optional[datetime]
    state: str
    html_url: str
    labels: Tuple[Label, ...] = ()
    is_pull_request: bool = False

    @property
    def label_names(self) -> List[str]:
        return [label.name for label in self.labels]


class ReviewState(str, Enum):
    APPROVED = "APPROVED"
    CHANGES_REQUESTED = "CHANGES_REQUESTED"
    COMMENTED = "COMMENTED"
    DISMISSED = "DISMISSED"


@dataclass(frozen=True, slots=True)
class Review:
    id: int
    user: Optional[User]
    state: ReviewState
    submitted_at: datetime
    pull_request_url: str


# ---------------------------------------------------------------------------
# Output models
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TopReviewer:
    username: str
    reviewCount: int
    avatarUrl: str


@dataclass(frozen=True)
class ReviewVelocity:
    daily: float
    weekly: int
    monthly: int


@dataclass(frozen=True)
class DailyReviewPoint:
    date: str
    reviews: int
    avgTimeHours: float


@dataclass(frozen=True)
class ReviewStateDistribution:
    """Review-event counts per state.

    ``pending`` counts pull requests needing review, not review events.
    """

    approved: int = 0
    changesRequested: int = 0
    commented: int = 0
    pending: int = 0


@dataclass(frozen=True)
class PullRequestNeedingReview:
    number: int
    title: str
    author: str
    authorAvatar: str
    createdAt: str
    url: str
    repository: str
    ageHours: float
    isDraft: bool


@dataclass(frozen=True)
class PullRequestReadyToMerge:
    number: int
    title: str
    author: str
    authorAvatar: str
    createdAt: str
    url: str
    repository: str
    approvals: int
    ageHours: float


@dataclass(frozen=True)
class ReviewMetrics:
    totalReviews: int
    reviewsLast7Days: int
    reviewsLast30Days: int
    averageReviewTimeHours: float
    topReviewers: List[TopReviewer]
    reviewVelocity: ReviewVelocity
    dailyReviewData: List[DailyReviewPoint]
    reviewStateDistribution: ReviewStateDistribution
    prsNeedingReview: List[PullRequestNeedingReview]
    prsReadyToMerge: List[PullRequestReadyToMerge]


@dataclass(frozen=True)
class TriageVelocity:
    daily: float
    weekly: int


@dataclass(frozen=True)
class AgeDistribution:
    lessThan24h: int = 0
    oneToSevenDays: int = 0
    sevenToThirtyDays: int = 0
    moreThanThirtyDays: int = 0


@dataclass(frozen=True)
class DailyTriagePoint:
    date: str
    triaged: int
    pending: int
    total: int


@dataclass(frozen=True)
class IssuePendingTriage:
    number: int
    title: str
    author: str
    authorAvatar: str
    createdAt: str
    url: str
    repository: str
    ageHours: float
    labels: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class IssueMetrics:
    totalIssues: int
    openIssues: int
    closedIssues: int
    pendingTriage: int
    recentlyTriaged: int
    triageVelocity: TriageVelocity
    ageDistribution: AgeDistribution
    dailyTriageData: List[DailyTriagePoint]
    issuesPendingTriage: List[IssuePendingTriage]


@dataclass(frozen=True)
class AnalyticsSnapshot:
    """Top-level output of one run; each run replaces the previous snapshot."""

    organization: str
    lastUpdated: str
    reviewMetrics: ReviewMetrics
    issueMetrics: IssueMetrics
    repositories: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
