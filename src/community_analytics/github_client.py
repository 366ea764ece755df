"""GitHub REST API client for analytics data retrieval."""

from __future__ import annotations

import logging
import time
from datetime import datetime
from typing import Any, Dict, List, Optional

import requests

from .config import Config
from .errors import ConfigurationMissingError, DataValidationError, UpstreamError
from .models import Issue, Label, PullRequest, Repository, Review, ReviewState, User, is_bot_user
from .stats import format_timestamp, parse_timestamp

logger = logging.getLogger(__name__)


class GitHubClient:
    """Sequential, rate-paced client for the GitHub endpoints the analytics need.

    Calls are never issued concurrently: the pause after each response is
    derived from the remaining-quota header of that response.
    """

    PAGE_SIZE = 100
    USER_AGENT = "community-dashboard-analytics"
    RATE_LIMIT_HEADER = "x-ratelimit-remaining"

    _HIGH_QUOTA_PAUSE_SECONDS = 0.2
    _MEDIUM_QUOTA_PAUSE_SECONDS = 0.4
    _LOW_QUOTA_PAUSE_SECONDS = 1.0
    _DEFAULT_PAUSE_SECONDS = 0.5

    def __init__(self, config: Config, timeout_seconds: int = 30) -> None:
        """Initialize an authenticated GitHub API client.

        Args:
            config: Validated runtime configuration including the bearer token.
            timeout_seconds: Per-request timeout in seconds.

        Raises:
            ConfigurationMissingError: If the configuration carries no token.
        """
        if not config.token:
            raise ConfigurationMissingError("A GitHub token is required to create the API client.")

        self._timeout_seconds = timeout_seconds
        self._base_url = config.api_base_url.rstrip("/")

        self._session = requests.Session()
        self._session.headers.update(
            {
                "Authorization": f"Bearer {config.token}",
                "Accept": "application/vnd.github+json",
                "User-Agent": self.USER_AGENT,
            }
        )

    def _build_url(self, endpoint: str) -> str:
        return f"{self._base_url}/{endpoint.lstrip('/')}"

    def _rate_limit_pause(self, response: requests.Response) -> float:
        """Pick the pause before the next call from the remaining-quota header."""
        remaining_header = response.headers.get(self.RATE_LIMIT_HEADER)
        if not remaining_header:
            return self._DEFAULT_PAUSE_SECONDS

        try:
            remaining = int(remaining_header)
        except ValueError:
            logger.debug(
                "Unparseable rate limit header",
                extra={"header_value": remaining_header},
            )
            return self._LOW_QUOTA_PAUSE_SECONDS

        if remaining > 500:
            return self._HIGH_QUOTA_PAUSE_SECONDS
        if remaining > 100:
            return self._MEDIUM_QUOTA_PAUSE_SECONDS
        return self._LOW_QUOTA_PAUSE_SECONDS

    def fetch(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """Execute one authenticated GET and return the decoded JSON body.

        Failed calls are not retried.

        Raises:
            UpstreamError: If the transport fails, the response status is
                >= 400, or the body is not valid JSON.
        """
        url = self._build_url(endpoint)

        try:
            response = self._session.get(url, params=params, timeout=self._timeout_seconds)
        except requests.RequestException as exc:
            raise UpstreamError(f"GitHub request failed: GET {url}") from exc

        if response.status_code >= 400:
            raise UpstreamError(
                f"GitHub API {response.status_code}: GET {url} - {response.text}",
                status_code=response.status_code,
                body=response.text,
            )

        time.sleep(self._rate_limit_pause(response))

        try:
            return response.json()
        except ValueError as exc:
            raise UpstreamError(
                f"GitHub API returned invalid JSON: GET {url}",
                status_code=response.status_code,
                body=response.text,
            ) from exc

    def _fetch_page(self, endpoint: str, params: Dict[str, Any]) -> List[Dict[str, Any]]:
        payload = self.fetch(endpoint, params=params)
        if not isinstance(payload, list):
            raise DataValidationError(f"GitHub API returned unexpected payload shape: GET {endpoint}")
        return payload

    def _parse_user(self, item: Optional[Dict[str, Any]]) -> Optional[User]:
        if not item:
            return None
        return User(
            login=str(item.get("login") or ""),
            avatar_url=str(item.get("avatar_url") or ""),
            type=item.get("type"),
        )

    def _require_datetime(self, item: Dict[str, Any], field_name: str, kind: str) -> datetime:
        value = parse_timestamp(item.get(field_name))
        if value is None:
            raise DataValidationError(
                f"GitHub {kind} payload is missing '{field_name}': number={item.get('number')}"
            )
        return value

    def _parse_pull_request(self, item: Dict[str, Any]) -> PullRequest:
        number = item.get("number")
        if number is None:
            raise DataValidationError(f"GitHub pull request payload is missing 'number': payload={item}")

        return PullRequest(
            number=int(number),
            title=str(item.get("title") or ""),
            user=self._parse_user(item.get("user")),
            created_at=self._require_datetime(item, "created_at", "pull request"),
            updated_at=self._require_datetime(item, "updated_at", "pull request"),
            merged_at=parse_timestamp(item.get("merged_at")),
            state=str(item.get("state") or ""),
            html_url=str(item.get("html_url") or ""),
            draft=bool(item.get("draft")),
        )

    def _parse_issue(self, item: Dict[str, Any]) -> Issue:
        number = item.get("number")
        if number is None:
            raise DataValidationError(f"GitHub issue payload is missing 'number': payload={item}")

        labels = tuple(
            Label(name=str(label.get("name") or ""), color=str(label.get("color") or ""))
            for label in item.get("labels") or []
            if isinstance(label, dict)
        )

        return Issue(
            number=int(number),
            title=str(item.get("title") or ""),
            user=self._parse_user(item.get("user")),
            created_at=self._require_datetime(item, "created_at", "issue"),
            updated_at=self._require_datetime(item, "updated_at", "issue"),
            closed_at=parse_timestamp(item.get("closed_at")),
            state=str(item.get("state") or ""),
            html_url=str(item.get("html_url") or ""),
            labels=labels,
            is_pull_request=bool(item.get("pull_request")),
        )

    def _parse_review(self, item: Dict[str, Any]) -> Optional[Review]:
        submitted_at = parse_timestamp(item.get("submitted_at"))
        try:
            state = ReviewState(item.get("state"))
        except ValueError:
            state = None

        if state is None or submitted_at is None:
            logger.debug(
                "Skipping review without a final state",
                extra={"review_id": item.get("id"), "state": item.get("state")},
            )
            return None

        return Review(
            id=int(item.get("id") or 0),
            user=self._parse_user(item.get("user")),
            state=state,
            submitted_at=submitted_at,
            pull_request_url=str(item.get("pull_request_url") or ""),
        )

    def list_repositories(self, organization: str) -> List[Repository]:
        """List active (not archived, not disabled) repositories of an organization."""
        logger.info("Fetching repositories", extra={"organization": organization})
        repositories: List[Repository] = []
        page = 1

        while True:
            page_items = self._fetch_page(
                f"/orgs/{organization}/repos",
                {"type": "all", "per_page": self.PAGE_SIZE, "page": page},
            )
            if not page_items:
                break

            for item in page_items:
                name = item.get("name")
                owner = (item.get("owner") or {}).get("login")
                if not name or not owner:
                    raise DataValidationError(
                        f"GitHub repository payload is missing name or owner: payload={item}"
                    )
                repositories.append(
                    Repository(
                        name=str(name),
                        owner=str(owner),
                        archived=bool(item.get("archived")),
                        disabled=bool(item.get("disabled")),
                    )
                )

            if len(page_items) < self.PAGE_SIZE:
                break
            page += 1

        return [repo for repo in repositories if not repo.archived and not repo.disabled]

    def list_pull_requests(self, owner: str, repo: str, since: datetime) -> List[PullRequest]:
        """List human-authored pull requests updated at or after ``since``.

        Pages are ordered by most recent update, so walking stops after the
        first page that contains a pull request older than ``since``.
        """
        logger.info("Fetching pull requests", extra={"repository": f"{owner}/{repo}"})
        pull_requests: List[PullRequest] = []
        page = 1

        while True:
            page_items = self._fetch_page(
                f"/repos/{owner}/{repo}/pulls",
                {
                    "state": "all",
                    "sort": "updated",
                    "direction": "desc",
                    "per_page": self.PAGE_SIZE,
                    "page": page,
                },
            )
            if not page_items:
                break

            parsed = [self._parse_pull_request(item) for item in page_items]
            pull_requests.extend(
                pr for pr in parsed if not is_bot_user(pr.user) and pr.updated_at >= since
            )

            if len(page_items) < self.PAGE_SIZE or any(pr.updated_at < since for pr in parsed):
                break
            page += 1

        return pull_requests

    def list_issues(self, owner: str, repo: str, since: datetime) -> List[Issue]:
        """List human-authored issues (pull requests excluded) updated at or after ``since``."""
        logger.info("Fetching issues", extra={"repository": f"{owner}/{repo}"})
        issues: List[Issue] = []
        page = 1

        while True:
            page_items = self._fetch_page(
                f"/repos/{owner}/{repo}/issues",
                {
                    "state": "all",
                    "sort": "updated",
                    "direction": "desc",
                    "since": format_timestamp(since, milliseconds=True),
                    "per_page": self.PAGE_SIZE,
                    "page": page,
                },
            )
            if not page_items:
                break

            for item in page_items:
                issue = self._parse_issue(item)
                if issue.is_pull_request or is_bot_user(issue.user) or issue.updated_at < since:
                    continue
                issues.append(issue)

            if len(page_items) < self.PAGE_SIZE:
                break
            page += 1

        return issues

    def list_reviews(self, owner: str, repo: str, number: int) -> List[Review]:
        """List human reviews of one pull request.

        Any failure for a single pull request, including a malformed payload,
        is logged and reported as no reviews.
        """
        try:
            payload = self._fetch_page(f"/repos/{owner}/{repo}/pulls/{number}/reviews", {})
            reviews = [self._parse_review(item) for item in payload]
        except Exception as exc:
            logger.warning(
                "Failed to fetch reviews for PR %s: %s",
                number,
                exc,
                extra={"repository": f"{owner}/{repo}", "pr_number": number},
            )
            return []

        return [review for review in reviews if review is not None and not is_bot_user(review.user)]
