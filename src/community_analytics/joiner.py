"""Cross-stream join between fetched items and their repositories.

Pull requests, issues and reviews are fetched per repository but aggregated
as flat collections. Every item is keyed by ``RepoKey`` so the aggregators
can get back to the repository it came from.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, NamedTuple

UNKNOWN_REPOSITORY = "unknown"


class RepoKey(NamedTuple):
    """Structured composite key, rendered as ``owner/repo#number``."""

    owner: str
    repo: str
    number: int

    def __str__(self) -> str:
        return f"{self.owner}/{self.repo}#{self.number}"


class RepositoryIndex:
    """Maps each pull request and issue key of one run to its repository name.

    An index is built empty for every run and never reused across runs.
    """

    def __init__(self) -> None:
        self._repositories: Dict[RepoKey, str] = {}

    def record(self, owner: str, repo: str, numbers: Iterable[int]) -> List[RepoKey]:
        """Record items of ``owner/repo`` and return their keys in input order."""
        keys = []
        for number in numbers:
            key = RepoKey(owner, repo, number)
            self._repositories[key] = repo
            keys.append(key)
        return keys

    def resolve(self, key: RepoKey) -> str:
        """Return the repository name for ``key``, or ``"unknown"`` when it was never recorded."""
        return self._repositories.get(key, UNKNOWN_REPOSITORY)

    def __contains__(self, key: object) -> bool:
        return key in self._repositories

    def __len__(self) -> int:
        return len(self._repositories)
