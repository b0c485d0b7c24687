"""Shared fixtures: a controllable clock, raw API payloads and a fake API source."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import pytest

from repoverse.domain.entities import RateLimitState
from repoverse.domain.exceptions import DetailFetchError
from repoverse.infrastructure.json_cache_store import JsonCacheStore

NOW = datetime(2024, 6, 15, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Callable returning epoch seconds; advance it to simulate TTL expiry."""

    def __init__(self, start: datetime = NOW) -> None:
        self.now = start.timestamp()

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_raw_repo(name: str, **overrides: Any) -> dict[str, Any]:
    """A minimal ``/users/{user}/repos`` entry."""
    raw: dict[str, Any] = {
        "name": name,
        "owner": {"login": "octocat"},
        "size": 100,
        "stargazers_count": 0,
        "forks_count": 0,
        "watchers_count": 0,
        "open_issues_count": 0,
        "created_at": "2020-01-01T00:00:00Z",
        "updated_at": "2024-01-01T00:00:00Z",
        "pushed_at": "2024-01-01T00:00:00Z",
        "language": "Python",
        "fork": False,
        "default_branch": "main",
    }
    raw.update(overrides)
    return raw


class FakeSource:
    """In-memory RepoMetadataSource recording every call."""

    def __init__(
        self,
        repos: list[dict[str, Any]] | None = None,
        remaining: int = 60,
        commits: int = 42,
        branches: int = 3,
        prs_and_issues: tuple[int, int] = (2, 5),
        fork_prs: int = 1,
    ) -> None:
        self.repos = repos or []
        self.rate_limit = RateLimitState(remaining=remaining, reset_epoch=1_700_000_000, limit=60)
        self.commits = commits
        self.branches = branches
        self.prs_and_issues = prs_and_issues
        self.fork_prs = fork_prs
        self.failing: set[str] = set()
        self.failing_ops: set[str] = set()
        self.list_error: Exception | None = None
        self.calls: list[tuple[str, str]] = []

    async def list_repositories(self, user: str):
        self.calls.append(("list", user))
        if self.list_error is not None:
            raise self.list_error
        return list(self.repos), self.rate_limit

    def _check(self, op: str, repo: str) -> None:
        self.calls.append((op, repo))
        if repo in self.failing or op in self.failing_ops:
            raise DetailFetchError(f"{op} failed for {repo}")

    async def count_commits(self, owner: str, repo: str) -> int:
        self._check("commits", repo)
        return self.commits

    async def count_branches(self, owner: str, repo: str) -> int:
        self._check("branches", repo)
        return self.branches

    async def list_open_issues_and_prs(self, owner: str, repo: str) -> tuple[int, int]:
        self._check("issues", repo)
        return self.prs_and_issues

    async def count_prs_from_fork_to_parent(
        self, fork_owner, fork_repo, parent_owner, parent_repo, branch="main"
    ) -> int:
        self._check("fork_prs", fork_repo)
        return self.fork_prs

    def enriched_repos(self) -> set[str]:
        return {repo for op, repo in self.calls if op == "commits"}


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(tmp_path, clock) -> JsonCacheStore:
    return JsonCacheStore(tmp_path / "cache", clock=clock)
