"""Port: repository metadata source — defined by the domain, implemented by infrastructure."""

from __future__ import annotations

from typing import Any, Protocol

from repoverse.domain.entities import RateLimitState


class RepoMetadataSource(Protocol):
    """Abstract contract for the rate-limited repository-hosting API."""

    async def list_repositories(
        self, user: str
    ) -> tuple[list[dict[str, Any]], RateLimitState]:
        """Return the user's raw public repositories and the observed rate limit."""
        ...

    async def count_commits(self, owner: str, repo: str) -> int:
        """Return the total number of commits on the default branch."""
        ...

    async def count_branches(self, owner: str, repo: str) -> int:
        """Return the number of branches (at least 1)."""
        ...

    async def list_open_issues_and_prs(
        self, owner: str, repo: str
    ) -> tuple[int, int] | None:
        """Return ``(open_prs, open_issues)`` from the mixed issues listing.

        ``None`` means the repository has no issue data (issues disabled).
        """
        ...

    async def count_prs_from_fork_to_parent(
        self,
        fork_owner: str,
        fork_repo: str,
        parent_owner: str,
        parent_repo: str,
        branch: str,
    ) -> int:
        """Return the number of open PRs from a fork's branch into its parent."""
        ...
