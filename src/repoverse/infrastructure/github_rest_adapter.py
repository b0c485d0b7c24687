"""GitHub REST API adapter — implements the RepoMetadataSource port."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

import httpx

from repoverse.domain.entities import RateLimitState
from repoverse.domain.exceptions import (
    DetailFetchError,
    RateLimitExceededError,
    RepositoryFetchError,
    UserNotFoundError,
)

logger = logging.getLogger(__name__)

_GITHUB_API = "https://api.github.com"
_DEFAULT_LIMIT = 60


class GitHubRestAdapter:
    """Concrete RepoMetadataSource backed by the GitHub v3 REST API."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        base_url: str = _GITHUB_API,
        token: str | None = None,
    ) -> None:
        self._client = client
        self._base_url = base_url.rstrip("/")
        self._api_headers: dict[str, str] = {
            "Accept": "application/vnd.github.v3+json",
            "User-Agent": "repoverse/1.0",
        }
        if token:
            self._api_headers["Authorization"] = f"Bearer {token}"

    async def list_repositories(
        self, user: str
    ) -> tuple[list[dict[str, Any]], RateLimitState]:
        """GET /users/{user}/repos → (raw repos, rate limit)."""
        url = f"{self._base_url}/users/{user}/repos"
        try:
            resp = await self._client.get(
                url,
                headers=self._api_headers,
                params={"per_page": "100", "sort": "updated", "type": "public"},
            )
        except httpx.HTTPError as exc:
            raise RepositoryFetchError(f"Network error fetching {url}: {exc}") from exc

        rate_limit = parse_rate_limit(resp.headers)

        if resp.status_code == 200:
            data = resp.json()
            if not isinstance(data, list):
                raise RepositoryFetchError(f"Unexpected payload for {user}'s repositories.")
            logger.info(
                "Listed %d repositories for %s (rate limit %d/%d)",
                len(data),
                user,
                rate_limit.remaining,
                rate_limit.limit,
            )
            return data, rate_limit

        if (resp.status_code == 403 and rate_limit.remaining == 0) or resp.status_code == 429:
            raise RateLimitExceededError(
                f"GitHub API rate limit exceeded. Resets at {_format_reset(rate_limit.reset_epoch)}.",
                reset_epoch=rate_limit.reset_epoch,
            )

        if resp.status_code == 404:
            raise UserNotFoundError(f"User '{user}' not found.")

        raise RepositoryFetchError(f"GitHub API error: {resp.status_code}")

    async def count_commits(self, owner: str, repo: str) -> int:
        """GET /repos/{owner}/{repo}/commits?per_page=1 → total via last page."""
        return await self._count_collection(
            f"/repos/{owner}/{repo}/commits", empty_default=0
        )

    async def count_branches(self, owner: str, repo: str) -> int:
        """GET /repos/{owner}/{repo}/branches?per_page=1 → total (at least 1)."""
        count = await self._count_collection(
            f"/repos/{owner}/{repo}/branches", empty_default=1
        )
        return max(1, count)

    async def list_open_issues_and_prs(
        self, owner: str, repo: str
    ) -> tuple[int, int] | None:
        """GET /repos/{owner}/{repo}/issues?state=open → (open PRs, open issues).

        ``None`` when the repository exposes no issue data (404, or 410 when
        issues are disabled, which is the default on forks).
        """
        resp = await self._api_get(
            f"/repos/{owner}/{repo}/issues",
            params={"state": "open", "per_page": "100"},
        )
        if resp.status_code in (404, 410):
            logger.debug("No issue data for %s/%s (HTTP %d)", owner, repo, resp.status_code)
            return None
        if resp.status_code != 200:
            raise DetailFetchError(
                f"Issues listing for {owner}/{repo} returned HTTP {resp.status_code}"
            )

        items = resp.json()
        open_prs = sum(
            1 for item in items if item.get("pull_request") and item.get("state", "open") == "open"
        )
        open_issues = sum(1 for item in items if not item.get("pull_request"))
        return open_prs, open_issues

    async def count_prs_from_fork_to_parent(
        self,
        fork_owner: str,
        fork_repo: str,
        parent_owner: str,
        parent_repo: str,
        branch: str = "main",
    ) -> int:
        """GET /repos/{parent}/pulls?head={fork_owner}:{branch} → open PR count."""
        resp = await self._api_get(
            f"/repos/{parent_owner}/{parent_repo}/pulls",
            params={"head": f"{fork_owner}:{branch}", "state": "open", "per_page": "100"},
        )
        if resp.status_code in (403, 404):
            return 0
        if resp.status_code != 200:
            raise DetailFetchError(
                f"PR lookup {fork_owner}/{fork_repo} → {parent_owner}/{parent_repo} "
                f"returned HTTP {resp.status_code}"
            )
        data = resp.json()
        return len(data) if isinstance(data, list) else 0

    # ── Internals ───────────────────────────────────────────────────────

    async def _count_collection(self, endpoint: str, empty_default: int) -> int:
        """Count a collection with ``per_page=1``; the last page number is the total."""
        resp = await self._api_get(endpoint, params={"per_page": "1"})

        if resp.status_code in (404, 409):
            return empty_default

        if resp.status_code != 200:
            raise DetailFetchError(f"{endpoint} returned HTTP {resp.status_code}")

        last = resp.links.get("last")
        if last:
            page = httpx.URL(last["url"]).params.get("page")
            if page and page.isdigit():
                return int(page)

        data = resp.json()
        return len(data) if isinstance(data, list) else 0

    async def _api_get(
        self,
        endpoint: str,
        params: dict[str, str] | None = None,
    ) -> httpx.Response:
        """Perform a GitHub API GET for enrichment; transport errors become DetailFetchError."""
        url = f"{self._base_url}{endpoint}"
        try:
            return await self._client.get(url, headers=self._api_headers, params=params)
        except httpx.HTTPError as exc:
            raise DetailFetchError(f"Network error fetching {url}: {exc}") from exc


def parse_rate_limit(headers: httpx.Headers) -> RateLimitState:
    """Read the ``x-ratelimit-*`` headers, defaulting like the unauthenticated API."""
    return RateLimitState(
        remaining=_int_header(headers, "x-ratelimit-remaining", 0),
        reset_epoch=_int_header(headers, "x-ratelimit-reset", 0),
        limit=_int_header(headers, "x-ratelimit-limit", _DEFAULT_LIMIT),
    )


def _int_header(headers: httpx.Headers, name: str, default: int) -> int:
    try:
        return int(headers.get(name, default))
    except (TypeError, ValueError):
        return default


def _format_reset(reset_epoch: int) -> str:
    try:
        return datetime.fromtimestamp(reset_epoch, tz=timezone.utc).strftime(
            "%Y-%m-%d %H:%M:%S UTC"
        )
    except (ValueError, OSError, OverflowError):
        return "unknown"
