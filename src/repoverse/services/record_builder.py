"""Raw API payload → RepositoryRecord, with placeholder estimates.

The repository list does not carry commit or branch totals, so every record
starts with closed-form *estimates* derived from stars, forks and age.  The
enrichment scheduler later replaces them with measured values when the rate
budget allows.
"""

from __future__ import annotations

import math
from datetime import datetime, timedelta, timezone
from typing import Any

from repoverse.domain.entities import ParentRef, RepositoryRecord

RECENT_PUSH_WINDOW = timedelta(hours=48)


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse an ISO-8601 API timestamp (``2020-01-01T00:00:00Z``) to an aware datetime."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def days_between(start: datetime, end: datetime) -> int:
    return math.floor((end - start).total_seconds() / 86_400)


def estimate_commits(stars: int, forks: int, days_since_creation: int) -> int:
    """Heuristic commit count: half a commit per day of age plus popularity."""
    base_commits = max(10, days_since_creation * 0.5)
    activity_commits = stars * 5 + forks * 10
    return math.floor(base_commits + activity_commits)


def build_record(
    raw: dict[str, Any],
    owner: str | None = None,
    now: datetime | None = None,
) -> RepositoryRecord:
    """Transform one entry of ``/users/{user}/repos`` into a RepositoryRecord."""
    now = now or datetime.now(timezone.utc)

    created_at = parse_timestamp(raw.get("created_at"))
    pushed_at = parse_timestamp(raw.get("pushed_at"))
    days_since_creation = days_between(created_at, now) if created_at else 0

    stars = raw.get("stargazers_count") or 0
    forks = raw.get("forks_count") or 0
    estimated_commits = estimate_commits(stars, forks, days_since_creation)

    parent = raw.get("parent")
    parent_ref = None
    if isinstance(parent, dict):
        parent_ref = ParentRef(
            full_name=parent.get("full_name", ""),
            owner=(parent.get("owner") or {}).get("login", ""),
            name=parent.get("name", ""),
        )

    raw_owner = raw.get("owner")
    owner_login = raw_owner.get("login") if isinstance(raw_owner, dict) else None

    return RepositoryRecord(
        name=raw["name"],
        owner=owner or owner_login or "",
        size=raw.get("size") or 0,
        total_commits=estimated_commits,
        branches_count=1,
        open_prs=0,
        open_issues=raw.get("open_issues_count") or 0,
        commits_last_30=math.floor(estimated_commits * 0.1),
        stars=stars,
        forks=forks,
        watchers=raw.get("watchers_count") or 0,
        created_at=created_at,
        updated_at=parse_timestamp(raw.get("updated_at")),
        pushed_at=pushed_at,
        language=raw.get("language"),
        description=raw.get("description") or "",
        default_branch=raw.get("default_branch") or "main",
        is_fork=bool(raw.get("fork", False)),
        parent=parent_ref,
        has_recent_commits=pushed_at is not None and now - pushed_at <= RECENT_PUSH_WINDOW,
        days_since_creation=days_since_creation,
    )
