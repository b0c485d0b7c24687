"""Fixed demo dataset used when the remote API budget is exhausted.

Ages are stored relative to the moment of use so the demo universe always
has recent activity to show.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any

from repoverse.domain.entities import RepositoryRecord
from repoverse.services.record_builder import build_record

DEMO_OWNER = "repoverse-demo"

_DEMO_REPOS: list[dict[str, Any]] = [
    {
        "name": "flutter-app",
        "description": "A beautiful Flutter mobile application",
        "language": "Dart",
        "size": 45_000,
        "stargazers_count": 342,
        "forks_count": 67,
        "watchers_count": 342,
        "open_issues_count": 12,
        "created_days_ago": 2_050,
        "pushed_days_ago": 2,
    },
    {
        "name": "web-dashboard",
        "description": "Modern web dashboard with React",
        "language": "TypeScript",
        "size": 35_000,
        "stargazers_count": 189,
        "forks_count": 34,
        "watchers_count": 189,
        "open_issues_count": 7,
        "created_days_ago": 1_600,
        "pushed_days_ago": 5,
    },
    {
        "name": "api-server",
        "description": "RESTful API server built with FastAPI",
        "language": "Python",
        "size": 60_000,
        "stargazers_count": 567,
        "forks_count": 123,
        "watchers_count": 567,
        "open_issues_count": 21,
        "created_days_ago": 2_400,
        "pushed_days_ago": 0.5,
    },
    {
        "name": "mobile-game",
        "description": "Unity mobile game project",
        "language": "C#",
        "size": 40_000,
        "stargazers_count": 98,
        "forks_count": 21,
        "watchers_count": 98,
        "open_issues_count": 3,
        "created_days_ago": 1_350,
        "pushed_days_ago": 7,
    },
    {
        "name": "dotfiles",
        "description": "Personal shell configuration",
        "language": "Shell",
        "size": 120,
        "stargazers_count": 4,
        "forks_count": 0,
        "watchers_count": 4,
        "open_issues_count": 0,
        "created_days_ago": 3_200,
        "pushed_days_ago": 420,
    },
    {
        "name": "ml-experiments",
        "description": "Notebooks for model prototyping",
        "language": "Jupyter Notebook",
        "size": 88_000,
        "stargazers_count": 56,
        "forks_count": 9,
        "watchers_count": 56,
        "open_issues_count": 1,
        "created_days_ago": 900,
        "pushed_days_ago": 30,
    },
    {
        "name": "rust-cli",
        "description": "Fast command-line file search",
        "language": "Rust",
        "size": 2_300,
        "stargazers_count": 1_204,
        "forks_count": 77,
        "watchers_count": 1_204,
        "open_issues_count": 15,
        "created_days_ago": 640,
        "pushed_days_ago": 12,
    },
]


def demo_repositories(now: datetime) -> list[RepositoryRecord]:
    """Return the demo repositories with dates anchored at *now*."""
    records = []
    for entry in _DEMO_REPOS:
        raw = dict(entry)
        created = now - timedelta(days=raw.pop("created_days_ago"))
        pushed = now - timedelta(days=raw.pop("pushed_days_ago"))
        raw["created_at"] = created.isoformat()
        raw["updated_at"] = raw["pushed_at"] = pushed.isoformat()
        records.append(build_record(raw, owner=DEMO_OWNER, now=now))
    return records
