"""JSON-file cache store — implements the RepositoryCacheStore port.

One document per user lives in the cache directory::

    {"basic": {"repos": [...], "timestamp": <ms>, "ttl": <ms>},
     "detailed": {"<repo>": {"totalCommits": .., "branchesCount": ..,
                             "openPRs": .., "openIssues": ..,
                             "timestamp": <ms>, "ttl": <ms>}}}

Reads past TTL evict the entry and return ``None``.  Write failures are
logged and followed by an eviction pass; they never propagate.  There is no
locking: concurrent writers for the same user race and the last write wins.
"""

from __future__ import annotations

import json
import logging
import re
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable

from repoverse.domain.entities import DetailFields

logger = logging.getLogger(__name__)

CACHE_PREFIX = "repoverse_cache_"
BASIC_TTL_MS = 3_600_000
DETAILED_TTL_MS = 86_400_000

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_.-]")


@dataclass(frozen=True, slots=True)
class CacheStats:
    """Snapshot of one user's cache document."""

    has_basic: bool
    detailed_count: int
    basic_age_ms: int | None = None


class JsonCacheStore:
    """Concrete cache store persisting one JSON file per user."""

    def __init__(
        self,
        cache_dir: Path,
        basic_ttl_ms: int = BASIC_TTL_MS,
        detailed_ttl_ms: int = DETAILED_TTL_MS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._dir = Path(cache_dir)
        self._basic_ttl = basic_ttl_ms
        self._detailed_ttl = detailed_ttl_ms
        self._clock = clock

    # ── Basic list ──────────────────────────────────────────────────────

    def get_basic(self, user: str) -> list[dict[str, Any]] | None:
        data = self._load(user)
        basic = data.get("basic")
        if not basic or "repos" not in basic:
            return None

        if self._is_expired(basic.get("timestamp", 0), self._basic_ttl):
            logger.debug("Basic cache for %s expired — evicting", user)
            del data["basic"]
            self._save(user, data)
            return None

        return basic["repos"]

    def set_basic(self, user: str, repos: list[dict[str, Any]]) -> None:
        data = self._load(user)
        data["basic"] = {
            "repos": repos,
            "timestamp": self._now_ms(),
            "ttl": self._basic_ttl,
        }
        self._save(user, data)

    def clear_basic(self, user: str) -> None:
        data = self._load(user)
        if data.pop("basic", None) is not None:
            self._save(user, data)

    # ── Detailed entries ────────────────────────────────────────────────

    def get_detail(self, user: str, repo_name: str) -> DetailFields | None:
        data = self._load(user)
        entry = data.get("detailed", {}).get(repo_name)
        if not entry:
            return None

        if self._is_expired(entry.get("timestamp", 0), self._detailed_ttl):
            logger.debug("Detail cache for %s/%s expired — evicting", user, repo_name)
            del data["detailed"][repo_name]
            self._save(user, data)
            return None

        return _detail_from_json(entry)

    def set_detail(self, user: str, repo_name: str, fields: DetailFields) -> None:
        data = self._load(user)
        detailed = data.setdefault("detailed", {})
        detailed[repo_name] = {
            **_detail_to_json(fields),
            "timestamp": self._now_ms(),
            "ttl": self._detailed_ttl,
        }
        self._save(user, data)

    def get_all_detail(self, user: str) -> dict[str, DetailFields]:
        data = self._load(user)
        detailed: dict[str, dict[str, Any]] = data.get("detailed", {})
        if not detailed:
            return {}

        fresh = {
            name: entry
            for name, entry in detailed.items()
            if not self._is_expired(entry.get("timestamp", 0), self._detailed_ttl)
        }
        if len(fresh) != len(detailed):
            logger.debug(
                "Evicting %d expired detail entries for %s",
                len(detailed) - len(fresh),
                user,
            )
            data["detailed"] = fresh
            self._save(user, data)

        return {name: _detail_from_json(entry) for name, entry in fresh.items()}

    # ── Housekeeping ────────────────────────────────────────────────────

    def clear(self, user: str) -> None:
        """Drop the whole document for *user*."""
        self._path(user).unlink(missing_ok=True)

    def stats(self, user: str) -> CacheStats:
        data = self._load(user)
        basic = data.get("basic")
        has_basic = bool(basic) and not self._is_expired(
            basic.get("timestamp", 0), self._basic_ttl
        )
        return CacheStats(
            has_basic=has_basic,
            detailed_count=len(data.get("detailed", {})),
            basic_age_ms=self._now_ms() - basic.get("timestamp", 0) if basic else None,
        )

    def evict_expired(self) -> int:
        """Remove documents whose basic *and* all detailed entries are expired.

        Unreadable documents are removed too.  Returns the number of files
        deleted.
        """
        if not self._dir.is_dir():
            return 0

        removed = 0
        for path in self._dir.glob(f"{CACHE_PREFIX}*.json"):
            try:
                data = json.loads(path.read_text(encoding="utf-8"))
                basic = data.get("basic")
                basic_expired = not basic or self._is_expired(
                    basic.get("timestamp", 0), self._basic_ttl
                )
                detailed = data.get("detailed") or {}
                detailed_expired = all(
                    self._is_expired(d.get("timestamp", 0), self._detailed_ttl)
                    for d in detailed.values()
                )
                if not (basic_expired and detailed_expired):
                    continue
            except (OSError, ValueError, AttributeError):
                logger.debug("Removing unreadable cache file %s", path.name)

            try:
                path.unlink()
                removed += 1
            except OSError:
                logger.debug("Could not remove %s", path.name, exc_info=True)

        if removed:
            logger.info("Evicted %d stale cache file(s)", removed)
        return removed

    # ── Internals ───────────────────────────────────────────────────────

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    def _is_expired(self, timestamp: int, ttl_ms: int) -> bool:
        return self._now_ms() - timestamp > ttl_ms

    def _path(self, user: str) -> Path:
        return self._dir / f"{CACHE_PREFIX}{_UNSAFE_CHARS.sub('_', user)}.json"

    def _load(self, user: str) -> dict[str, Any]:
        path = self._path(user)
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except OSError:
            logger.warning("Could not read cache for %s", user, exc_info=True)
            return {}

        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Corrupt cache document for %s — ignoring", user)
            return {}
        return data if isinstance(data, dict) else {}

    def _save(self, user: str, data: dict[str, Any]) -> None:
        path = self._path(user)
        try:
            self._dir.mkdir(parents=True, exist_ok=True)
            tmp = path.with_suffix(".tmp")
            tmp.write_text(json.dumps(data), encoding="utf-8")
            tmp.replace(path)
        except OSError as exc:
            logger.warning("Cache write failed for %s: %s", user, exc)
            self.evict_expired()


def _detail_to_json(fields: DetailFields) -> dict[str, int]:
    return {
        "totalCommits": fields.total_commits,
        "branchesCount": fields.branches_count,
        "openPRs": fields.open_prs,
        "openIssues": fields.open_issues,
    }


def _detail_from_json(entry: dict[str, Any]) -> DetailFields:
    return DetailFields(
        total_commits=int(entry.get("totalCommits", 0)),
        branches_count=int(entry.get("branchesCount", 1)),
        open_prs=int(entry.get("openPRs", 0)),
        open_issues=int(entry.get("openIssues", 0)),
    )
