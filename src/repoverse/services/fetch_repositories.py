"""Fetch-repositories use case — the acquisition orchestrator.

Composes the cache store, the remote metadata source and the rate-budget
scheduler into one operation returning the visible (filtered) repositories,
the full set, and the observed rate-limit state.  Only RATE_LIMIT_EXCEEDED,
USER_NOT_FOUND and other whole-list failures escape; everything that goes
wrong during enrichment is absorbed.
"""

from __future__ import annotations

import itertools
import logging
import time
from datetime import datetime, timezone
from typing import Callable

from repoverse.domain.entities import (
    DetailFields,
    FetchResult,
    FilterMode,
    RateLimitState,
    RepositoryRecord,
)
from repoverse.domain.ports.cache_store import RepositoryCacheStore
from repoverse.domain.ports.repo_source import RepoMetadataSource
from repoverse.services.rate_budget import EnrichmentReport, RateBudgetScheduler
from repoverse.services.record_builder import build_record
from repoverse.services.temporal_filter import filter_records

logger = logging.getLogger(__name__)

ASSUMED_LIMIT = 60
ASSUMED_WINDOW_SECONDS = 3600


class FetchRepositoriesUseCase:
    """Orchestrates cache → list → estimate → filter → enrich → cache.

    Parameters
    ----------
    source:
        Adapter for the remote repository-hosting API.
    cache:
        Persistent per-user cache store.
    scheduler:
        Paced enrichment scheduler (normally sharing *source*).
    cached_list_remaining:
        Budget assumed when the list is served from cache (no headers seen).
    min_budget_to_enrich:
        Enrichment is attempted only when the budget exceeds this value.

    Passes for the same user may overlap; only the newest one writes its
    measured details back to the cache.  Bookkeeping for a user is dropped
    as soon as that user has no pass in flight.
    """

    def __init__(
        self,
        source: RepoMetadataSource,
        cache: RepositoryCacheStore,
        scheduler: RateBudgetScheduler,
        cached_list_remaining: int = 60,
        min_budget_to_enrich: int = 20,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._source = source
        self._cache = cache
        self._scheduler = scheduler
        self._cached_remaining = cached_list_remaining
        self._min_budget = min_budget_to_enrich
        self._clock = clock
        self._pass_ids = itertools.count(1)
        # user -> id of the newest pass still running; removed when that pass ends
        self._latest_pass: dict[str, int] = {}

    # ── Public entry point ──────────────────────────────────────────────

    async def execute(
        self,
        user: str,
        filter_mode: FilterMode | str = FilterMode.ALL,
        year: int | None = None,
    ) -> FetchResult:
        """Run the acquisition pipeline for *user* as of *year*."""
        pass_id = next(self._pass_ids)
        self._latest_pass[user] = pass_id
        try:
            return await self._run(user, filter_mode, year, pass_id)
        finally:
            if self._latest_pass.get(user) == pass_id:
                del self._latest_pass[user]

    async def _run(
        self, user: str, filter_mode: FilterMode | str, year: int | None, pass_id: int
    ) -> FetchResult:
        now = datetime.fromtimestamp(self._clock(), tz=timezone.utc)
        year = year if year is not None else now.year

        # 1-2. Basic list from cache, else from the API
        raw_repos = self._cache.get_basic(user)
        if raw_repos is not None:
            logger.info("Serving repository list for %s from cache", user)
            rate_limit = RateLimitState(
                remaining=self._cached_remaining,
                reset_epoch=int(self._clock()) + ASSUMED_WINDOW_SECONDS,
                limit=ASSUMED_LIMIT,
            )
        else:
            raw_repos, rate_limit = await self._source.list_repositories(user)
            self._cache.set_basic(user, raw_repos)

        # 3. Transform with estimated counts
        all_records = [
            build_record(raw, owner=user, now=now)
            for raw in raw_repos
            if isinstance(raw, dict) and raw.get("name")
        ]

        # 4. Visible subset for the requested year / mode
        visible = filter_records(all_records, year, filter_mode)

        # 5. Merge fresh cached details
        cached = self._cache.get_all_detail(user)
        visible = [_merge_cached(r, cached) for r in visible]

        # 6. Enrich what the cache does not cover (forks and PR counts are re-verified)
        needing = [
            r
            for r in visible
            if r.name not in cached or r.is_fork or cached[r.name].open_prs > 0
        ]
        report = EnrichmentReport(remaining=rate_limit.remaining)
        if needing and rate_limit.remaining > self._min_budget:
            logger.info("Enriching %d of %d visible repositories", len(needing), len(visible))
            report = await self._scheduler.run(needing, rate_limit.remaining)

            # 7. Persist measured details unless a newer pass has started
            if self._latest_pass.get(user) == pass_id:
                for name, measured in report.enriched.items():
                    self._cache.set_detail(user, name, measured.details)
            else:
                logger.info("Discarding stale enrichment for %s (superseded)", user)
        elif needing:
            logger.warning(
                "Rate budget too low (%d) to enrich %d repositories — keeping estimates",
                rate_limit.remaining,
                len(needing),
            )

        visible = [report.apply(r) for r in visible]
        full = [report.apply(_merge_cached(r, cached)) for r in all_records]

        # 8. Done
        return FetchResult(repositories=visible, all_repositories=full, rate_limit=rate_limit)


def _merge_cached(
    record: RepositoryRecord, cached: dict[str, DetailFields]
) -> RepositoryRecord:
    details = cached.get(record.name)
    return record.with_details(details) if details is not None else record
