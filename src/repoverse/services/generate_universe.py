"""Generate-universe use case — the main entry point for the scene payload.

Fetches repositories, falls back to the demo dataset when the rate budget is
exhausted, applies the snapshot filter and ages, and lays out the scene.
"""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Callable

from repoverse.domain.entities import (
    AgeMapping,
    FilterMode,
    RateLimitState,
    RepositoryRecord,
    SnapshotContext,
    UniverseResult,
)
from repoverse.domain.exceptions import (
    RateLimitExceededError,
    RepositoryFetchError,
)
from repoverse.services.demo_data import demo_repositories
from repoverse.services.fetch_repositories import FetchRepositoriesUseCase
from repoverse.services.temporal_filter import (
    TemporalFilter,
    account_creation_year,
    with_snapshot_age,
)
from repoverse.services.universe_layout import layout_universe

logger = logging.getLogger(__name__)

RATE_LIMIT_NOTICE = (
    "GitHub API rate limit reached. Showing a demo universe; "
    "try again after the limit resets."
)
FETCH_ERROR_NOTICE = "Could not reach GitHub. Showing a demo universe."


def snapshot_date_for(year: int, now: datetime) -> datetime:
    """Last second of *year*, never later than *now*."""
    end_of_year = datetime(year, 12, 31, 23, 59, 59, tzinfo=timezone.utc)
    return min(end_of_year, now)


class GenerateUniverseUseCase:
    """Orchestrates fetch → (fallback) → snapshot filter → layout."""

    def __init__(
        self,
        fetcher: FetchRepositoriesUseCase,
        temporal_filter: TemporalFilter | None = None,
        max_eccentricity: float = 0.05,
        spacing_multiplier: float = 0.8,
        lensing_top_k: int = 8,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._fetcher = fetcher
        self._filter = temporal_filter or TemporalFilter()
        self._max_ecc = max_eccentricity
        self._spacing = spacing_multiplier
        self._top_k = lensing_top_k
        self._clock = clock

    async def execute(
        self,
        username: str,
        year: int | None = None,
        filter_mode: FilterMode | str = FilterMode.ACTIVE,
        age_mapping: AgeMapping | str = AgeMapping.OLDER_FARTHER,
    ) -> UniverseResult:
        """Build the scene for *username* as of *year*.

        *year* defaults to the current year; later years are clamped to it, so
        the snapshot date, the filter and the reported year always agree.
        """
        now = datetime.fromtimestamp(self._clock(), tz=timezone.utc)
        if year is None or year > now.year:
            # Years after now collapse onto the current one.
            year = now.year
        context = SnapshotContext(
            date=snapshot_date_for(year, now),
            filter_mode=FilterMode(filter_mode),
            age_mapping=AgeMapping(age_mapping),
        )
        logger.info(
            "Generating universe for %s (year=%d, mode=%s)",
            username,
            year,
            context.filter_mode.value,
        )

        repositories: list[RepositoryRecord]
        rate_limit: RateLimitState | None = None
        notice: str | None = None
        is_demo = False

        # 1. Fetch (UserNotFoundError propagates: no fallback for unknown users)
        try:
            result = await self._fetcher.execute(username, context.filter_mode, year)
            repositories = result.all_repositories
            rate_limit = result.rate_limit
            if rate_limit.is_exhausted:
                logger.warning("Rate limit exhausted for %s — using demo data", username)
                repositories, is_demo, notice = demo_repositories(now), True, RATE_LIMIT_NOTICE
        except RateLimitExceededError as exc:
            logger.warning("%s — using demo data", exc)
            rate_limit = RateLimitState(remaining=0, reset_epoch=exc.reset_epoch)
            repositories, is_demo, notice = demo_repositories(now), True, RATE_LIMIT_NOTICE
        except RepositoryFetchError as exc:
            logger.warning("Fetch failed for %s: %s — using demo data", username, exc)
            repositories, is_demo, notice = demo_repositories(now), True, FETCH_ERROR_NOTICE

        # 2. Snapshot: last-commit year, filter, age at snapshot date
        enriched = self._filter.enrich_with_last_commit_year(repositories)
        visible = self._filter.filter(enriched, year, context.filter_mode)
        aged = with_snapshot_age(visible, context.date)

        # 3. Layout (sun sized from every repository, not only the visible ones)
        total_stars = sum(r.stars for r in enriched)
        layout = layout_universe(
            aged,
            context,
            total_stars,
            max_eccentricity=self._max_ecc,
            spacing_multiplier=self._spacing,
            lensing_top_k=self._top_k,
        )

        return UniverseResult(
            username=username,
            snapshot=context,
            layout=layout,
            rate_limit=rate_limit,
            is_demo=is_demo,
            notice=notice,
            year_range=(account_creation_year(enriched, now), now.year),
        )
