"""Temporal filter — selects the repositories visible at a snapshot year."""

from __future__ import annotations

import math
from dataclasses import replace
from datetime import datetime
from typing import Iterable

from repoverse.domain.entities import FilterMode, RepositoryRecord


def filter_records(
    records: Iterable[RepositoryRecord], year: int, mode: FilterMode | str
) -> list[RepositoryRecord]:
    """Keep the records visible in *year*.

    ``all`` keeps repositories created up to *year*; ``active`` keeps those
    last pushed during *year* exactly.  Records missing the relevant date are
    excluded.
    """
    mode = FilterMode(mode)
    if mode is FilterMode.ALL:
        return [r for r in records if r.created_at is not None and r.created_at.year <= year]
    return [r for r in records if r.pushed_at is not None and r.pushed_at.year == year]


class TemporalFilter:
    """Filter shared across requests, with memoised last-commit years.

    The memo is keyed by ``(owner, name)`` and remembers the ``pushed_at`` it
    was computed from, so a newer push replaces the entry.
    """

    def __init__(self) -> None:
        self._last_commit_year: dict[tuple[str, str], tuple[datetime | None, int | None]] = {}

    def enrich_with_last_commit_year(
        self, records: Iterable[RepositoryRecord]
    ) -> list[RepositoryRecord]:
        """Attach ``last_commit_year`` (the year of ``pushed_at``) to each record."""
        enriched: list[RepositoryRecord] = []
        for record in records:
            key = (record.owner, record.name)
            memo = self._last_commit_year.get(key)
            if memo is None or memo[0] != record.pushed_at:
                year = record.pushed_at.year if record.pushed_at else None
                memo = self._last_commit_year[key] = (record.pushed_at, year)
            enriched.append(replace(record, last_commit_year=memo[1]))
        return enriched

    def filter(
        self, records: Iterable[RepositoryRecord], year: int, mode: FilterMode | str
    ) -> list[RepositoryRecord]:
        return filter_records(records, year, mode)

    def clear_cache(self) -> None:
        self._last_commit_year.clear()


def with_snapshot_age(
    records: Iterable[RepositoryRecord], snapshot_date: datetime
) -> list[RepositoryRecord]:
    """Recompute each record's age in whole days as of *snapshot_date* (never negative)."""
    aged: list[RepositoryRecord] = []
    for record in records:
        days = 0
        if record.created_at is not None:
            elapsed = (snapshot_date - record.created_at).total_seconds() / 86_400
            days = max(0, math.floor(elapsed))
        aged.append(replace(record, days_since_creation_at_snapshot=days))
    return aged


def account_creation_year(records: Iterable[RepositoryRecord], today: datetime) -> int:
    """Earliest creation year among *records*, or five years back when there are none."""
    records = list(records)
    if not records:
        return today.year - 5
    return min([r.created_at.year for r in records if r.created_at is not None] + [today.year])
