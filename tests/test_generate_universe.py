from __future__ import annotations

import asyncio
from datetime import datetime, timezone

import pytest

from repoverse.domain.entities import AgeMapping, FilterMode, RepositoryRecord, SnapshotContext
from repoverse.domain.exceptions import (
    RateLimitExceededError,
    RepositoryFetchError,
    UserNotFoundError,
)
from repoverse.services.demo_data import DEMO_OWNER
from repoverse.services.fetch_repositories import FetchRepositoriesUseCase
from repoverse.services.generate_universe import (
    FETCH_ERROR_NOTICE,
    RATE_LIMIT_NOTICE,
    GenerateUniverseUseCase,
    snapshot_date_for,
)
from repoverse.services.rate_budget import RateBudgetScheduler
from repoverse.services.universe_layout import layout_universe

from conftest import NOW, FakeSource, make_raw_repo

TWO_REPOS = [
    make_raw_repo("A", size=0, created_at="2020-03-01T00:00:00Z", pushed_at="2020-06-01T00:00:00Z"),
    make_raw_repo("B", size=0, created_at="2022-03-01T00:00:00Z", pushed_at="2022-06-01T00:00:00Z"),
]


def _generate(source, cache, clock) -> GenerateUniverseUseCase:
    fetcher = FetchRepositoriesUseCase(
        source, cache, RateBudgetScheduler(source, batch_delay=0), clock=clock
    )
    return GenerateUniverseUseCase(fetcher, clock=clock)


def test_snapshot_date_is_end_of_year_capped_at_now() -> None:
    assert snapshot_date_for(2021, NOW) == datetime(2021, 12, 31, 23, 59, 59, tzinfo=timezone.utc)
    assert snapshot_date_for(NOW.year, NOW) == NOW


def test_snapshot_scenario(cache, clock) -> None:
    result = asyncio.run(
        _generate(FakeSource(TWO_REPOS), cache, clock).execute("octocat", 2021, FilterMode.ALL)
    )

    entries = result.layout.entries
    assert [e.record.name for e in entries] == ["A"]
    assert entries[0].visual.radius == 1.6
    assert entries[0].record.days_since_creation_at_snapshot == 670
    assert result.layout.sun_radius == 4
    assert result.year_range == (2020, NOW.year)
    assert result.is_demo is False


def test_active_mode_for_year_without_pushes_is_empty(cache, clock) -> None:
    result = asyncio.run(
        _generate(FakeSource(TWO_REPOS), cache, clock).execute("octocat", 2021, "active")
    )

    assert result.layout.entries == []
    assert result.layout.stats.total_repos == 0


@pytest.mark.parametrize(
    "error,notice",
    [
        (RateLimitExceededError("limit", reset_epoch=123), RATE_LIMIT_NOTICE),
        (RepositoryFetchError("down"), FETCH_ERROR_NOTICE),
    ],
)
def test_list_failures_fall_back_to_demo(cache, clock, error, notice) -> None:
    source = FakeSource()
    source.list_error = error

    result = asyncio.run(_generate(source, cache, clock).execute("octocat"))

    assert result.is_demo is True
    assert result.notice == notice
    assert result.layout.entries
    assert all(e.record.owner == DEMO_OWNER for e in result.layout.entries)


def test_rate_limit_fallback_reports_reset(cache, clock) -> None:
    source = FakeSource()
    source.list_error = RateLimitExceededError("limit", reset_epoch=123)

    result = asyncio.run(_generate(source, cache, clock).execute("octocat"))

    assert result.rate_limit.remaining == 0
    assert result.rate_limit.reset_epoch == 123


def test_exhausted_budget_falls_back_to_demo(cache, clock) -> None:
    result = asyncio.run(
        _generate(FakeSource(TWO_REPOS, remaining=0), cache, clock).execute("octocat", 2023, "all")
    )

    assert result.is_demo is True
    assert {e.record.name for e in result.layout.entries} >= {"api-server", "rust-cli"}


def test_demo_active_mode_shows_this_years_work(cache, clock) -> None:
    source = FakeSource()
    source.list_error = RepositoryFetchError("down")

    result = asyncio.run(_generate(source, cache, clock).execute("octocat"))

    names = {e.record.name for e in result.layout.entries}
    assert "api-server" in names
    assert "dotfiles" not in names


def test_unknown_user_propagates(cache, clock) -> None:
    source = FakeSource()
    source.list_error = UserNotFoundError("User 'ghost' not found.")

    with pytest.raises(UserNotFoundError):
        asyncio.run(_generate(source, cache, clock).execute("ghost"))


def test_layout_statistics_and_lensing() -> None:
    records = [
        RepositoryRecord(name=f"r{i}", owner="o", size=10**i, stars=i, forks=1, total_commits=5)
        for i in range(10)
    ]
    context = SnapshotContext(date=NOW, age_mapping=AgeMapping.OLDER_CLOSER)

    layout = layout_universe(records, context, total_stars=0, lensing_top_k=3)

    assert layout.sun_radius == 4
    assert layout.stats.total_repos == 10
    assert layout.stats.total_commits == 50
    assert layout.stats.total_forks == 10
    assert layout.lensing == [9, 8, 7]
    radii = [e.visual.orbital_radius for e in layout.entries]
    assert radii == sorted(radii)


def test_future_year_is_clamped_to_current_year(cache, clock) -> None:
    repos = TWO_REPOS + [make_raw_repo("C", pushed_at="2024-05-01T00:00:00Z")]

    result = asyncio.run(
        _generate(FakeSource(repos), cache, clock).execute("octocat", 2030, "active")
    )

    assert result.snapshot.year == NOW.year
    assert result.snapshot.date == NOW
    assert [e.record.name for e in result.layout.entries] == ["C"]
