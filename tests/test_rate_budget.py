from __future__ import annotations

import asyncio

import pytest

from repoverse.domain.entities import MetricProvenance, ParentRef, RepositoryRecord
from repoverse.services.rate_budget import RateBudgetScheduler, estimated_cost, partition

from conftest import FakeSource


def _records(count: int) -> list[RepositoryRecord]:
    return [RepositoryRecord(name=f"repo-{i}", owner="octocat", total_commits=10) for i in range(count)]


def _scheduler(source: FakeSource, batch_size: int = 6) -> RateBudgetScheduler:
    return RateBudgetScheduler(source, batch_size=batch_size, batch_delay=0)


def test_partition() -> None:
    batches = partition(_records(13), 6)
    assert [len(b) for b in batches] == [6, 6, 1]
    with pytest.raises(ValueError):
        partition(_records(1), 0)


def test_estimated_cost_counts_fork_parent_calls() -> None:
    fork = RepositoryRecord(
        name="fork", owner="o", is_fork=True, parent=ParentRef("up/fork", "up", "fork")
    )
    orphan_fork = RepositoryRecord(name="orphan", owner="o", is_fork=True)
    assert estimated_cost(_records(2) + [fork, orphan_fork]) == 4 * 3 + 1


def test_below_threshold_processes_nothing() -> None:
    source = FakeSource()
    records = _records(4)

    report = asyncio.run(_scheduler(source).run(records, remaining=4))

    assert report.batches_run == 0
    assert report.enriched == {}
    assert report.skipped == [r.name for r in records]
    assert source.calls == []
    assert all(report.apply(r) is r for r in records)


def test_stops_when_budget_runs_low() -> None:
    source = FakeSource()

    report = asyncio.run(_scheduler(source, batch_size=2).run(_records(6), remaining=12))

    # 12 -> 6 after the first batch; the second batch leaves 0, under the threshold.
    assert report.batches_run == 2
    assert len(report.enriched) == 4
    assert report.skipped == ["repo-4", "repo-5"]
    assert report.remaining == 0


def test_measured_values_replace_estimates() -> None:
    source = FakeSource(commits=99, branches=4, prs_and_issues=(3, 8))
    record = _records(1)[0]

    report = asyncio.run(_scheduler(source).run([record], remaining=60))
    upgraded = report.apply(record)

    assert upgraded.total_commits == 99
    assert upgraded.branches_count == 4
    assert upgraded.open_prs == 3
    assert upgraded.open_issues == 8
    assert upgraded.metrics is MetricProvenance.MEASURED
    assert report.remaining == 57


def test_partial_failure_keeps_estimate() -> None:
    source = FakeSource()
    source.failing.add("repo-1")
    records = _records(3)

    report = asyncio.run(_scheduler(source).run(records, remaining=60))

    assert report.failed == ["repo-1"]
    assert set(report.enriched) == {"repo-0", "repo-2"}
    kept = report.apply(records[1])
    assert kept.total_commits == 10
    assert kept.metrics is MetricProvenance.ESTIMATED


def test_fork_pr_count_is_fetched() -> None:
    source = FakeSource(fork_prs=5)
    fork = RepositoryRecord(
        name="fork", owner="octocat", is_fork=True, parent=ParentRef("up/fork", "up", "fork")
    )

    report = asyncio.run(_scheduler(source).run([fork], remaining=60))

    assert ("fork_prs", "fork") in source.calls
    assert report.apply(fork).prs_to_parent == 5
    assert report.remaining == 56


def test_failed_call_keeps_only_its_own_field() -> None:
    source = FakeSource(commits=99, branches=4)
    source.failing_ops.add("issues")
    record = RepositoryRecord(name="repo", owner="octocat", total_commits=10, open_issues=6)

    report = asyncio.run(_scheduler(source).run([record], remaining=60))
    upgraded = report.apply(record)

    assert report.failed == []
    assert upgraded.total_commits == 99
    assert upgraded.branches_count == 4
    assert upgraded.open_prs == 0
    assert upgraded.open_issues == 6


def test_fork_pr_failure_keeps_measured_counts() -> None:
    source = FakeSource(commits=31)
    source.failing_ops.add("fork_prs")
    fork = RepositoryRecord(
        name="fork", owner="octocat", is_fork=True, prs_to_parent=2,
        parent=ParentRef("up/fork", "up", "fork"),
    )

    upgraded = asyncio.run(_scheduler(source).run([fork], remaining=60)).apply(fork)

    assert upgraded.total_commits == 31
    assert upgraded.prs_to_parent == 2
