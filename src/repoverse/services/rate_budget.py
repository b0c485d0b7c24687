"""Rate-budget scheduler — paced, batched enrichment of repository records.

Batches run strictly one after another; the records inside one batch are
enriched concurrently.  Before each batch the estimated remaining budget is
checked against a safety threshold, and after each batch it is decremented
by an accounting estimate (3 requests per record, +1 per fork with a
parent).  The estimate is a pacing policy, not a guarantee: it is only
re-synchronised with the server on the next repository-list fetch.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field, replace
from typing import Sequence

from repoverse.domain.entities import DetailFields, RepositoryRecord
from repoverse.domain.ports.repo_source import RepoMetadataSource

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 6
DEFAULT_BATCH_DELAY = 0.2  # seconds
DEFAULT_SAFETY_THRESHOLD = 5
REQUESTS_PER_RECORD = 3


@dataclass(frozen=True, slots=True)
class EnrichedDetail:
    """Measured values for one record."""

    details: DetailFields
    prs_to_parent: int = 0


@dataclass
class EnrichmentReport:
    """Outcome of one scheduler run."""

    enriched: dict[str, EnrichedDetail] = field(default_factory=dict)
    failed: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    batches_run: int = 0
    remaining: int = 0

    def apply(self, record: RepositoryRecord) -> RepositoryRecord:
        """Return *record* upgraded with its measured values, if any."""
        measured = self.enriched.get(record.name)
        if measured is None:
            return record
        return replace(record.with_details(measured.details), prs_to_parent=measured.prs_to_parent)


def partition(records: Sequence[RepositoryRecord], size: int) -> list[list[RepositoryRecord]]:
    """Split *records* into consecutive batches of at most *size*."""
    if size < 1:
        raise ValueError("batch size must be at least 1")
    return [list(records[i : i + size]) for i in range(0, len(records), size)]


def estimated_cost(batch: Sequence[RepositoryRecord]) -> int:
    """Requests a batch is assumed to consume."""
    forks_with_parent = sum(1 for r in batch if r.is_fork and r.parent is not None)
    return len(batch) * REQUESTS_PER_RECORD + forks_with_parent


class RateBudgetScheduler:
    """Enriches records in paced batches within an estimated request budget."""

    def __init__(
        self,
        source: RepoMetadataSource,
        batch_size: int = DEFAULT_BATCH_SIZE,
        batch_delay: float = DEFAULT_BATCH_DELAY,
        safety_threshold: int = DEFAULT_SAFETY_THRESHOLD,
    ) -> None:
        self._source = source
        self._batch_size = batch_size
        self._batch_delay = batch_delay
        self._safety_threshold = safety_threshold

    async def run(
        self, records: Sequence[RepositoryRecord], remaining: int
    ) -> EnrichmentReport:
        """Enrich *records* batch by batch until done or the budget runs low."""
        report = EnrichmentReport(remaining=remaining)
        batches = partition(records, self._batch_size)

        for index, batch in enumerate(batches):
            if report.remaining <= self._safety_threshold:
                skipped = [r.name for b in batches[index:] for r in b]
                report.skipped.extend(skipped)
                logger.warning(
                    "Rate budget low (%d remaining) — skipping %d repositories",
                    report.remaining,
                    len(skipped),
                )
                break

            logger.debug(
                "Enriching batch %d/%d (%d repositories)", index + 1, len(batches), len(batch)
            )
            results = await asyncio.gather(*(self._enrich_one(r) for r in batch))
            for record, measured in zip(batch, results):
                if measured is None:
                    report.failed.append(record.name)
                else:
                    report.enriched[record.name] = measured

            report.batches_run += 1
            report.remaining -= estimated_cost(batch)

            if index < len(batches) - 1:
                await asyncio.sleep(self._batch_delay)

        logger.info(
            "Enrichment finished: %d measured, %d failed, %d skipped, ~%d requests left",
            len(report.enriched),
            len(report.failed),
            len(report.skipped),
            report.remaining,
        )
        return report

    async def _enrich_one(self, record: RepositoryRecord) -> EnrichedDetail | None:
        """Measure one record; ``None`` when commits, branches and issues all failed."""
        owner, name = record.owner, record.name
        calls = [
            self._source.count_commits(owner, name),
            self._source.count_branches(owner, name),
            self._source.list_open_issues_and_prs(owner, name),
        ]
        if record.is_fork and record.parent is not None:
            calls.append(
                self._source.count_prs_from_fork_to_parent(
                    owner,
                    name,
                    record.parent.owner,
                    record.parent.name,
                    record.default_branch,
                )
            )

        results = await asyncio.gather(*calls, return_exceptions=True)
        errors = [r for r in results if isinstance(r, Exception)]
        if all(isinstance(r, Exception) for r in results[:REQUESTS_PER_RECORD]):
            logger.warning("Detail fetch failed for %s/%s: %s", owner, name, errors[0])
            return None
        if errors:
            logger.warning(
                "Partial detail fetch for %s/%s (%d of %d calls failed): %s",
                owner,
                name,
                len(errors),
                len(results),
                errors[0],
            )

        # Each successful call is applied on its own; failures keep the prior value.
        prior = record.details
        commits, branches, issues = results[0], results[1], results[2]
        open_prs, open_issues = prior.open_prs, prior.open_issues
        if isinstance(issues, tuple):
            open_prs, open_issues = issues

        prs_to_parent = record.prs_to_parent
        if len(results) > REQUESTS_PER_RECORD and not isinstance(results[3], Exception):
            prs_to_parent = results[3]

        return EnrichedDetail(
            details=DetailFields(
                total_commits=prior.total_commits if isinstance(commits, Exception) else commits,
                branches_count=prior.branches_count if isinstance(branches, Exception) else branches,
                open_prs=open_prs,
                open_issues=open_issues,
            ),
            prs_to_parent=prs_to_parent,
        )
