"""Scene layout — applies the mapping engine to one snapshot."""

from __future__ import annotations

from typing import Sequence

from repoverse.domain.entities import (
    RepositoryRecord,
    SceneEntry,
    SnapshotContext,
    UniverseLayout,
    UniverseStats,
)
from repoverse.services.procedural_mapping import (
    MAX_ECCENTRICITY,
    SPACING_MULTIPLIER,
    sun_radius,
    top_k_by_mass,
    visual_parameters,
)


def compute_stats(records: Sequence[RepositoryRecord]) -> UniverseStats:
    return UniverseStats(
        total_repos=len(records),
        total_commits=sum(r.total_commits for r in records),
        total_stars=sum(r.stars for r in records),
        total_forks=sum(r.forks for r in records),
    )


def layout_universe(
    records: Sequence[RepositoryRecord],
    context: SnapshotContext,
    total_stars: int,
    *,
    max_eccentricity: float = MAX_ECCENTRICITY,
    spacing_multiplier: float = SPACING_MULTIPLIER,
    lensing_top_k: int = 8,
) -> UniverseLayout:
    """Build the full scene for *records* (already filtered and aged for *context*).

    The sun is sized from *total_stars* across every repository, not only the
    visible ones, so it stays stable while the user scrubs the timeline.
    Entry order is input order; position in the list drives orbit spacing.
    """
    sun = sun_radius(total_stars)
    max_recent30 = max((r.commits_last_30 for r in records), default=0) or 1

    entries = [
        SceneEntry(
            record=record,
            visual=visual_parameters(
                record,
                index,
                age_mapping=context.age_mapping,
                sun=sun,
                max_recent30=max_recent30,
                max_eccentricity=max_eccentricity,
                spacing_multiplier=spacing_multiplier,
            ),
        )
        for index, record in enumerate(records)
    ]

    return UniverseLayout(
        sun_radius=sun,
        entries=entries,
        stats=compute_stats(records),
        lensing=top_k_by_mass(entries, lensing_top_k),
    )
