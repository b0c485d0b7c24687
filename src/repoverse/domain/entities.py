"""Domain entities — pure data structures with no external dependencies."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum


class FilterMode(str, Enum):
    """Which repositories a snapshot year shows."""

    ACTIVE = "active"  # pushed during the year
    ALL = "all"  # created up to the year


class AgeMapping(str, Enum):
    """How repository age maps onto orbital distance."""

    OLDER_FARTHER = "older-farther"
    OLDER_CLOSER = "older-closer"


class MetricProvenance(str, Enum):
    """Whether commit/branch/PR counts were measured or estimated."""

    ESTIMATED = "estimated"
    MEASURED = "measured"


@dataclass(frozen=True, slots=True)
class ParentRef:
    """The upstream repository of a fork."""

    full_name: str
    owner: str
    name: str


@dataclass(frozen=True, slots=True)
class DetailFields:
    """Measured enrichment values for one repository (also the cached detail)."""

    total_commits: int
    branches_count: int
    open_prs: int
    open_issues: int


@dataclass(frozen=True, slots=True)
class RepositoryRecord:
    """One repository, as consumed by the filter and mapping stages."""

    name: str
    owner: str
    size: int = 0  # KB
    total_commits: int = 0
    branches_count: int = 1
    open_prs: int = 0
    open_issues: int = 0
    commits_last_30: int = 0
    stars: int = 0
    forks: int = 0
    watchers: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None
    pushed_at: datetime | None = None
    language: str | None = None
    description: str = ""
    default_branch: str = "main"
    is_fork: bool = False
    parent: ParentRef | None = None
    prs_to_parent: int = 0
    has_recent_commits: bool = False
    days_since_creation: int = 0
    last_commit_year: int | None = None
    days_since_creation_at_snapshot: int | None = None
    metrics: MetricProvenance = MetricProvenance.ESTIMATED

    def with_details(self, details: DetailFields) -> RepositoryRecord:
        """Return a copy carrying measured counts from *details*."""
        return replace(
            self,
            total_commits=details.total_commits,
            branches_count=details.branches_count,
            open_prs=details.open_prs,
            open_issues=details.open_issues,
            metrics=MetricProvenance.MEASURED,
        )

    @property
    def details(self) -> DetailFields:
        return DetailFields(
            total_commits=self.total_commits,
            branches_count=self.branches_count,
            open_prs=self.open_prs,
            open_issues=self.open_issues,
        )


@dataclass(frozen=True, slots=True)
class RateLimitState:
    """Rate-limit counters observed on (or assumed for) a list fetch."""

    remaining: int
    reset_epoch: int
    limit: int = 60

    @property
    def is_exhausted(self) -> bool:
        return self.remaining == 0


@dataclass(frozen=True, slots=True)
class FetchResult:
    """Output of one acquisition pass."""

    repositories: list[RepositoryRecord]
    all_repositories: list[RepositoryRecord]
    rate_limit: RateLimitState


@dataclass(frozen=True, slots=True)
class SnapshotContext:
    """Point-in-time view that drives one full recomputation pass."""

    date: datetime
    filter_mode: FilterMode = FilterMode.ACTIVE
    age_mapping: AgeMapping = AgeMapping.OLDER_FARTHER

    @property
    def year(self) -> int:
        return self.date.year


@dataclass(frozen=True, slots=True)
class VisualParameters:
    """Derived, never persisted, render parameters for one repository."""

    radius: float
    mass: float
    orbital_radius: float
    orbital_speed: float
    eccentricity: float
    ring_inner_radius: float
    ring_outer_radius: float
    satellite_count: int
    satellite_orbit_radii: tuple[float, ...]
    satellite_sizes: tuple[float, ...] = ()
    spin_speed: float = 0.0
    halo_intensity: float = 0.1
    pr_satellite_count: int = 0
    pr_orbit_radius: float | None = None
    comet_orbit_radius: float | None = None
    variant: int = 1
    color: int = 0x4A5F35


@dataclass(frozen=True, slots=True)
class SceneEntry:
    """A repository paired with its visual parameters."""

    record: RepositoryRecord
    visual: VisualParameters


@dataclass(frozen=True, slots=True)
class UniverseStats:
    """Aggregate counters for the active snapshot."""

    total_repos: int = 0
    total_commits: int = 0
    total_stars: int = 0
    total_forks: int = 0


@dataclass(frozen=True, slots=True)
class UniverseLayout:
    """Everything the rendering layer needs for one snapshot."""

    sun_radius: float
    entries: list[SceneEntry] = field(default_factory=list)
    stats: UniverseStats = field(default_factory=UniverseStats)
    lensing: list[int] = field(default_factory=list)  # entry indices, heaviest first


@dataclass(frozen=True, slots=True)
class UniverseResult:
    """The final structured output returned to the caller."""

    username: str
    snapshot: SnapshotContext
    layout: UniverseLayout
    rate_limit: RateLimitState | None = None
    is_demo: bool = False
    notice: str | None = None
    year_range: tuple[int, int] = (0, 0)
