"""Pydantic response DTOs for the API boundary."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

from repoverse.domain.entities import SceneEntry, UniverseResult


class RepositorySummary(BaseModel):
    """The record fields the rendering layer displays."""

    name: str
    owner: str
    description: str
    language: str | None
    size: int
    stars: int
    forks: int
    watchers: int
    total_commits: int
    branches_count: int
    open_prs: int
    open_issues: int
    prs_to_parent: int
    is_fork: bool
    parent: str | None
    created_at: datetime | None
    pushed_at: datetime | None
    has_recent_commits: bool
    days_since_creation_at_snapshot: int | None
    metrics: str


class VisualParametersModel(BaseModel):
    radius: float
    mass: float
    orbital_radius: float
    orbital_speed: float
    eccentricity: float
    ring_inner_radius: float
    ring_outer_radius: float
    satellite_count: int
    satellite_orbit_radii: list[float]
    satellite_sizes: list[float]
    spin_speed: float
    halo_intensity: float
    pr_satellite_count: int
    pr_orbit_radius: float | None
    comet_orbit_radius: float | None
    variant: int
    color: int


class Body(BaseModel):
    record: RepositorySummary
    visual: VisualParametersModel

    @classmethod
    def from_entry(cls, entry: SceneEntry) -> Body:
        r, v = entry.record, entry.visual
        return cls(
            record=RepositorySummary(
                name=r.name,
                owner=r.owner,
                description=r.description,
                language=r.language,
                size=r.size,
                stars=r.stars,
                forks=r.forks,
                watchers=r.watchers,
                total_commits=r.total_commits,
                branches_count=r.branches_count,
                open_prs=r.open_prs,
                open_issues=r.open_issues,
                prs_to_parent=r.prs_to_parent,
                is_fork=r.is_fork,
                parent=r.parent.full_name if r.parent else None,
                created_at=r.created_at,
                pushed_at=r.pushed_at,
                has_recent_commits=r.has_recent_commits,
                days_since_creation_at_snapshot=r.days_since_creation_at_snapshot,
                metrics=r.metrics.value,
            ),
            visual=VisualParametersModel(
                radius=v.radius,
                mass=v.mass,
                orbital_radius=v.orbital_radius,
                orbital_speed=v.orbital_speed,
                eccentricity=v.eccentricity,
                ring_inner_radius=v.ring_inner_radius,
                ring_outer_radius=v.ring_outer_radius,
                satellite_count=v.satellite_count,
                satellite_orbit_radii=list(v.satellite_orbit_radii),
                satellite_sizes=list(v.satellite_sizes),
                spin_speed=v.spin_speed,
                halo_intensity=v.halo_intensity,
                pr_satellite_count=v.pr_satellite_count,
                pr_orbit_radius=v.pr_orbit_radius,
                comet_orbit_radius=v.comet_orbit_radius,
                variant=v.variant,
                color=v.color,
            ),
        )


class RateLimitModel(BaseModel):
    remaining: int
    reset_epoch: int
    limit: int


class StatsModel(BaseModel):
    total_repos: int
    total_commits: int
    total_stars: int
    total_forks: int


class UniverseResponse(BaseModel):
    """Successful response from ``GET /universe/{username}``."""

    username: str
    year: int
    snapshot_date: datetime
    filter_mode: str
    age_mapping: str
    is_demo: bool
    notice: str | None
    rate_limit: RateLimitModel | None
    year_range: tuple[int, int]
    sun_radius: float
    stats: StatsModel
    lensing: list[int]
    bodies: list[Body]

    @classmethod
    def from_result(cls, result: UniverseResult) -> UniverseResponse:
        layout, snapshot = result.layout, result.snapshot
        rate_limit = result.rate_limit
        return cls(
            username=result.username,
            year=snapshot.year,
            snapshot_date=snapshot.date,
            filter_mode=snapshot.filter_mode.value,
            age_mapping=snapshot.age_mapping.value,
            is_demo=result.is_demo,
            notice=result.notice,
            rate_limit=(
                RateLimitModel(
                    remaining=rate_limit.remaining,
                    reset_epoch=rate_limit.reset_epoch,
                    limit=rate_limit.limit,
                )
                if rate_limit
                else None
            ),
            year_range=result.year_range,
            sun_radius=layout.sun_radius,
            stats=StatsModel(
                total_repos=layout.stats.total_repos,
                total_commits=layout.stats.total_commits,
                total_stars=layout.stats.total_stars,
                total_forks=layout.stats.total_forks,
            ),
            lensing=layout.lensing,
            bodies=[Body.from_entry(e) for e in layout.entries],
        )


class ErrorResponse(BaseModel):
    """Standard error envelope returned on all failure paths."""

    status: str = "error"
    code: str
    message: str
