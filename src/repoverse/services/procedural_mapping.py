"""Procedural mapping — repository metrics → visual parameters.

Every function here is pure and total: the same inputs always give the same
outputs, and out-of-range inputs are clamped rather than rejected.  The
rendering layer re-derives these values on every snapshot change, so nothing
is persisted and nothing may depend on randomness.
"""

from __future__ import annotations

import math
from typing import Sequence

from repoverse.domain.entities import (
    AgeMapping,
    RepositoryRecord,
    SceneEntry,
    VisualParameters,
)

# ── Tunables ────────────────────────────────────────────────────────────────

BODY_RADIUS_MIN = 1.6
BODY_RADIUS_MAX = 18.0
SUN_RADIUS_MIN = 4.0
SUN_RADIUS_MAX = 40.0
MAX_SATELLITES = 8
MAX_PR_SATELLITES = 10

BASE_ORBIT_SPEED = 0.005
ORBIT_SPEED_SPAN = 0.005
BASE_SPIN_SPEED = 0.001
SPIN_SPEED_SPAN = 0.02

BASE_ORBIT_RADIUS = 30.0
AGE_FACTOR = 0.5
OLDER_CLOSER_HORIZON_DAYS = 365 * 10
SUN_MARGIN = 15.0
MIN_SPACING = 15.0
SPACING_MULTIPLIER = 0.8
MAX_ECCENTRICITY = 0.05

COMET_ORBIT_FACTOR = 2.0
VARIANT_COUNT = 8

LANGUAGE_COLORS: dict[str, int] = {
    "Dart": 0x00D4AA,
    "JavaScript": 0xF7DF1E,
    "TypeScript": 0x3178C6,
    "Python": 0x3776AB,
    "Java": 0xED8B00,
    "Kotlin": 0x7F52FF,
    "Swift": 0xFA7343,
    "C#": 0x239120,
    "Go": 0x00ADD8,
    "Rust": 0x000000,
    "C++": 0x00599C,
    "C": 0xA8B9CC,
    "PHP": 0x777BB4,
    "Ruby": 0xCC342D,
    "HTML": 0xE34F26,
    "CSS": 0x1572B6,
    "SQL": 0x336791,
    "R": 0x276DC3,
    "Shell": 0x89E051,
    "YAML": 0xCB171E,
    "Solidity": 0xAA6746,
    "ShaderLab": 0x222C37,
    "Jupyter Notebook": 0xDA5B0B,
    "PowerShell": 0x012456,
    "Batchfile": 0xC1F12E,
    "Dockerfile": 0x384D54,
    "Svelte": 0xFF3E00,
    "Vue": 0x41B883,
    "Astro": 0xFF5D01,
    "Markdown": 0x083FA1,
    "MATLAB": 0xE16737,
    "Scala": 0xDC322F,
    "HLSL": 0xAACE60,
    "GLSL": 0x5686A5,
    "JSON": 0x292929,
    "TOML": 0x9C6A5E,
}
DEFAULT_COLOR = 0x4A5F35


# ── Helpers ─────────────────────────────────────────────────────────────────


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def _log10p(x: float) -> float:
    """log10(x + 1), with negative inputs treated as zero."""
    return math.log10(max(x, 0) + 1)


def _log2p(x: float) -> float:
    return math.log2(max(x, 0) + 1)


def string_hash(text: str) -> int:
    """Deterministic 32-bit rolling hash (``h * 31 + unit``) over UTF-16 code units."""
    encoded = text.encode("utf-16-le")
    h = 0
    for i in range(0, len(encoded), 2):
        unit = encoded[i] | (encoded[i + 1] << 8)
        h = (h * 31 + unit) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return abs(h)


# ── Body ────────────────────────────────────────────────────────────────────


def body_radius(size: float) -> float:
    """Planet radius from repository size in KB."""
    return clamp(_log10p(size) * 1.5, BODY_RADIUS_MIN, BODY_RADIUS_MAX)


def sun_radius(sum_stars: float) -> float:
    """Central body radius from the user's total stars."""
    return clamp(_log10p(sum_stars) * 300, SUN_RADIUS_MIN, SUN_RADIUS_MAX)


def mass(radius: float, size: float) -> float:
    """Scalar mass consumed by the external lensing effect."""
    return clamp(radius * (1 + _log10p(size)), 0.5, 100.0)


def halo_intensity(stars: float) -> float:
    return clamp(_log10p(stars) * 0.6, 0.1, 3.0)


def language_color(language: str | None) -> int:
    return LANGUAGE_COLORS.get(language or "", DEFAULT_COLOR)


def variant_index(name: str, count: int = VARIANT_COUNT) -> int:
    """1-based texture/model variant, stable for a given repository name."""
    return string_hash(name) % count + 1


# ── Motion ──────────────────────────────────────────────────────────────────


def _normalized_activity(recent30: float, max_recent30: float) -> float:
    denominator = _log10p(max_recent30)
    if denominator <= 0:
        return 0.0
    return clamp(_log10p(recent30) / denominator, 0.0, 1.0)


def orbital_speed(recent30: float, max_recent30: float) -> float:
    """Angular speed, monotone in recent commit activity."""
    return BASE_ORBIT_SPEED + _normalized_activity(recent30, max_recent30) * ORBIT_SPEED_SPAN


def spin_speed(recent30: float, max_recent30: float) -> float:
    return BASE_SPIN_SPEED + _normalized_activity(recent30, max_recent30) * SPIN_SPEED_SPAN


def eccentricity(name: str, max_eccentricity: float = MAX_ECCENTRICITY) -> float:
    """Orbit eccentricity in ``[0, max_eccentricity)`` derived from the name."""
    return (string_hash(name) % 1000) / 1000 * max_eccentricity


def orbital_radius(
    days_old: float,
    index: int,
    mode: AgeMapping | str = AgeMapping.OLDER_FARTHER,
    base: float = BASE_ORBIT_RADIUS,
    age_factor: float = AGE_FACTOR,
    sun_radius: float = 0.0,
    body_radius: float = 0.0,
    max_eccentricity: float = MAX_ECCENTRICITY,
    spacing_multiplier: float = SPACING_MULTIPLIER,
) -> float:
    """Semi-major axis for the *index*-th body.

    The age term places older repositories farther out (or closer, under
    ``older-closer``), never inside ``sun_radius + SUN_MARGIN``.  Each index
    then adds a spacing wide enough for the body's apoapsis, so radii are
    strictly increasing in *index* for fixed other arguments.
    """
    days_old = max(days_old, 0)
    if AgeMapping(mode) is AgeMapping.OLDER_CLOSER:
        normalized_age = min(days_old / OLDER_CLOSER_HORIZON_DAYS, 1.0)
        age_radius = base + age_factor * math.sqrt(OLDER_CLOSER_HORIZON_DAYS) * (
            1.0 - normalized_age
        )
    else:
        age_radius = base + age_factor * math.sqrt(days_old)

    min_distance = sun_radius + SUN_MARGIN
    age_radius = max(age_radius, min_distance)

    spacing = max(MIN_SPACING, body_radius * 2 * (1 + max_eccentricity)) * spacing_multiplier
    return age_radius + index * spacing


# ── Satellites and rings ────────────────────────────────────────────────────


def satellite_count(branches: int) -> int:
    """One moon per branch, at least one (the default branch), at most eight."""
    return int(clamp(branches, 1, MAX_SATELLITES))


def satellite_orbit_radius(radius: float, satellite_index: int) -> float:
    base_gap = max(radius * 0.15, 1.0)
    spacing = max(radius * 0.12, 0.8)
    return radius + base_gap + satellite_index * spacing


def satellite_size(branches: int, radius: float, is_main: bool = False) -> float:
    size = clamp(_log2p(branches) * 0.4, 0.2, radius * 0.4)
    return size * 1.5 if is_main else size


def ring_dimensions(radius: float, branches: int) -> tuple[float, float]:
    """``(inner, outer)`` ring radii; the ring always lies outside the body."""
    inner_gap = max(radius * 0.05, 0.5)
    thickness = clamp(branches * 0.2, 0.5, 6.0)
    inner = radius + inner_gap
    return inner, inner + thickness


def pr_orbit_radius(radius: float, satellites: int) -> float:
    """Orbit for open-PR satellites, just beyond the outermost branch moon."""
    last = satellite_orbit_radius(radius, satellites - 1) if satellites > 0 else radius
    return last + max(radius * 0.1, 0.8)


# ── Composition ─────────────────────────────────────────────────────────────


def visual_parameters(
    record: RepositoryRecord,
    index: int,
    *,
    age_mapping: AgeMapping = AgeMapping.OLDER_FARTHER,
    sun: float = SUN_RADIUS_MIN,
    max_recent30: float = 1,
    max_eccentricity: float = MAX_ECCENTRICITY,
    spacing_multiplier: float = SPACING_MULTIPLIER,
) -> VisualParameters:
    """Derive the full parameter set for one record at position *index*."""
    radius = body_radius(record.size)
    days_old = (
        record.days_since_creation_at_snapshot
        if record.days_since_creation_at_snapshot is not None
        else record.days_since_creation
    )
    orbit = orbital_radius(
        days_old,
        index,
        age_mapping,
        sun_radius=sun,
        body_radius=radius,
        max_eccentricity=max_eccentricity,
        spacing_multiplier=spacing_multiplier,
    )
    moons = satellite_count(record.branches_count)
    ring_inner, ring_outer = ring_dimensions(radius, record.branches_count)
    prs = min(max(record.open_prs, 0), MAX_PR_SATELLITES)

    return VisualParameters(
        radius=radius,
        mass=mass(radius, record.size),
        orbital_radius=orbit,
        orbital_speed=orbital_speed(record.commits_last_30, max_recent30),
        eccentricity=eccentricity(record.name, max_eccentricity),
        ring_inner_radius=ring_inner,
        ring_outer_radius=ring_outer,
        satellite_count=moons,
        satellite_orbit_radii=tuple(satellite_orbit_radius(radius, i) for i in range(moons)),
        satellite_sizes=tuple(
            satellite_size(record.branches_count, radius, is_main=i == 0) for i in range(moons)
        ),
        spin_speed=spin_speed(record.commits_last_30, max_recent30),
        halo_intensity=halo_intensity(record.stars),
        pr_satellite_count=prs,
        pr_orbit_radius=pr_orbit_radius(radius, moons) if prs else None,
        comet_orbit_radius=orbit * COMET_ORBIT_FACTOR if record.has_recent_commits else None,
        variant=variant_index(record.name),
        color=language_color(record.language),
    )


def top_k_by_mass(entries: Sequence[SceneEntry], k: int = 8) -> list[int]:
    """Indices of the *k* heaviest entries, heaviest first (ties keep input order)."""
    ranked = sorted(range(len(entries)), key=lambda i: -entries[i].visual.mass)
    return ranked[:k]
