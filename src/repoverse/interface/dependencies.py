"""FastAPI dependency injection wiring."""

from __future__ import annotations

import httpx

from repoverse.infrastructure.config import get_settings
from repoverse.infrastructure.github_rest_adapter import GitHubRestAdapter
from repoverse.infrastructure.json_cache_store import JsonCacheStore
from repoverse.services.fetch_repositories import FetchRepositoriesUseCase
from repoverse.services.generate_universe import GenerateUniverseUseCase
from repoverse.services.rate_budget import RateBudgetScheduler
from repoverse.services.temporal_filter import TemporalFilter

_http_client: httpx.AsyncClient | None = None
_fetcher: FetchRepositoriesUseCase | None = None
_temporal_filter: TemporalFilter | None = None


async def startup() -> None:
    """Initialise shared resources — called from the lifespan context manager."""
    global _http_client, _fetcher, _temporal_filter  # noqa: PLW0603

    settings = get_settings()
    _http_client = httpx.AsyncClient(timeout=httpx.Timeout(30.0))

    token = settings.github_token.get_secret_value() if settings.github_token else None
    adapter = GitHubRestAdapter(
        client=_http_client, base_url=settings.github_api_url, token=token
    )
    cache = JsonCacheStore(
        settings.cache_dir,
        basic_ttl_ms=settings.basic_cache_ttl_seconds * 1000,
        detailed_ttl_ms=settings.detail_cache_ttl_seconds * 1000,
    )
    scheduler = RateBudgetScheduler(
        adapter,
        batch_size=settings.batch_size,
        batch_delay=settings.batch_delay_seconds,
        safety_threshold=settings.safety_threshold,
    )
    # One orchestrator per process so overlapping passes for a user see each other.
    _fetcher = FetchRepositoriesUseCase(
        source=adapter,
        cache=cache,
        scheduler=scheduler,
        cached_list_remaining=settings.cached_list_remaining,
        min_budget_to_enrich=settings.min_budget_to_enrich,
    )
    _temporal_filter = TemporalFilter()


async def shutdown() -> None:
    """Release shared resources."""
    global _http_client, _fetcher, _temporal_filter  # noqa: PLW0603

    if _http_client:
        await _http_client.aclose()
        _http_client = None
    _fetcher = None
    _temporal_filter = None


def get_use_case() -> GenerateUniverseUseCase:
    """Build the per-request use case around the shared orchestrator and filter."""
    settings = get_settings()

    assert _fetcher is not None, "startup() was not called"

    return GenerateUniverseUseCase(
        fetcher=_fetcher,
        temporal_filter=_temporal_filter,
        max_eccentricity=settings.max_eccentricity,
        spacing_multiplier=settings.spacing_multiplier,
        lensing_top_k=settings.lensing_top_k,
    )
