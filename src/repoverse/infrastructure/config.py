"""Application configuration — loaded from environment variables."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Central configuration loaded from env vars (or ``.env`` file).

    Every pacing and layout constant lives here so that historical variants
    (batch size 3, 500 ms delay, spacing 1.5) are a matter of configuration.
    """

    model_config = SettingsConfigDict(
        env_prefix="REPOVERSE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    github_api_url: str = "https://api.github.com"
    github_token: SecretStr | None = None

    # Cache store
    cache_dir: Path = Path(".repoverse-cache")
    basic_cache_ttl_seconds: int = 3600
    detail_cache_ttl_seconds: int = 86_400

    # Rate-budget scheduler
    batch_size: int = 6
    batch_delay_seconds: float = 0.2
    safety_threshold: int = 5
    min_budget_to_enrich: int = 20
    cached_list_remaining: int = 60

    # Procedural layout
    spacing_multiplier: float = 0.8
    max_eccentricity: float = 0.05
    lensing_top_k: int = 8

    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8000


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the singleton application settings (cached after first call)."""
    return Settings()
