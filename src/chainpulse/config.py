"""Application configuration from environment variables."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Analytics store settings loaded from environment variables."""

    # Store
    database_url: str = Field(
        default="sqlite+aiosqlite:///./data/analytics.db",
        alias="ANALYTICS_DATABASE_URL",
    )
    database_echo: bool = Field(default=False, alias="ANALYTICS_DATABASE_ECHO")
    busy_timeout_seconds: float = Field(default=5.0, alias="ANALYTICS_BUSY_TIMEOUT_SECONDS")

    # Retention
    max_records: int = Field(default=50_000, ge=1, alias="ANALYTICS_MAX_RECORDS")

    # Query
    default_query_limit: int = Field(default=100, ge=1, alias="ANALYTICS_DEFAULT_QUERY_LIMIT")
    stats_query_limit: int = Field(default=10_000, ge=1, alias="ANALYTICS_STATS_QUERY_LIMIT")
    top_entities_limit: int = Field(default=10, ge=1, alias="ANALYTICS_TOP_ENTITIES_LIMIT")

    # Logging
    log_level: str = Field(default="INFO", alias="ANALYTICS_LOG_LEVEL")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
        "populate_by_name": True,
    }


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def reset_settings_cache() -> None:
    """Clear cached settings (useful in tests)."""
    get_settings.cache_clear()
