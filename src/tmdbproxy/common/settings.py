"""Configuration management using pydantic-settings."""

from functools import lru_cache

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

TMDB_BASE_URL = "https://api.themoviedb.org/3"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="TMDB_PROXY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Upstream
    tmdb_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("tmdb_api_key", "TMDB_API_KEY", "TMDB_PROXY_TMDB_API_KEY"),
        description="TMDB API key appended to every upstream request",
    )
    upstream_base_url: str = Field(
        default=TMDB_BASE_URL,
        description="Base URL of the TMDB API",
    )
    upstream_timeout: float = Field(
        default=5.0,
        description="Timeout for upstream requests in seconds",
    )

    # Cache
    cache_ttl_seconds: float = Field(
        default=600.0,
        description="Seconds a successful response stays fresh",
    )
    cache_max_entries: int = Field(
        default=1000,
        description="Max entries kept after each sweep",
    )
    cache_sweep_interval: float = Field(
        default=300.0,
        description="Seconds between background cache sweeps",
    )

    # Server
    host: str = Field(
        default="0.0.0.0",
        description="Host for the proxy HTTP server",
    )
    port: int = Field(
        default=8000,
        description="Port for the proxy HTTP server",
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Root log level",
    )
    log_json: bool = Field(
        default=True,
        description="Render logs as JSON (console renderer otherwise)",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
