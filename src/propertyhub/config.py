"""Configuration system for PropertyHub.

Uses pydantic-settings to load configuration from environment variables
and .env files with sensible defaults for the listing read path.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All settings can be overridden via environment variables or .env file.
    Environment variables are prefixed with PROPERTYHUB_
    (e.g., PROPERTYHUB_QUERY_CACHE_TTL_SECONDS).
    """

    model_config = SettingsConfigDict(
        env_prefix="PROPERTYHUB_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Cache lifetimes
    entity_cache_ttl_seconds: int = Field(
        default=1800,
        gt=0,
        description="TTL for owner, image and trace entries (reference data)",
    )
    query_cache_ttl_seconds: int = Field(
        default=300,
        gt=0,
        description="TTL for composed page results",
    )

    # Pagination bounds enforced at the API boundary
    default_page_size: int = Field(
        default=20,
        ge=1,
        description="Page size used when the caller sends none or an invalid one",
    )
    max_page_size: int = Field(
        default=100,
        ge=1,
        description="Largest page size a caller may request",
    )

    # Store
    database_url: str | None = Field(
        default=None,
        description="Postgres DSN; the API serves an empty in-memory store when unset",
    )

    frontend_url: str | None = Field(
        default=None,
        description="Extra origin allowed by CORS (production frontend)",
    )

    log_level: str = Field(
        default="INFO",
        description="Root logging level for the API process",
    )


# Singleton instance for easy import
config = Settings()
