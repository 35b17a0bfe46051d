"""Application settings and configuration.

This module defines all configuration options for the forum tally service.
Settings are loaded from environment variables with sensible defaults.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="Forum Tally", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Security and authentication
    secret_key: str = Field(alias="SECRET_KEY")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(
        default=60 * 24,
        alias="ACCESS_TOKEN_EXPIRE_MINUTES",
    )

    # Database configuration
    database_url: str = Field(default="sqlite:///./forum.db", alias="DATABASE_URL")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    # Ranking behaviour. When listings are ordered by vote totals, a vote must
    # also evict the listings that embed the voted post.
    listings_ranked_by_score: bool = Field(default=True, alias="LISTINGS_RANKED_BY_SCORE")

    # Read-through cache TTL tiers (seconds)
    cache_default_ttl_seconds: float = Field(default=15 * 60, alias="CACHE_DEFAULT_TTL_SECONDS")
    cache_tally_ttl_seconds: float = Field(default=5 * 60, alias="CACHE_TALLY_TTL_SECONDS")
    cache_item_ttl_seconds: float = Field(default=10 * 60, alias="CACHE_ITEM_TTL_SECONDS")
    cache_listing_ttl_seconds: float = Field(default=5 * 60, alias="CACHE_LISTING_TTL_SECONDS")
    cache_forums_ttl_seconds: float = Field(default=10 * 60, alias="CACHE_FORUMS_TTL_SECONDS")
    cache_forum_ttl_seconds: float = Field(default=30 * 60, alias="CACHE_FORUM_TTL_SECONDS")
    cache_reference_ttl_seconds: float = Field(
        default=60 * 60,
        alias="CACHE_REFERENCE_TTL_SECONDS",
    )
    cache_sweep_interval_seconds: float = Field(
        default=30 * 60,
        alias="CACHE_SWEEP_INTERVAL_SECONDS",
    )

    # Categories inserted by init_db when the table is empty
    default_categories: list[str] = Field(
        default=["General", "Academics", "Campus Life", "Careers"],
        alias="DEFAULT_CATEGORIES",
    )

    # CORS configuration for web frontend access
    cors_origins: list[str] = Field(
        default=["*"],
        alias="CORS_ORIGINS",
    )
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(
        default=["*"],
        alias="CORS_ALLOW_HEADERS",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
    )


settings = Settings()  # type: ignore[call-arg]
