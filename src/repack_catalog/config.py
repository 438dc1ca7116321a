"""
Application configuration using Pydantic Settings.

Loads configuration from environment variables with validation,
type coercion, and sensible defaults. Every section can be built
on its own, which is how the tests construct them.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import AliasChoices, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class IGDBConfig(BaseSettings):
    """IGDB metadata service configuration."""

    model_config = SettingsConfigDict(env_prefix="IGDB_")

    client_id: SecretStr | None = Field(
        default=None,
        description="Twitch application client id used for IGDB access",
    )
    client_secret: SecretStr | None = Field(
        default=None,
        description="Twitch application client secret",
    )
    token_url: str = Field(
        default="https://id.twitch.tv/oauth2/token",
        description="OAuth client-credentials token endpoint",
    )
    api_url: str = Field(
        default="https://api.igdb.com/v4/games",
        description="IGDB games query endpoint",
    )
    image_url_template: str = Field(
        default="https://images.igdb.com/igdb/image/upload/t_cover_big/{image_id}.jpg",
        description="Cover art URL template, formatted with image_id",
    )
    search_limit: int = Field(
        default=3,
        ge=1,
        le=50,
        description="Maximum candidates requested per query strategy",
    )
    token_safety_margin_seconds: int = Field(
        default=60,
        ge=0,
        le=3600,
        description="Refuse to reuse a token expiring within this many seconds",
    )
    timeout_seconds: int = Field(
        default=30,
        ge=1,
        le=120,
        description="HTTP request timeout in seconds",
    )

    @field_validator("client_id", "client_secret", mode="before")
    @classmethod
    def blank_to_none(cls, v: object) -> object:
        """Treat empty environment values as unset."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @property
    def has_credentials(self) -> bool:
        """Check whether both client credentials are configured."""
        return self.client_id is not None and self.client_secret is not None


class SourceConfig(BaseSettings):
    """Listing site configuration."""

    model_config = SettingsConfigDict(env_prefix="SOURCE_")

    base_url: str = Field(
        default="https://fitgirl-repacks.site/all-my-repacks-a-z/",
        description="First page of the A-Z listing",
    )
    page_param: str = Field(
        default="lcp_page0",
        description="Query parameter carrying the page number for pages > 1",
    )
    fallback_page_count: int = Field(
        default=127,
        ge=1,
        description="Last known page count, used when pagination cannot be detected",
    )
    timeout_seconds: int = Field(
        default=30,
        ge=1,
        le=120,
        description="HTTP request timeout in seconds",
    )


class SyncConfig(BaseSettings):
    """Catalog synchronization and pacing configuration."""

    model_config = SettingsConfigDict(env_prefix="SYNC_", populate_by_name=True)

    update_pages: int = Field(
        default=5,
        ge=1,
        validation_alias=AliasChoices("SYNC_UPDATE_PAGES", "UPDATE_PAGES"),
        description="Pages crawled by an incremental sync",
    )
    page_delay_seconds: float = Field(default=0.5, ge=0.0, le=60.0)
    page_pause_every: int = Field(default=10, ge=0)
    page_pause_seconds: float = Field(default=2.0, ge=0.0, le=300.0)
    enrichment_delay_seconds: float = Field(default=0.25, ge=0.0, le=60.0)
    enrichment_pause_every: int = Field(default=4, ge=0)
    enrichment_pause_seconds: float = Field(default=1.0, ge=0.0, le=300.0)
    rebuild_mode: Literal["full", "incremental", "none"] = Field(
        default="full",
        description="Sync triggered by the cache when the store is older than today",
    )


class StoreConfig(BaseSettings):
    """Catalog store configuration."""

    model_config = SettingsConfigDict(env_prefix="STORE_")

    path: Path = Field(
        default=Path("data/db.json"),
        description="Location of the JSON catalog document",
    )


class ServerConfig(BaseSettings):
    """HTTP server configuration."""

    model_config = SettingsConfigDict(env_prefix="SERVER_", populate_by_name=True)

    host: str = Field(default="0.0.0.0")
    port: int = Field(
        default=4000,
        ge=1,
        le=65535,
        validation_alias=AliasChoices("SERVER_PORT", "PORT"),
    )
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])


class RetryConfig(BaseSettings):
    """Retry behavior configuration."""

    model_config = SettingsConfigDict(env_prefix="RETRY_")

    max_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Maximum number of retry attempts",
    )
    base_delay_seconds: float = Field(
        default=1.0,
        ge=0.0,
        le=30.0,
        description="Base delay between retries (exponential backoff)",
    )
    max_delay_seconds: float = Field(
        default=60.0,
        ge=0.0,
        le=300.0,
        description="Maximum delay between retries",
    )
    exponential_base: float = Field(
        default=2.0,
        ge=1.5,
        le=4.0,
        description="Base for exponential backoff calculation",
    )


class LoggingConfig(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(env_prefix="LOG_")

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )
    format: Literal["json", "console"] = Field(
        default="json",
        description="Log output format",
    )
    include_timestamp: bool = Field(
        default=True,
        description="Include timestamp in log entries",
    )


class Settings(BaseSettings):
    """
    Main application settings.

    Aggregates all configuration sections and provides
    a single entry point for configuration access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    environment: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Deployment environment",
    )

    igdb: IGDBConfig = Field(default_factory=IGDBConfig)
    source: SourceConfig = Field(default_factory=SourceConfig)
    sync: SyncConfig = Field(default_factory=SyncConfig)
    store: StoreConfig = Field(default_factory=StoreConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Returns:
        Settings: Application configuration instance
    """
    return Settings()
