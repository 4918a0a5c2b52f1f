"""
Application Settings - Pydantic Settings for configuration management.

Supports environment variables and .env file loading.
"""

from functools import lru_cache
from typing import Annotated, Literal

from pydantic import BeforeValidator, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def normalize_to_uppercase(v: str) -> str:
    """Normalize string to uppercase."""
    if isinstance(v, str):
        return v.upper()
    return v


class PushSettings(BaseSettings):
    """Push pipeline and default retry policy settings."""

    model_config = SettingsConfigDict(env_prefix="PUSH_")

    max_tries: int = Field(default=12, ge=0, description="Attempts before the default handler gives up")
    base_delay_seconds: float = Field(
        default=5.0, ge=0.0, description="Backoff unit; attempt n sleeps n times this"
    )
    max_batch_size: int = Field(default=5000, ge=1, description="Max records per delivered batch")
    feed_name: str = Field(default="docpush", description="Datasource name reported to the consumer")


class ConsumerSettings(BaseSettings):
    """Indexing consumer connection settings."""

    model_config = SettingsConfigDict(env_prefix="CONSUMER_")

    feed_url: str = Field(
        default="http://localhost:19900/xmlfeed", description="Feed endpoint of the consumer"
    )
    timeout_seconds: float = Field(default=30.0, gt=0.0, description="Per-phase network timeout")


class ObservabilitySettings(BaseSettings):
    """Observability and monitoring settings."""

    model_config = SettingsConfigDict(env_prefix="OBSERVABILITY_")

    log_format: Literal["json", "console"] = Field(
        default="json", description="Log format (json for production, console for development)"
    )


class Settings(BaseSettings):
    """Main application settings aggregating all sub-settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application metadata
    app_name: str = Field(default="docpush", description="Application name")
    environment: Literal["development", "staging", "production"] = Field(
        default="development", description="Deployment environment"
    )
    log_level: Annotated[
        Literal["DEBUG", "INFO", "WARNING", "ERROR"],
        BeforeValidator(normalize_to_uppercase),
    ] = Field(default="INFO", description="Logging level")

    # Sub-settings
    push: PushSettings = Field(default_factory=PushSettings)
    consumer: ConsumerSettings = Field(default_factory=ConsumerSettings)
    observability: ObservabilitySettings = Field(default_factory=ObservabilitySettings)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
