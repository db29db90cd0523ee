"""Centralized configuration for query-pipeline hosts using Pydantic Settings."""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Strictly typed configuration loaded from ``QUERY_PIPELINE_*`` environment variables.

    Stage behaviour is configured per stage in code; these settings only cover
    the host-facing concerns (logging, telemetry identity, debounce timing).
    """

    model_config = SettingsConfigDict(
        env_prefix="QUERY_PIPELINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        validate_default=True,
        extra="ignore",
    )

    # Logging
    log_level: Literal["debug", "info", "warning", "error", "critical"] = Field(
        default="info", description="Root logging level"
    )
    json_logs: bool = Field(default=True, description="Emit structured JSON logs instead of plain text")

    # Telemetry identity
    service_name: str = Field(default="query-pipeline", description="service.name resource attribute")
    service_version: str = Field(default="0.1.0", description="service.version resource attribute")

    # Host hook
    debounce_timeout_ms: int = Field(
        default=150,
        ge=0,
        description="Delay before a changed query is presented to the pipeline, in milliseconds",
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def _lowercase_level(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().lower()
        return value


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the process-wide settings instance."""
    return Settings()
