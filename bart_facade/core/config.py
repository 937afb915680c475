"""Application configuration.

Environment variables are loaded from .env file and can be overridden.
All settings have sensible defaults for local development.
"""

from __future__ import annotations

import json
from enum import Enum
from functools import lru_cache
from typing import Annotated, Any

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

# Public demo key published by BART; use BART_API_KEY wherever possible.
DEMO_BART_API_KEY = "MW9S-E7SL-26DU-VV8V"

DEFAULT_STATION_NAME_CORRECTIONS: dict[str, str] = {
    # Upstream still reports COLS as 'Coliseum/Oakland Airport'.
    "COLS": "Coliseum",
}


class FanOutPolicy(str, Enum):
    """How a station-detail batch treats per-station failures."""

    BEST_EFFORT = "best_effort"
    FAIL_FAST = "fail_fast"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # ==========================================================================
    # Upstream
    # ==========================================================================

    environment: str = Field(
        default="development",
        alias="ENVIRONMENT",
        description="Deployment environment: 'development', 'staging', or 'production'.",
    )

    bart_api_key: str = Field(
        default=DEMO_BART_API_KEY,
        alias="BART_API_KEY",
        description="Key appended to every BART API request.",
    )

    # ==========================================================================
    # Refresh cycles
    # ==========================================================================

    station_list_refresh_interval_hours: int = Field(
        default=24, alias="STATION_LIST_REFRESH_INTERVAL_HOURS", ge=1
    )
    elevator_status_refresh_interval_minutes: int = Field(
        default=15, alias="ELEVATOR_STATUS_REFRESH_INTERVAL_MINUTES", ge=1
    )
    scheduler_enabled: bool = Field(default=True, alias="SCHEDULER_ENABLED")

    # ==========================================================================
    # Station-detail fan-out
    # ==========================================================================

    fanout_policy: FanOutPolicy = Field(
        default=FanOutPolicy.BEST_EFFORT, alias="FANOUT_POLICY"
    )
    fanout_max_concurrency: int = Field(
        default=8,
        alias="FANOUT_MAX_CONCURRENCY",
        ge=0,
        description="Per-batch cap on in-flight station requests (0 = unbounded).",
    )

    # ==========================================================================
    # Normalization
    # ==========================================================================

    station_name_corrections: Annotated[dict[str, str], NoDecode] = Field(
        default_factory=lambda: dict(DEFAULT_STATION_NAME_CORRECTIONS),
        alias="BART_STATION_NAME_CORRECTIONS",
    )

    # ==========================================================================
    # Logging
    # ==========================================================================

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # ==========================================================================
    # OpenTelemetry (optional)
    # ==========================================================================

    otel_enabled: bool = Field(default=False, alias="OTEL_ENABLED")
    otel_service_name: str = Field(default="bart-facade", alias="OTEL_SERVICE_NAME")
    otel_service_version: str = Field(default="0.1.0", alias="OTEL_SERVICE_VERSION")
    otel_exporter_otlp_endpoint: str = Field(
        default="http://jaeger:4317", alias="OTEL_EXPORTER_OTLP_ENDPOINT"
    )
    otel_exporter_otlp_headers: str | None = Field(
        default=None, alias="OTEL_EXPORTER_OTLP_HEADERS"
    )

    # ==========================================================================
    # Pydantic Settings Config
    # ==========================================================================

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # ==========================================================================
    # Validators
    # ==========================================================================

    @field_validator("station_name_corrections", mode="before")
    @classmethod
    def parse_name_corrections(cls, value: Any) -> dict[str, str]:
        """Accept a JSON object or a comma-separated 'ABBR=Name' list."""
        if value is None:
            return {}
        if isinstance(value, str):
            text = value.strip()
            if not text:
                return {}
            if text.startswith("{"):
                value = json.loads(text)
            else:
                parsed: dict[str, str] = {}
                for item in text.split(","):
                    if not item.strip():
                        continue
                    abbr, sep, name = item.partition("=")
                    if not sep or not abbr.strip() or not name.strip():
                        raise ValueError(
                            f"Invalid station name correction '{item.strip()}'. "
                            "Expected 'ABBR=Name'."
                        )
                    parsed[abbr.strip()] = name.strip()
                value = parsed
        return {
            str(abbr).strip().upper(): str(name).strip()
            for abbr, name in dict(value).items()
        }

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, value: Any) -> str:
        return str(value or "INFO").strip().upper()

    @model_validator(mode="after")
    def validate_production_security(self) -> "Settings":
        """Validate security-sensitive settings in production environment."""
        if self.environment.lower() == "production":
            if self.bart_api_key == DEMO_BART_API_KEY:
                raise ValueError(
                    "Public BART demo key detected in production. "
                    "Set BART_API_KEY environment variable with a registered key."
                )
        return self


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
