"""Application settings using Pydantic Settings.

Runtime configuration for the tax export builder. Numeric tax constants
(mileage rates, thresholds) live in config.export_config and are versioned
with the code; the values here are deployment choices and request defaults.

Environment variables use the TAX_EXPORT_ prefix, e.g.:
- TAX_EXPORT_APP_LABEL: Label used when itemizing "Other expenses"
- TAX_EXPORT_DEFAULT_TIMEZONE: IANA timezone stamped on packages
- TAX_EXPORT_LOG_JSON: Emit JSON logs (production)
"""

import logging
from functools import lru_cache
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .export_config import ExportConfig

logger = logging.getLogger(__name__)

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def validate_timezone_name(value: str) -> str:
    """Return the timezone name unchanged if it is a known IANA zone."""
    try:
        ZoneInfo(value)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"Unknown IANA timezone: {value!r}") from exc
    return value


class ExportSettings(BaseSettings):
    """Tax export settings."""

    model_config = SettingsConfigDict(
        env_prefix="TAX_EXPORT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    environment: str = Field(default="development", description="Environment name")

    app_label: str = Field(
        default="GigLedger",
        min_length=1,
        description="Prefix for itemized Other expenses names",
    )
    default_timezone: str = Field(
        default="America/New_York",
        description="Timezone stamped on packages when the request has none",
    )

    # Request defaults, matching what the export screen pre-selects
    include_tips_default: bool = Field(default=True, description="Count tips in gross receipts")
    include_fees_as_deduction_default: bool = Field(
        default=True,
        description="Report platform fees as an expense instead of returns and allowances",
    )

    # Logging
    log_level: str = Field(default="INFO", description="Root log level")
    log_json: bool = Field(default=False, description="JSON formatted logs")
    log_file: Optional[str] = Field(default=None, description="Optional log file path")

    @field_validator("default_timezone")
    @classmethod
    def _check_timezone(cls, value: str) -> str:
        return validate_timezone_name(value)

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(_LOG_LEVELS)}")
        return level

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment in ("production", "prod", "staging")

    def export_config(self) -> ExportConfig:
        """Constants table with the deployment's app label applied."""
        return ExportConfig.default(app_label=self.app_label)


@lru_cache
def get_settings() -> ExportSettings:
    """
    Get cached export settings instance.

    Returns:
        ExportSettings: Cached settings loaded from environment.
    """
    settings = ExportSettings()
    logger.debug(
        "Loaded export settings",
        extra={'extra_data': {'environment': settings.environment, 'app_label': settings.app_label}},
    )
    return settings
