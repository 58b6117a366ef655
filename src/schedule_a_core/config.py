"""Configuration system for the Schedule A engine.

This module provides Pydantic Settings-based configuration with environment
variable support and sensible defaults.

Usage:
    from schedule_a_core.config import load_config

    # Load from environment variables and .env file
    config = load_config()

    if config.contributor_fallback == ContributorFallback.DISTINCT:
        print("Anonymous receipts never share a contributor")
"""

from datetime import date
from enum import Enum
from typing import Optional

import pydantic
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigurationError


class ContributorFallback(str, Enum):
    """How to identify a contributor when no donor/client/vendor id exists."""

    DESCRIPTION = "description"  # group by normalized description
    DISTINCT = "distinct"  # every such receipt is its own contributor


class LogFormat(str, Enum):
    """Supported log renderers."""

    CONSOLE = "console"
    JSON = "json"


class ScheduleAConfig(BaseSettings):
    """Root configuration for the Schedule A engine.

    Environment Variables:
        SCHEDULE_A_ENV: Environment name (development, staging, production, test)
        SCHEDULE_A_LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR)
        SCHEDULE_A_LOG_FORMAT: console or json (default: json outside development)
        SCHEDULE_A_MIN_TAX_YEAR: Earliest tax year accepted from callers
        SCHEDULE_A_AS_OF_YEAR: Latest tax year accepted (default: the current calendar year)
        SCHEDULE_A_CONTRIBUTOR_FALLBACK: description or distinct
        SCHEDULE_A_RECORD_AUDIT_LOG: Keep per-step audit entries on the report

    Example:
        config = ScheduleAConfig(contributor_fallback="distinct", min_tax_year=2010)
    """

    model_config = SettingsConfigDict(
        env_prefix="SCHEDULE_A_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    env: str = Field(
        default="development",
        description="Environment name (development, staging, production, test)",
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )
    log_format: Optional[LogFormat] = Field(
        default=None,
        description="Log renderer; defaults to console in development, json elsewhere",
    )
    min_tax_year: int = Field(
        default=2000,
        ge=1900,
        description="Earliest tax year a caller may request",
    )
    as_of_year: Optional[int] = Field(
        default=None,
        ge=1900,
        description="Latest tax year a caller may request; defaults to the current calendar year",
    )
    contributor_fallback: ContributorFallback = Field(
        default=ContributorFallback.DESCRIPTION,
        description="Contributor identity policy for receipts without a donor/client/vendor id",
    )
    record_audit_log: bool = Field(
        default=True,
        description="Attach per-step calculation audit entries to each report",
    )

    @field_validator("env")
    @classmethod
    def validate_env(cls, v: str) -> str:
        """Validate environment name."""
        valid_envs = {"development", "staging", "production", "test"}
        v_lower = v.lower().strip()
        if v_lower not in valid_envs:
            raise ValueError(f"Invalid environment: {v}. Must be one of: {valid_envs}")
        return v_lower

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate and normalize log level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper().strip()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of: {valid_levels}")
        return v_upper

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.env == "development"

    @property
    def latest_tax_year(self) -> int:
        """Latest tax year a caller may request."""
        if self.as_of_year is not None:
            return self.as_of_year
        return date.today().year

    @property
    def effective_log_format(self) -> LogFormat:
        """Renderer to use once the environment default is applied."""
        if self.log_format is not None:
            return self.log_format
        return LogFormat.CONSOLE if self.is_development else LogFormat.JSON


def load_config(**overrides) -> ScheduleAConfig:
    """Load configuration, converting validation failures to ConfigurationError.

    Args:
        **overrides: Explicit values that take precedence over the environment.

    Returns:
        Validated ScheduleAConfig

    Raises:
        ConfigurationError: If any setting is invalid.
    """
    try:
        return ScheduleAConfig(**overrides)
    except pydantic.ValidationError as e:
        first = e.errors()[0]
        key = ".".join(str(part) for part in first.get("loc", ()))
        raise ConfigurationError(
            f"Invalid Schedule A configuration: {first.get('msg')}",
            config_key=f"SCHEDULE_A_{key.upper()}" if key else None,
            actual=first.get("input"),
            details={"error_count": e.error_count()},
        ) from e
