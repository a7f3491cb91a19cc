"""Environment-based configuration using pydantic-settings.

Only ambient concerns live here. Sleepers, delay generator defaults and
engine behavior are explicit call-site parameters and are never read from
the environment.

Example:
    >>> from again.config import get_settings
    >>> get_settings().logging.level
    'INFO'

    # Or with environment variables:
    # AGAIN_LOG_LEVEL=DEBUG
    # AGAIN_LOG_FORMAT=json
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(
        env_prefix="AGAIN_LOG_",
        extra="ignore",
    )

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: Literal["console", "json", "none"] = "console"

    @field_validator("level", mode="before")
    @classmethod
    def _normalize_level(cls, v: str) -> str:
        return v.upper() if isinstance(v, str) else v


class AgainSettings(BaseSettings):
    """Root settings, loaded from AGAIN_* environment variables and `.env`.

    Example environment variables:
        AGAIN_DEBUG=true
        AGAIN_LOG_LEVEL=DEBUG
        AGAIN_LOGGING__FORMAT=json
    """

    model_config = SettingsConfigDict(
        env_prefix="AGAIN_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
        validate_default=True,
    )

    debug: bool = Field(default=False, description="Log at DEBUG unless a level is given explicitly")
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


@lru_cache(maxsize=1)
def get_settings() -> AgainSettings:
    """Get the cached settings instance."""
    return AgainSettings()


def clear_settings_cache() -> None:
    """Clear the settings cache so the next get_settings() re-reads the environment."""
    get_settings.cache_clear()
