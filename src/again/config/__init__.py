"""Configuration management using pydantic-settings."""

from .settings import AgainSettings, LoggingSettings, clear_settings_cache, get_settings

__all__ = [
    "AgainSettings",
    "LoggingSettings",
    "clear_settings_cache",
    "get_settings",
]
