"""Configuration management for iterable-emitter.

This module provides the Settings class holding process-wide defaults,
with support for environment variables and .env files.

Per-adapter options (event names, watermarks, callbacks) live in
:mod:`iterable_emitter.options`; the values here only fill in defaults
for options an adapter does not set.

Example:
    ITERABLE_EMITTER_HIGH_WATER_MARK=5000
    ITERABLE_EMITTER_LOW_WATER_MARK=1000
    ITERABLE_EMITTER_LOG_LEVEL=DEBUG
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Process-wide settings.

    Settings can be configured via environment variables with the
    ITERABLE_EMITTER_ prefix, or via a .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="ITERABLE_EMITTER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Logging settings
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Level of the package logger"
    )
    log_format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log message format",
    )

    # Buffer defaults
    high_water_mark: int = Field(
        default=1000, gt=0, description="Buffer length at which the source is paused"
    )
    low_water_mark: int = Field(
        default=500, gt=0, description="Buffer length at which a paused source is resumed"
    )

    @model_validator(mode="after")
    def validate_watermarks(self) -> Settings:
        """Ensure the default low watermark does not exceed the high watermark."""
        if self.low_water_mark > self.high_water_mark:
            raise ValueError(
                f"low_water_mark ({self.low_water_mark}) must not exceed "
                f"high_water_mark ({self.high_water_mark})"
            )
        return self


# Global settings instance (lazy-loaded)
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get the global settings instance.

    Returns:
        The global Settings instance, created on first access.
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def configure_settings(**overrides: Any) -> Settings:
    """Configure settings with overrides.

    Args:
        **overrides: Setting values to override.

    Returns:
        New Settings instance with overrides applied.
    """
    global _settings
    _settings = Settings(**overrides)
    return _settings


def reset_settings() -> None:
    """Drop the global settings instance so the next access re-reads the environment."""
    global _settings
    _settings = None


__all__ = [
    "Settings",
    "configure_settings",
    "get_settings",
    "reset_settings",
]
