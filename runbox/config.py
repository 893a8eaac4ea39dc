"""
Configuration management for the service.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-driven application settings."""

    model_config = SettingsConfigDict(env_prefix="RUNBOX_", case_sensitive=False)

    database_url: str = "sqlite:///./runbox.db"
    cors_allow_origins: list[str] = ["*"]

    log_level: str = "INFO"
    script_console_log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance."""

    return Settings()  # type: ignore[call-arg]
