"""Application configuration settings."""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(env_prefix="LOG_")

    level: str = Field(default="INFO", description="Root log level")
    format: str = Field(default="console", description="Renderer: json or console")
    file_path: Optional[str] = Field(default=None, description="Rotating log file, disabled when unset")


class SyncSettings(BaseSettings):
    """Locations of the sync configuration and history files."""

    model_config = SettingsConfigDict(env_prefix="SYNC_")

    config_file: Optional[str] = Field(default=None, description="Explicit sync configuration file")
    history_file: Optional[str] = Field(default="./data/sync_history.json", description="Sync history JSON file")


class AppSettings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    name: str = Field(default="Folder Sync")
    version: str = Field(default="1.0.0")
    environment: str = Field(default="development")

    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    sync: SyncSettings = Field(default_factory=SyncSettings)


_settings: Optional[AppSettings] = None


def get_settings() -> AppSettings:
    """Get application settings, created on first use."""
    global _settings
    if _settings is None:
        _settings = AppSettings()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next call re-reads the environment."""
    global _settings
    _settings = None
