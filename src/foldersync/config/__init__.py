"""Configuration package for the folder sync."""

from .settings import (
    LoggingSettings,
    SyncSettings,
    AppSettings,
    get_settings,
    reset_settings
)

from .schema import (
    SyncConfig,
    FolderPairConfig,
    ScheduleConfig,
    SyncInterval,
    PHOTO_BOOTH_CONFIG_EXAMPLE
)

from .loader import (
    ConfigLoader,
    ConfigurationError,
    load_config_from_env
)

__all__ = [
    "LoggingSettings",
    "SyncSettings",
    "AppSettings",
    "get_settings",
    "reset_settings",

    "SyncConfig",
    "FolderPairConfig",
    "ScheduleConfig",
    "SyncInterval",
    "PHOTO_BOOTH_CONFIG_EXAMPLE",

    "ConfigLoader",
    "ConfigurationError",
    "load_config_from_env"
]
