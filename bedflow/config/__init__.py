from bedflow.config.settings import (
    DatabaseSettings,
    EngineSettings,
    FeatureFlagSettings,
    LoggingSettings,
    RedisSettings,
    Settings,
    get_settings,
    settings,
)

__all__ = [
    "DatabaseSettings",
    "EngineSettings",
    "FeatureFlagSettings",
    "LoggingSettings",
    "RedisSettings",
    "Settings",
    "get_settings",
    "settings",
]
