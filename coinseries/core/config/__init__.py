"""Configuration module."""

from .settings import (
    ApiConfig,
    ArchiveConfig,
    CoinSeriesConfig,
    ConfigManager,
    LoggingConfig,
    StoreConfig,
    get_default_config,
    load_config_from_env,
)

__all__ = [
    "ApiConfig",
    "ArchiveConfig",
    "CoinSeriesConfig",
    "ConfigManager",
    "LoggingConfig",
    "StoreConfig",
    "get_default_config",
    "load_config_from_env",
]
