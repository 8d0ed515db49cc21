"""Configuration management module."""

from mdrrmo.core.config.settings import (
    BackendConfig,
    CacheConfig,
    ConfigManager,
    LoggingConfig,
    MdrrmoConfig,
    get_default_config,
    load_config_from_env,
)

__all__ = [
    "ConfigManager",
    "MdrrmoConfig",
    "CacheConfig",
    "BackendConfig",
    "LoggingConfig",
    "get_default_config",
    "load_config_from_env",
]
