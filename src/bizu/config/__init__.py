"""Configuration package for the Bizu backend."""

from bizu.config.app_config import (
    ApiClientSettings,
    AppConfig,
    LLMSettings,
    ServerSettings,
    StorageSettings,
    clear_config_cache,
    load_app_config,
)

__all__ = [
    "ApiClientSettings",
    "AppConfig",
    "LLMSettings",
    "ServerSettings",
    "StorageSettings",
    "clear_config_cache",
    "load_app_config",
]
