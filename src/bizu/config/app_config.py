"""Application configuration loader.

Loads centralized configuration from data/config/bizu_config_v1.yaml
with built-in defaults when the file is missing.

Usage:
    from bizu.config.app_config import load_app_config

    config = load_app_config()
    config.llm.model
    config.storage.hosted_configured()
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal

import structlog
import yaml

logger = structlog.get_logger(__name__)

# Config file path (relative to project root)
CONFIG_FILE = Path("data/config/bizu_config_v1.yaml")

# Value shipped in the .env template; treated as "not configured"
HOSTED_URL_PLACEHOLDER = "seu_url_do_supabase"

StorageBackend = Literal["auto", "local", "hosted"]


@dataclass
class LLMSettings:
    """Upstream LLM provider settings."""

    provider: str = "openrouter"
    base_url: str | None = None
    model: str = "google/gemini-2.0-flash-001"
    api_key_env: str | None = "OPENROUTER_API_KEY"
    temperature: float = 0.7
    max_tokens: int = 8000
    timeout: int = 120
    app_url: str = "https://bizu.app"
    app_title: str = "Bizu App"

    def get_api_key(self) -> str | None:
        """Get API key from environment variable."""
        if self.api_key_env:
            return os.environ.get(self.api_key_env)
        return None


@dataclass
class ApiClientSettings:
    """Settings for the retrying client of the generation endpoint."""

    base_url: str = "http://localhost:3000"
    endpoint: str = "/api/gemini"
    timeout_seconds: float = 60.0
    max_retries: int = 3
    backoff_base_seconds: float = 1.0
    backoff_max_seconds: float = 16.0


@dataclass
class StorageSettings:
    """Persistence backend selection."""

    backend: StorageBackend = "auto"
    local_db_path: str = "db/bizu.db"
    hosted_url_env: str = "SUPABASE_URL"
    hosted_key_env: str = "SUPABASE_ANON_KEY"

    def get_hosted_url(self) -> str | None:
        return os.environ.get(self.hosted_url_env) or None

    def get_hosted_key(self) -> str | None:
        return os.environ.get(self.hosted_key_env) or None

    def hosted_configured(self) -> bool:
        """True when both hosted credentials are present and not the template value."""
        url = self.get_hosted_url()
        key = self.get_hosted_key()
        return bool(url and key and url != HOSTED_URL_PLACEHOLDER)


@dataclass
class ServerSettings:
    """HTTP server settings."""

    host: str = "0.0.0.0"
    port: int = 3000
    cors_origins: list[str] = field(default_factory=lambda: ["*"])


@dataclass
class AppConfig:
    """Application-wide configuration."""

    llm: LLMSettings = field(default_factory=LLMSettings)
    api_client: ApiClientSettings = field(default_factory=ApiClientSettings)
    storage: StorageSettings = field(default_factory=StorageSettings)
    server: ServerSettings = field(default_factory=ServerSettings)


# Module-level cache
_cached_config: AppConfig | None = None


def _get_defaults() -> dict[str, Any]:
    """Get default configuration values."""
    return {
        "llm": {
            "provider": "openrouter",
            "base_url": None,
            "model": "google/gemini-2.0-flash-001",
            "api_key_env": "OPENROUTER_API_KEY",
            "temperature": 0.7,
            "max_tokens": 8000,
            "timeout": 120,
        },
        "api_client": {
            "base_url": "http://localhost:3000",
            "endpoint": "/api/gemini",
            "timeout_seconds": 60,
            "max_retries": 3,
            "backoff_base_seconds": 1.0,
            "backoff_max_seconds": 16.0,
        },
        "storage": {
            "backend": "auto",
            "local_db_path": "db/bizu.db",
            "hosted_url_env": "SUPABASE_URL",
            "hosted_key_env": "SUPABASE_ANON_KEY",
        },
        "server": {
            "host": "0.0.0.0",
            "port": 3000,
            "cors_origins": ["*"],
        },
    }


def _parse_config(data: dict[str, Any]) -> AppConfig:
    """Parse configuration dictionary into AppConfig object."""
    llm_data = data.get("llm") or {}
    llm = LLMSettings(
        provider=llm_data.get("provider", "openrouter"),
        base_url=llm_data.get("base_url"),
        model=llm_data.get("model", "google/gemini-2.0-flash-001"),
        api_key_env=llm_data.get("api_key_env", "OPENROUTER_API_KEY"),
        temperature=llm_data.get("temperature", 0.7),
        max_tokens=llm_data.get("max_tokens", 8000),
        timeout=llm_data.get("timeout", 120),
        app_url=llm_data.get("app_url", "https://bizu.app"),
        app_title=llm_data.get("app_title", "Bizu App"),
    )

    client_data = data.get("api_client") or {}
    api_client = ApiClientSettings(
        base_url=client_data.get("base_url", "http://localhost:3000"),
        endpoint=client_data.get("endpoint", "/api/gemini"),
        timeout_seconds=float(client_data.get("timeout_seconds", 60)),
        max_retries=int(client_data.get("max_retries", 3)),
        backoff_base_seconds=float(client_data.get("backoff_base_seconds", 1.0)),
        backoff_max_seconds=float(client_data.get("backoff_max_seconds", 16.0)),
    )

    storage_data = data.get("storage") or {}
    backend = storage_data.get("backend", "auto")
    if backend not in ("auto", "local", "hosted"):
        logger.warning("unknown_storage_backend", backend=backend)
        backend = "auto"
    storage = StorageSettings(
        backend=backend,
        local_db_path=storage_data.get("local_db_path", "db/bizu.db"),
        hosted_url_env=storage_data.get("hosted_url_env", "SUPABASE_URL"),
        hosted_key_env=storage_data.get("hosted_key_env", "SUPABASE_ANON_KEY"),
    )

    server_data = data.get("server") or {}
    server = ServerSettings(
        host=server_data.get("host", "0.0.0.0"),
        port=int(server_data.get("port", 3000)),
        cors_origins=list(server_data.get("cors_origins", ["*"])),
    )

    return AppConfig(llm=llm, api_client=api_client, storage=storage, server=server)


def load_app_config(
    config_path: Path | None = None,
    force_reload: bool = False,
) -> AppConfig:
    """Load application config, falling back to defaults.

    Args:
        config_path: Explicit YAML path. Defaults to CONFIG_FILE.
        force_reload: If True, ignore cached config and reload from file.

    Returns:
        AppConfig object with all settings.
    """
    global _cached_config

    if _cached_config is not None and not force_reload and config_path is None:
        return _cached_config

    path = config_path or CONFIG_FILE
    data: dict[str, Any]

    if path.exists():
        logger.debug("loading_app_config", source=str(path))
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    else:
        logger.info("using_default_config")
        data = _get_defaults()

    config = _parse_config(data)
    if config_path is None:
        _cached_config = config
    return config


def clear_config_cache() -> None:
    """Clear the configuration cache.

    Useful for testing or when config is modified at runtime.
    """
    global _cached_config
    _cached_config = None
