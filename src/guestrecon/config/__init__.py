"""Application configuration helpers."""

from __future__ import annotations

from .env import env_flag, env_int
from .errors import ConfigurationError
from .imports import ImportConfig, get_import_config
from .logging import configure_logging
from .storage import (
    DatabaseConfig,
    StorageConfig,
    get_database_config,
    get_database_uri,
    get_storage_config,
)

__all__ = [
    "ConfigurationError",
    "DatabaseConfig",
    "ImportConfig",
    "StorageConfig",
    "configure_logging",
    "env_flag",
    "env_int",
    "get_database_config",
    "get_database_uri",
    "get_import_config",
    "get_storage_config",
]
