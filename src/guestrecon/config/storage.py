"""Where the reconciliation database lives."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Final

from .errors import ConfigurationError

ENV_DATABASE_URI: Final[str] = "GUESTRECON_DATABASE_URI"
ENV_DATA_DIR: Final[str] = "GUESTRECON_DATA_DIR"

APP_DIR_NAME: Final[str] = "guestrecon"
DEFAULT_DB_FILENAME: Final[str] = "guestrecon.db"
SQLITE_URI_PREFIX: Final[str] = "sqlite+pysqlite:///"


@dataclass(frozen=True, slots=True)
class StorageConfig:
    """Local data directory used when no database URI is configured."""

    data_dir: Path
    database_filename: str = DEFAULT_DB_FILENAME

    def resolve_data_dir(self) -> Path:
        return self.data_dir.expanduser().resolve()

    def database_path(self) -> Path:
        data_dir = self.resolve_data_dir()
        if data_dir.exists() and not data_dir.is_dir():
            raise ConfigurationError(ENV_DATA_DIR, f"points at a file: {data_dir}")
        data_dir.mkdir(parents=True, exist_ok=True)
        return data_dir / self.database_filename

    def database_uri(self) -> str:
        return f"{SQLITE_URI_PREFIX}{self.database_path()}"


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    uri: str


def _xdg_data_home() -> Path:
    base = os.getenv("XDG_DATA_HOME")
    return Path(base) if base else Path.home() / ".local" / "share"


def get_storage_config() -> StorageConfig:
    env_dir = os.getenv(ENV_DATA_DIR)
    data_dir = Path(env_dir) if env_dir else _xdg_data_home() / APP_DIR_NAME
    return StorageConfig(data_dir=data_dir)


def get_database_config(*, storage: StorageConfig | None = None) -> DatabaseConfig:
    env_uri = (os.getenv(ENV_DATABASE_URI) or "").strip()
    if env_uri:
        if "://" not in env_uri:
            raise ConfigurationError(
                ENV_DATABASE_URI, f"is not a SQLAlchemy database URL: {env_uri!r}"
            )
        return DatabaseConfig(uri=env_uri)
    storage_config = storage or get_storage_config()
    return DatabaseConfig(uri=storage_config.database_uri())


def get_database_uri() -> str:
    return get_database_config().uri
