"""Locations of the credential database and the HTTP response cache."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Final

from sqlalchemy.engine import make_url

APP_DIR_NAME: Final[str] = "walletflow"
DEFAULT_DB_FILENAME: Final[str] = "walletflow.db"
HTTP_CACHE_FILENAME: Final[str] = "http_cache.db"


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    uri: str


@dataclass(frozen=True, slots=True)
class StorageConfig:
    """Data directory plus an optional ``DATABASE_URI`` that moves the database elsewhere."""

    data_dir: Path
    database_uri: str | None = None

    def resolve_data_dir(self) -> Path:
        return self.data_dir.expanduser().resolve()

    def ensure_data_dir(self) -> Path:
        data_dir = self.resolve_data_dir()
        data_dir.mkdir(parents=True, exist_ok=True)
        return data_dir

    def database(self) -> DatabaseConfig:
        if self.database_uri:
            return DatabaseConfig(uri=self.database_uri)
        database_file = self.ensure_data_dir() / DEFAULT_DB_FILENAME
        return DatabaseConfig(uri=f"sqlite+pysqlite:///{database_file}")

    def http_cache_path(self) -> Path:
        """Cache file beside a file-backed sqlite database, otherwise in the data directory."""

        database_file = _sqlite_file(self.database_uri)
        if database_file is None:
            return self.ensure_data_dir() / HTTP_CACHE_FILENAME
        database_file.parent.mkdir(parents=True, exist_ok=True)
        return database_file.parent / HTTP_CACHE_FILENAME


def _sqlite_file(uri: str | None) -> Path | None:
    if not uri:
        return None
    url = make_url(uri)
    if url.get_backend_name() != "sqlite" or url.database in (None, "", ":memory:"):
        return None
    return Path(url.database).expanduser().resolve()


def _default_data_dir() -> Path:
    if os.name == "nt":
        base = os.getenv("LOCALAPPDATA")
        base_path = Path(base) if base else (Path.home() / "AppData" / "Local")
    else:
        base = os.getenv("XDG_DATA_HOME")
        base_path = Path(base) if base else (Path.home() / ".local" / "share")
    return base_path / APP_DIR_NAME


def get_storage_config() -> StorageConfig:
    env_dir = os.getenv("WALLETFLOW_DATA_DIR")
    return StorageConfig(
        data_dir=Path(env_dir) if env_dir else _default_data_dir(),
        database_uri=os.getenv("DATABASE_URI") or None,
    )


def get_database_config(*, storage: StorageConfig | None = None) -> DatabaseConfig:
    return (storage or get_storage_config()).database()
