"""Where the workbook lives: a local SQL database or a Google spreadsheet."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Final, Literal

from .errors import ConfigurationError

Backend = Literal["sqlalchemy", "gsheets"]
BACKENDS: Final[tuple[Backend, ...]] = ("sqlalchemy", "gsheets")

DATABASE_FILENAME: Final[str] = "etisync.db"


@dataclass(frozen=True, slots=True)
class StorageConfig:
    data_dir: Path

    def resolve_data_dir(self) -> Path:
        return self.data_dir.expanduser().resolve()

    def database_uri(self) -> str:
        """SQLite URI inside the data directory, creating the directory on demand."""

        directory = self.resolve_data_dir()
        directory.mkdir(parents=True, exist_ok=True)
        return f"sqlite+pysqlite:///{directory / DATABASE_FILENAME}"


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    uri: str


def get_storage_config() -> StorageConfig:
    override = os.getenv("ETISYNC_DATA_DIR")
    if override:
        return StorageConfig(data_dir=Path(override))
    if os.name == "nt":
        root = os.getenv("LOCALAPPDATA") or str(Path.home() / "AppData" / "Local")
    else:
        root = os.getenv("XDG_DATA_HOME") or str(Path.home() / ".local" / "share")
    return StorageConfig(data_dir=Path(root) / "etisync")


def get_database_config() -> DatabaseConfig:
    """``DATABASE_URI`` wins; otherwise a SQLite file under the data directory."""

    return DatabaseConfig(uri=os.getenv("DATABASE_URI") or get_storage_config().database_uri())


def get_backend() -> Backend:
    """Read ``ETISYNC_BACKEND``, defaulting to the SQL workbook."""

    raw = (os.getenv("ETISYNC_BACKEND") or "sqlalchemy").strip().lower()
    if raw == "gsheets":
        return "gsheets"
    if raw == "sqlalchemy":
        return "sqlalchemy"
    raise ConfigurationError(
        f"Unsupported ETISYNC_BACKEND {raw!r}; expected one of {', '.join(BACKENDS)}"
    )
