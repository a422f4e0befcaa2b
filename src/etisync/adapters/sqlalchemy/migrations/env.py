"""Alembic environment for the workbook schema.

Sheets that exist in the database but are not declared in
:mod:`etisync.adapters.sqlalchemy.mappings` belong to the user and are left
alone by autogenerate.
"""

from __future__ import annotations

from logging.config import fileConfig
from pathlib import Path
from typing import TYPE_CHECKING, Any

from alembic import context
from sqlalchemy import create_engine, pool

from etisync.adapters.sqlalchemy.mappings import ALEMBIC_VERSION, metadata
from etisync.config import get_database_config

if TYPE_CHECKING:
    from sqlalchemy.engine import Connection

config = context.config

if config.config_file_name and Path(config.config_file_name).suffix == ".ini":
    fileConfig(config.config_file_name)


def _include_name(name: str | None, type_: str, _parent_names: object) -> bool:
    if type_ == "table":
        return name in metadata.tables
    return True


def _options() -> dict[str, Any]:
    return {
        "target_metadata": metadata,
        "version_table": ALEMBIC_VERSION,
        "include_name": _include_name,
        "render_as_batch": True,
        "compare_type": True,
    }


def _migrate(connection: Connection) -> None:
    context.configure(connection=connection, **_options())
    with context.begin_transaction():
        context.run_migrations()


def _database_url() -> str:
    return config.get_main_option("sqlalchemy.url") or get_database_config().uri


if context.is_offline_mode():
    context.configure(url=_database_url(), literal_binds=True, **_options())
    with context.begin_transaction():
        context.run_migrations()
elif (shared := config.attributes.get("connection")) is not None:
    _migrate(shared)
else:
    engine = create_engine(_database_url(), poolclass=pool.NullPool, future=True)
    try:
        with engine.connect() as connection:
            _migrate(connection)
    finally:
        engine.dispose()
