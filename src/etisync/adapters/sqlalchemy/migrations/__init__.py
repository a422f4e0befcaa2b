"""Schema migrations for the SQL workbook.

Alembic reads ``[tool.alembic]`` from ``pyproject.toml`` when running from a
checkout; installed copies fall back to the migrations shipped in this
package.
"""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import TYPE_CHECKING, Final

from alembic import command
from alembic.config import Config

from etisync.config import get_database_config

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

PACKAGE_MIGRATIONS: Final[Path] = Path(__file__).resolve().parent
CHECKOUT_ROOT: Final[Path] = Path(__file__).resolve().parents[5]
CHECKOUT_PYPROJECT: Final[Path] = CHECKOUT_ROOT / "pyproject.toml"


def _script_location() -> Path:
    try:
        with CHECKOUT_PYPROJECT.open("rb") as handle:
            configured = tomllib.load(handle).get("tool", {}).get("alembic", {}).get(
                "script_location"
            )
    except FileNotFoundError:
        configured = None
    if configured:
        path = Path(configured)
        if not path.is_absolute():
            path = CHECKOUT_ROOT / path
        if path.is_dir():
            return path
    return PACKAGE_MIGRATIONS


def _alembic_config() -> Config:
    if CHECKOUT_PYPROJECT.is_file():
        config = Config(toml_file=str(CHECKOUT_PYPROJECT))
    else:
        config = Config()
    config.set_main_option("script_location", str(_script_location()))
    return config


def upgrade_head(*, engine: Engine | None = None, database_uri: str | None = None) -> None:
    """Bring the workbook schema to the newest revision.

    With ``engine`` the upgrade runs on one of its connections (in-memory
    SQLite needs this); otherwise Alembic connects to ``database_uri`` or the
    configured ``DATABASE_URI``.
    """

    config = _alembic_config()
    if engine is None:
        config.set_main_option("sqlalchemy.url", database_uri or get_database_config().uri)
        command.upgrade(config, "head")
        return
    with engine.begin() as connection:
        config.attributes["connection"] = connection
        command.upgrade(config, "head")
