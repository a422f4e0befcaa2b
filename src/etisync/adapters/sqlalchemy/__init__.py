"""SQLAlchemy adapter package for etisync."""

from __future__ import annotations

from .locking import SqlAlchemyWorkflowLock
from .mappings import create_all_tables, declared_table, metadata
from .tabular import SqlAlchemyTabularStore
from .unit_of_work import (
    SqlAlchemyWorkbookUnitOfWork,
    StartupError,
    configured_engine,
    is_started,
    shutdown,
    startup,
)

__all__ = [
    "SqlAlchemyTabularStore",
    "SqlAlchemyWorkbookUnitOfWork",
    "SqlAlchemyWorkflowLock",
    "StartupError",
    "configured_engine",
    "create_all_tables",
    "declared_table",
    "is_started",
    "metadata",
    "shutdown",
    "startup",
]
