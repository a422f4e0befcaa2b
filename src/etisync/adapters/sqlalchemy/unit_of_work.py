"""SQLAlchemy-backed unit of work for workbook workflows.

The adapter owns one process-wide engine, set up by :func:`startup`. Each
unit of work is one session and therefore one database transaction; audit
entries are buffered and written to ``Script_Logs`` in that same transaction
on commit.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from etisync.adapters.sqlalchemy.migrations import upgrade_head
from etisync.adapters.sqlalchemy.tabular import SqlAlchemyTabularStore
from etisync.adapters.workbook import TableAuditLog, TableCounterStore
from etisync.config import get_database_config
from etisync.domain.ports import WorkbookRepositories

if TYPE_CHECKING:
    from types import TracebackType

    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)


class StartupError(RuntimeError):
    """Raised when a SQLAlchemy unit of work is used before initialisation."""


@dataclass(slots=True)
class _EngineState:
    engine: Engine | None = None
    session_factory: sessionmaker[Session] | None = None


_STATE = _EngineState()


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    force: bool = False,
) -> Engine:
    """Migrate the workbook database to head and make it the adapter's engine."""

    if _STATE.engine is not None and not force:
        raise StartupError(
            "SQLAlchemy adapter already initialised. Pass force=True to reconfigure."
        )

    resolved = engine or create_engine(database_uri or get_database_config().uri, future=True)
    upgrade_head(engine=resolved)
    log.info("Workbook database ready at %s", resolved.url)
    _STATE.engine = resolved
    _STATE.session_factory = sessionmaker(bind=resolved, expire_on_commit=False)
    return resolved


def configured_engine() -> Engine | None:
    return _STATE.engine


def is_started() -> bool:
    return _STATE.engine is not None


def shutdown() -> None:
    """Dispose the managed engine and forget it."""

    if _STATE.engine is not None:
        _STATE.engine.dispose()
    _STATE.engine = None
    _STATE.session_factory = None


class SqlAlchemyWorkbookUnitOfWork:
    """One database transaction per workflow run."""

    def __init__(self) -> None:
        session_factory = _STATE.session_factory
        if session_factory is None:
            raise StartupError(
                "SQLAlchemy adapter not initialised. Call "
                "etisync.adapters.sqlalchemy.startup() before opening a unit of work."
            )
        self._session_factory = session_factory
        self._session: Session | None = None
        self._audit_log: TableAuditLog | None = None
        self._repositories: WorkbookRepositories | None = None

    def __enter__(self) -> SqlAlchemyWorkbookUnitOfWork:
        if self._session is not None:
            raise StartupError("Unit of work already entered")
        self._session = self._session_factory()
        tables = SqlAlchemyTabularStore(self._session)
        self._audit_log = TableAuditLog(tables)
        self._repositories = WorkbookRepositories(
            tables=tables,
            counters=TableCounterStore(tables),
            audit_log=self._audit_log,
        )
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        if exc_type is not None:
            self.rollback()
        self.session.close()
        self._session = None
        self._audit_log = None
        self._repositories = None
        return False

    @property
    def session(self) -> Session:
        if self._session is None:
            raise StartupError("Unit of work session not initialised")
        return self._session

    @property
    def repositories(self) -> WorkbookRepositories:
        if self._repositories is None:
            raise StartupError("Unit of work session not initialised")
        return self._repositories

    def commit(self) -> None:
        if self._audit_log is not None:
            self._audit_log.flush()
        self.session.commit()

    def rollback(self) -> None:
        if self._audit_log is not None:
            self._audit_log.discard()
        self.session.rollback()


if TYPE_CHECKING:
    from etisync.domain.ports import WorkbookUnitOfWork

    _uow_check: WorkbookUnitOfWork = SqlAlchemyWorkbookUnitOfWork()
