"""Unit of work over a spreadsheet.

Sheets writes apply immediately, so there is nothing to roll back; the
audit buffer is flushed on both commit and rollback so the trail matches what
was actually written.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Literal

import gspread

from etisync.adapters.workbook import TableAuditLog, TableCounterStore
from etisync.domain.errors import WorkflowError
from etisync.domain.ports import WorkbookRepositories

from .tabular import GSheetsTabularStore

if TYPE_CHECKING:
    from types import TracebackType

log = logging.getLogger(__name__)


class GSheetsWorkbookUnitOfWork:
    def __init__(self, spreadsheet: gspread.Spreadsheet) -> None:
        self.spreadsheet = spreadsheet
        self._repositories: WorkbookRepositories | None = None
        self._audit_log: TableAuditLog | None = None

    def __enter__(self) -> GSheetsWorkbookUnitOfWork:
        tables = GSheetsTabularStore(self.spreadsheet)
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
            try:
                self.rollback()
            except (WorkflowError, gspread.exceptions.APIError):
                log.exception("Could not flush audit entries after failure")
        self._repositories = None
        self._audit_log = None
        return False

    @property
    def repositories(self) -> WorkbookRepositories:
        if self._repositories is None:
            raise RuntimeError("Unit of work not entered")
        return self._repositories

    def commit(self) -> None:
        if self._audit_log is not None:
            self._audit_log.flush()

    def rollback(self) -> None:
        if self._audit_log is not None:
            self._audit_log.flush()
