"""The transactional boundary a workflow run executes in."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from types import TracebackType

    from .audit import AuditLogSink
    from .counters import CounterStore
    from .tabular import TabularStore


@dataclass(slots=True)
class WorkbookRepositories:
    """Everything a workflow touches inside one run."""

    tables: TabularStore
    counters: CounterStore
    audit_log: AuditLogSink


@runtime_checkable
class WorkbookUnitOfWork(Protocol):
    """Scope in which a run's writes and audit entries land together.

    Leaving the block with an exception rolls back; a clean exit without
    ``commit()`` persists nothing on stores that support transactions.
    """

    @property
    def repositories(self) -> WorkbookRepositories: ...

    def __enter__(self) -> WorkbookUnitOfWork: ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> bool: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...
