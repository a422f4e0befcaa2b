"""Domain port definitions for adapters."""

from __future__ import annotations

from .audit import AuditLogSink
from .counters import CounterStore
from .locking import WorkflowLock
from .tabular import TabularStore
from .unit_of_work import WorkbookRepositories, WorkbookUnitOfWork

__all__ = [
    "AuditLogSink",
    "CounterStore",
    "TabularStore",
    "WorkbookRepositories",
    "WorkbookUnitOfWork",
    "WorkflowLock",
]
