"""Exceptions raised by reconciliation workflows."""

from __future__ import annotations


class WorkflowError(RuntimeError):
    """Base class for failures that abort a workflow run."""


class PreconditionError(WorkflowError):
    """A required table, column or control record is missing; nothing was written."""


class TableNotFoundError(PreconditionError):
    def __init__(self, table: str) -> None:
        super().__init__(f"Table {table} not found")
        self.table = table


class MissingColumnError(PreconditionError):
    def __init__(self, table: str, columns: tuple[str, ...]) -> None:
        super().__init__(f"{table} missing column(s): {', '.join(columns)}")
        self.table = table
        self.columns = columns


class CounterNotFoundError(PreconditionError):
    def __init__(self, entity_key: str, table: str) -> None:
        super().__init__(f"{entity_key} row not found in {table}")
        self.entity_key = entity_key
        self.table = table


class LockTimeoutError(WorkflowError):
    """Raised when a workflow lock could not be acquired within the bounded wait."""

    def __init__(self, name: str, timeout: float) -> None:
        super().__init__(f"Could not acquire lock {name!r} within {timeout:g}s")
        self.name = name
        self.timeout = timeout
