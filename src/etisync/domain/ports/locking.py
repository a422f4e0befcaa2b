"""Port for named mutual exclusion between workflow runs."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from contextlib import AbstractContextManager


@runtime_checkable
class WorkflowLock(Protocol):
    """Hold ``name`` for the duration of a ``with`` block.

    Implementations wait at most ``timeout`` seconds and raise
    :class:`etisync.domain.errors.LockTimeoutError` when the lock stays taken.
    """

    def hold(self, name: str, *, timeout: float) -> AbstractContextManager[None]: ...
