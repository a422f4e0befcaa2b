"""In-process workflow locks for stores that cannot hold a lock themselves."""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import TYPE_CHECKING

from etisync.domain.errors import LockTimeoutError

if TYPE_CHECKING:
    from collections.abc import Iterator


class LocalWorkflowLock:
    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, threading.Lock] = {}

    def _lock_for(self, name: str) -> threading.Lock:
        with self._guard:
            return self._locks.setdefault(name, threading.Lock())

    @contextmanager
    def hold(self, name: str, *, timeout: float) -> Iterator[None]:
        lock = self._lock_for(name)
        if not lock.acquire(timeout=max(timeout, 0)):
            raise LockTimeoutError(name, timeout)
        try:
            yield
        finally:
            lock.release()
