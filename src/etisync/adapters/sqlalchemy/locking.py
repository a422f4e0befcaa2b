"""Named workflow locks stored as rows in ``Workflow_Locks``."""

from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

from sqlalchemy import delete, insert
from sqlalchemy.exc import IntegrityError

from etisync.domain.errors import LockTimeoutError
from etisync.domain.model import new_machine_id

from .mappings import workflow_locks_table

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


class SqlAlchemyWorkflowLock:
    """Acquire by inserting the lock row in its own transaction; release by deleting it.

    A row older than ``stale_after`` belongs to a run that died without
    releasing and is removed before the next attempt.
    """

    def __init__(
        self,
        engine: Engine,
        *,
        stale_after: timedelta = timedelta(minutes=10),
        poll_interval: float = 0.1,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.engine = engine
        self.stale_after = stale_after
        self.poll_interval = poll_interval
        self._clock = clock

    @contextmanager
    def hold(self, name: str, *, timeout: float) -> Iterator[None]:
        owner_id = new_machine_id()
        deadline = time.monotonic() + timeout
        while not self._try_acquire(name, owner_id):
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise LockTimeoutError(name, timeout)
            time.sleep(min(self.poll_interval, remaining))
        log.debug("Acquired lock %s (%s)", name, owner_id)
        try:
            yield
        finally:
            self._release(name, owner_id)

    def _try_acquire(self, name: str, owner_id: str) -> bool:
        now = self._clock()
        locks = workflow_locks_table
        with self.engine.begin() as connection:
            stale = connection.execute(
                delete(locks).where(
                    locks.c.Lock_Name == name,
                    locks.c.Acquired_At < now - self.stale_after,
                )
            )
            if stale.rowcount:
                log.warning("Broke stale lock %s", name)
        try:
            with self.engine.begin() as connection:
                connection.execute(
                    insert(locks).values(Lock_Name=name, Owner_ID=owner_id, Acquired_At=now)
                )
        except IntegrityError:
            return False
        return True

    def _release(self, name: str, owner_id: str) -> None:
        locks = workflow_locks_table
        with self.engine.begin() as connection:
            connection.execute(
                delete(locks).where(locks.c.Lock_Name == name, locks.c.Owner_ID == owner_id)
            )
        log.debug("Released lock %s (%s)", name, owner_id)
