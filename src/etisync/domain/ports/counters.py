"""Port for named monotonic counters."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class CounterStore(Protocol):
    def get_counter(self, entity_key: str) -> int: ...

    def set_counter(self, entity_key: str, value: int) -> None: ...
