"""Identifier generation: opaque machine ids and sequential human ids."""

from __future__ import annotations

from dataclasses import dataclass, field
from uuid import uuid4


def new_machine_id() -> str:
    return str(uuid4())


def format_human_id(prefix: str, value: int, pad_length: int) -> str:
    return f"{prefix}{value:0{pad_length}d}"


def parse_human_id(prefix: str, value: object) -> int | None:
    """Return the numeric suffix of ``value`` if it carries ``prefix``."""

    if not isinstance(value, str) or not value.startswith(prefix):
        return None
    suffix = value[len(prefix) :]
    return int(suffix) if suffix.isdigit() else None


@dataclass(slots=True)
class HumanIdSequence:
    """Forward-only sequence seeded once from a counter; persisted by the caller."""

    prefix: str
    pad_length: int
    start: int
    current: int = field(init=False)

    def __post_init__(self) -> None:
        self.current = self.start

    def next(self) -> str:
        self.current += 1
        return format_human_id(self.prefix, self.current, self.pad_length)
