"""Cell-level helpers shared by all workflows.

A cell is blank when it holds ``None`` or whitespace-only text. ``0`` and
``False`` are values, not blanks.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import TypeAlias

CellValue: TypeAlias = str | int | float | bool | date | datetime | None


def is_blank(value: CellValue) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def is_filled(value: CellValue) -> bool:
    return not is_blank(value)


def as_flag(value: CellValue) -> bool:
    """Return True only for a checked checkbox: ``True`` or the text ``TRUE``."""

    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().upper() == "TRUE"
    return False


def as_text(value: CellValue) -> str:
    if is_blank(value):
        return ""
    if isinstance(value, datetime | date):
        return value.isoformat()
    return str(value).strip()


def as_number(value: CellValue) -> float | None:
    """Numeric view of a cell; blanks and unparsable text yield ``None``."""

    if is_blank(value) or isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip().replace(",", ""))
        except ValueError:
            return None
    return None


def filled_count(values: list[CellValue] | tuple[CellValue, ...]) -> int:
    return sum(1 for value in values if is_filled(value))
