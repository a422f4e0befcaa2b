"""In-memory snapshot of one table read from a tabular store."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from etisync.domain.errors import MissingColumnError

from .cells import as_text, is_blank

if TYPE_CHECKING:
    from collections.abc import Iterator

    from .cells import CellValue


@dataclass(slots=True)
class Row:
    """One data row. ``number`` is the store's stable address for the row."""

    number: int
    values: dict[str, CellValue] = field(default_factory=dict[str, "CellValue"])

    def __getitem__(self, column: str) -> CellValue:
        return self.values.get(column)

    def __setitem__(self, column: str, value: CellValue) -> None:
        self.values[column] = value

    def text(self, column: str) -> str:
        return as_text(self.values.get(column))

    def is_blank(self, column: str) -> bool:
        return is_blank(self.values.get(column))


@dataclass(slots=True)
class TableSnapshot:
    """Header-addressed copy of a table's used range."""

    name: str
    columns: tuple[str, ...]
    rows: list[Row] = field(default_factory=list[Row])

    def __iter__(self) -> Iterator[Row]:
        return iter(self.rows)

    def __len__(self) -> int:
        return len(self.rows)

    @property
    def is_empty(self) -> bool:
        return not self.rows

    def require_columns(self, *columns: str) -> None:
        missing = tuple(column for column in columns if column not in self.columns)
        if missing:
            raise MissingColumnError(self.name, missing)

    def find_column(self, column: str) -> str | None:
        """Resolve ``column`` ignoring case and surrounding whitespace."""

        wanted = column.strip().lower()
        for candidate in self.columns:
            if candidate.strip().lower() == wanted:
                return candidate
        return None

    def blank_row(self, values: Mapping[str, CellValue] | None = None) -> dict[str, CellValue]:
        """Return a full-width row dict, blank except for ``values``."""

        row: dict[str, CellValue] = dict.fromkeys(self.columns)
        if values:
            unknown = tuple(column for column in values if column not in self.columns)
            if unknown:
                raise MissingColumnError(self.name, unknown)
            row.update(values)
        return row
