"""Port for reading and writing header-addressed tables."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from etisync.domain.model import CellValue, Row, TableSnapshot


@runtime_checkable
class TabularStore(Protocol):
    """Bulk access to a store of named tables with a header row.

    Row numbers are whatever the store uses to address a row (spreadsheet row
    numbers, primary keys); workflows only pass back numbers they have read.
    ``write_rows`` updates only the columns present in each row's ``values``.
    ``read_header`` returns the header cells by position, blank cells as ``""``.
    """

    def read_table(self, name: str) -> TableSnapshot: ...

    def read_header(self, name: str) -> tuple[str, ...]: ...

    def write_rows(self, name: str, rows: Sequence[Row]) -> None: ...

    def append_rows(self, name: str, rows: Sequence[Mapping[str, CellValue]]) -> None: ...

    def clear_cells(self, name: str, cells: Sequence[tuple[int, str]]) -> None: ...

    def clear_rows(self, name: str, row_numbers: Sequence[int]) -> None: ...

    def delete_rows(self, name: str, row_numbers: Sequence[int]) -> None: ...

    def list_tables(self) -> list[str]: ...
