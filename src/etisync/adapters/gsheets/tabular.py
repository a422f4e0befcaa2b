"""Tabular store over the worksheets of one Google spreadsheet.

Row numbers are spreadsheet row numbers; the header is row 1. Cells are read
as text, with ``TRUE``/``FALSE`` turned into booleans and empty text into
``None``. Writes use ``USER_ENTERED`` so the sheet parses numbers and dates.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import TYPE_CHECKING

import gspread
from gspread.utils import ValueInputOption, rowcol_to_a1

from etisync.domain.errors import MissingColumnError, TableNotFoundError
from etisync.domain.model import Row, TableSnapshot

from .client import call_with_retry

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from etisync.domain.model import CellValue

log = logging.getLogger(__name__)


def parse_cell(raw: str) -> CellValue:
    if raw == "":
        return None
    flag = raw.strip().upper()
    if flag == "TRUE":
        return True
    if flag == "FALSE":
        return False
    return raw


def render_cell(value: CellValue) -> str | int | float:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, datetime | date):
        return value.isoformat()
    return value


class GSheetsTabularStore:
    def __init__(self, spreadsheet: gspread.Spreadsheet) -> None:
        self.spreadsheet = spreadsheet
        self._worksheets: dict[str, gspread.Worksheet] = {}
        self._headers: dict[str, list[str]] = {}

    def _worksheet(self, name: str) -> gspread.Worksheet:
        cached = self._worksheets.get(name)
        if cached is not None:
            return cached
        try:
            worksheet = call_with_retry(self.spreadsheet.worksheet, name)
        except gspread.exceptions.WorksheetNotFound as exc:
            raise TableNotFoundError(name) from exc
        self._worksheets[name] = worksheet
        return worksheet

    def _header(self, name: str) -> list[str]:
        header = self._headers.get(name)
        if header is None:
            raw = call_with_retry(self._worksheet(name).row_values, 1)
            header = [cell.strip() for cell in raw]
            self._headers[name] = header
        return header

    def _column_index(self, name: str, column: str) -> int:
        header = self._header(name)
        if column not in header:
            raise MissingColumnError(name, (column,))
        return header.index(column) + 1

    def read_header(self, name: str) -> tuple[str, ...]:
        return tuple(self._header(name))

    def read_table(self, name: str) -> TableSnapshot:
        values = call_with_retry(self._worksheet(name).get_all_values)
        header = [cell.strip() for cell in values[0]] if values else []
        self._headers[name] = header
        rows = [
            Row(
                number=number,
                values={
                    column: parse_cell(raw[index]) if index < len(raw) else None
                    for index, column in enumerate(header)
                    if column
                },
            )
            for number, raw in enumerate(values[1:], start=2)
        ]
        log.debug("Read %d rows from %s", len(rows), name)
        return TableSnapshot(
            name=name, columns=tuple(column for column in header if column), rows=rows
        )

    def write_rows(self, name: str, rows: Sequence[Row]) -> None:
        data = [
            {
                "range": rowcol_to_a1(row.number, self._column_index(name, column)),
                "values": [[render_cell(value)]],
            }
            for row in rows
            for column, value in row.values.items()
        ]
        if not data:
            return
        call_with_retry(
            self._worksheet(name).batch_update,
            data,
            value_input_option=ValueInputOption.user_entered,
        )
        log.debug("Updated %d cells in %s", len(data), name)

    def append_rows(self, name: str, rows: Sequence[Mapping[str, CellValue]]) -> None:
        if not rows:
            return
        header = self._header(name)
        unknown = tuple(sorted({column for row in rows for column in row} - set(header)))
        if unknown:
            raise MissingColumnError(name, unknown)
        values = [
            [render_cell(row.get(column)) if column else "" for column in header] for row in rows
        ]
        call_with_retry(
            self._worksheet(name).append_rows,
            values,
            value_input_option=ValueInputOption.user_entered,
        )
        log.debug("Appended %d rows to %s", len(rows), name)

    def clear_cells(self, name: str, cells: Sequence[tuple[int, str]]) -> None:
        ranges = [
            rowcol_to_a1(number, self._column_index(name, column)) for number, column in cells
        ]
        if ranges:
            call_with_retry(self._worksheet(name).batch_clear, ranges)

    def clear_rows(self, name: str, row_numbers: Sequence[int]) -> None:
        width = max(len(self._header(name)), 1)
        ranges = [
            f"{rowcol_to_a1(number, 1)}:{rowcol_to_a1(number, width)}" for number in row_numbers
        ]
        if ranges:
            call_with_retry(self._worksheet(name).batch_clear, ranges)

    def delete_rows(self, name: str, row_numbers: Sequence[int]) -> None:
        """Delete bottom-up, one call per contiguous block, so pending numbers stay valid."""

        worksheet = self._worksheet(name)
        for start, end in _contiguous_blocks(row_numbers):
            call_with_retry(worksheet.delete_rows, start, end)
        log.debug("Deleted %d rows from %s", len(set(row_numbers)), name)

    def list_tables(self) -> list[str]:
        return [worksheet.title for worksheet in call_with_retry(self.spreadsheet.worksheets)]


def _contiguous_blocks(row_numbers: Sequence[int]) -> list[tuple[int, int]]:
    blocks: list[tuple[int, int]] = []
    for number in sorted(set(row_numbers), reverse=True):
        if blocks and blocks[-1][0] == number + 1:
            blocks[-1] = (number, blocks[-1][1])
        else:
            blocks.append((number, number))
    return blocks
