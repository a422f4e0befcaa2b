"""Header inventory of every table in the store."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from etisync.domain.model.workbook import SCHEMA_SNAPSHOT

if TYPE_CHECKING:
    from etisync.domain.model import CellValue
    from etisync.domain.ports import WorkbookRepositories

    from .run import WorkflowRun

SNAPSHOT_COLUMNS = ("Sheet_Name", "Column_Index", "Column_Letter", "Header_Value")


def column_letter(index: int) -> str:
    """Spreadsheet column letter for a 1-based index (``1 -> A``, ``27 -> AA``)."""

    if index < 1:
        raise ValueError(f"Column index must be positive, got {index}")
    letters = ""
    while index:
        index, remainder = divmod(index - 1, 26)
        letters = chr(ord("A") + remainder) + letters
    return letters


@dataclass(slots=True)
class SchemaSnapshotResult:
    tables: int = 0
    columns: int = 0


def export_schema_snapshot(
    repositories: WorkbookRepositories,
    run: WorkflowRun,
    *,
    output: str = SCHEMA_SNAPSHOT,
) -> SchemaSnapshotResult:
    """Rebuild ``output`` with one row per named header cell.

    Blank header cells are skipped but keep their position, so index and
    letter always point at the real spreadsheet column.
    """

    tables = repositories.tables
    target = tables.read_table(output)
    target.require_columns(*SNAPSHOT_COLUMNS)

    names = [name for name in tables.list_tables() if name != output]
    rows: list[dict[str, CellValue]] = []
    for name in names:
        for index, header in enumerate(tables.read_header(name), start=1):
            if not header:
                continue
            rows.append(
                target.blank_row(
                    {
                        "Sheet_Name": name,
                        "Column_Index": index,
                        "Column_Letter": column_letter(index),
                        "Header_Value": header,
                    }
                )
            )

    if not target.is_empty:
        tables.delete_rows(output, [row.number for row in target])
    if rows:
        tables.append_rows(output, rows)

    run.summary(Tables=len(names), Columns=len(rows))
    return SchemaSnapshotResult(tables=len(names), columns=len(rows))
