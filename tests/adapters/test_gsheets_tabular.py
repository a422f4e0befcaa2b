from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING, Any, cast

import gspread
import pytest

from etisync.adapters.gsheets import GSheetsTabularStore, GSheetsWorkbookUnitOfWork
from etisync.adapters.gsheets.tabular import parse_cell, render_cell
from etisync.adapters.workbook import TableCounterStore
from etisync.domain.errors import MissingColumnError, TableNotFoundError
from etisync.domain.model import AuditEntry, Row
from etisync.domain.ports import WorkbookRepositories
from etisync.domain.reconciliation import WorkflowRun, export_schema_snapshot
from tests.helpers.workbook import RecordingAuditLog

if TYPE_CHECKING:
    from collections.abc import Sequence


class FakeWorksheet:
    def __init__(self, title: str, values: Sequence[Sequence[str]]) -> None:
        self.title = title
        self.values = [list(row) for row in values]
        self.calls: list[tuple[Any, ...]] = []

    def get_all_values(self) -> list[list[str]]:
        return [list(row) for row in self.values]

    def row_values(self, row: int) -> list[str]:
        return list(self.values[row - 1]) if len(self.values) >= row else []

    def batch_update(self, data: list[dict[str, object]], **kwargs: object) -> None:
        self.calls.append(("batch_update", data, kwargs))

    def append_rows(self, values: list[list[object]], **kwargs: object) -> None:
        self.calls.append(("append_rows", values, kwargs))

    def batch_clear(self, ranges: list[str]) -> None:
        self.calls.append(("batch_clear", ranges))

    def delete_rows(self, start: int, end: int | None = None) -> None:
        self.calls.append(("delete_rows", start, end))


class FakeSpreadsheet:
    def __init__(self, *worksheets: FakeWorksheet) -> None:
        self._worksheets = {worksheet.title: worksheet for worksheet in worksheets}

    def worksheet(self, title: str) -> FakeWorksheet:
        try:
            return self._worksheets[title]
        except KeyError as exc:
            raise gspread.exceptions.WorksheetNotFound(title) from exc

    def worksheets(self) -> list[FakeWorksheet]:
        return list(self._worksheets.values())


def _items_sheet() -> FakeWorksheet:
    return FakeWorksheet(
        "Lookup_Items",
        [
            ["Item_ID_Machine", "Item_Name", "Is_Active", ""],
            ["", "Milk", "TRUE"],
            ["x", "Tea", "FALSE", "stray"],
        ],
    )


def _store(*worksheets: FakeWorksheet) -> GSheetsTabularStore:
    return GSheetsTabularStore(cast(gspread.Spreadsheet, FakeSpreadsheet(*worksheets)))


def test_cells_are_parsed_like_checkboxes() -> None:
    assert parse_cell("") is None
    assert parse_cell("TRUE") is True
    assert parse_cell("false") is False
    assert parse_cell(" 12 ") == " 12 "
    assert render_cell(None) == ""
    assert render_cell(True) == "TRUE"
    assert render_cell(date(2024, 3, 1)) == "2024-03-01"
    assert render_cell(3.5) == 3.5


def test_read_table_uses_sheet_row_numbers() -> None:
    snapshot = _store(_items_sheet()).read_table("Lookup_Items")

    assert snapshot.columns == ("Item_ID_Machine", "Item_Name", "Is_Active")
    assert [row.number for row in snapshot] == [2, 3]
    assert snapshot.rows[0].values == {
        "Item_ID_Machine": None,
        "Item_Name": "Milk",
        "Is_Active": True,
    }
    assert snapshot.rows[1]["Is_Active"] is False


def test_write_rows_sends_one_batch_of_cells() -> None:
    sheet = _items_sheet()

    _store(sheet).write_rows(
        "Lookup_Items",
        [
            Row(number=2, values={"Item_ID_Machine": "id-1"}),
            Row(number=3, values={"Is_Active": True}),
        ],
    )

    (call,) = sheet.calls
    assert call[0] == "batch_update"
    assert call[1] == [
        {"range": "A2", "values": [["id-1"]]},
        {"range": "C3", "values": [["TRUE"]]},
    ]
    assert call[2]["value_input_option"] == "USER_ENTERED"


def test_append_rows_follows_header_order() -> None:
    sheet = _items_sheet()

    _store(sheet).append_rows("Lookup_Items", [{"Item_Name": "Bread", "Is_Active": True}])

    (call,) = sheet.calls
    assert call[:2] == ("append_rows", [["", "Bread", "TRUE", ""]])


def test_unknown_column_is_rejected_before_any_call() -> None:
    sheet = _items_sheet()
    store = _store(sheet)

    with pytest.raises(MissingColumnError):
        store.append_rows("Lookup_Items", [{"Brand_Name": "Acme"}])
    with pytest.raises(MissingColumnError):
        store.write_rows("Lookup_Items", [Row(number=2, values={"Brand_Name": "Acme"})])

    assert sheet.calls == []


def test_clear_and_delete_ranges() -> None:
    sheet = _items_sheet()
    store = _store(sheet)

    store.clear_cells("Lookup_Items", [(2, "Item_Name")])
    store.clear_rows("Lookup_Items", [3])
    store.delete_rows("Lookup_Items", [3, 6, 4])

    assert sheet.calls == [
        ("batch_clear", ["B2"]),
        ("batch_clear", ["A3:D3"]),
        ("delete_rows", 6, 6),
        ("delete_rows", 3, 4),
    ]


def test_missing_worksheet_is_table_not_found() -> None:
    with pytest.raises(TableNotFoundError):
        _store(_items_sheet()).read_table("Lookup_Brands")


def test_list_tables_returns_worksheet_titles() -> None:
    store = _store(_items_sheet(), FakeWorksheet("Counter_Control", [["Entity_Key"]]))

    assert store.list_tables() == ["Lookup_Items", "Counter_Control"]
    assert store.read_header("Counter_Control") == ("Entity_Key",)


def test_unit_of_work_flushes_audit_entries_on_commit() -> None:
    header = [
        "Timestamp",
        "Execution_ID",
        "Script_Name",
        "Sheet_Name",
        "Trigger_Type",
        "Level",
        "Row_Number",
        "Action",
        "Details",
    ]
    logs = FakeWorksheet("Script_Logs", [header])
    spreadsheet = cast(gspread.Spreadsheet, FakeSpreadsheet(logs))

    with GSheetsWorkbookUnitOfWork(spreadsheet) as uow:
        uow.repositories.audit_log.append(
            AuditEntry(execution_id="e", script_name="s", table_name="t", action="START")
        )
        assert logs.calls == []
        uow.commit()

    (call,) = logs.calls
    assert call[0] == "append_rows"
    assert call[1][0][1:] == ["e", "s", "t", "MANUAL", "INFO", "", "START", ""]


def test_schema_snapshot_keeps_positions_across_blank_headers() -> None:
    items = FakeWorksheet("Lookup_Items", [["Item_ID_Machine", "", "Item_Name"]])
    snapshot = FakeWorksheet(
        "Schema_Snapshot", [["Sheet_Name", "Column_Index", "Column_Letter", "Header_Value"]]
    )
    store = _store(items, snapshot)
    repositories = WorkbookRepositories(
        tables=store, counters=TableCounterStore(store), audit_log=RecordingAuditLog()
    )

    result = export_schema_snapshot(
        repositories, WorkflowRun("snapshot", "Schema_Snapshot", repositories.audit_log)
    )

    assert store.read_header("Lookup_Items") == ("Item_ID_Machine", "", "Item_Name")
    (call,) = snapshot.calls
    assert call[1] == [
        ["Lookup_Items", 1, "A", "Item_ID_Machine"],
        ["Lookup_Items", 3, "C", "Item_Name"],
    ]
    assert result.columns == 2
