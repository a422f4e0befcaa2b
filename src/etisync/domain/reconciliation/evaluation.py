"""Record the evaluator row into the evaluation log.

The evaluator table holds a single working row whose derived columns are
recomputed by the store after each input change. The updater gates on the
inputs, waits for derived values to settle, re-reads and then upserts a
snapshot into the log. Column names are matched ignoring case and spacing.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Final

from etisync.domain.model import LogLevel, Row, as_flag, as_number, as_text, is_blank
from etisync.domain.model.workbook import ITEM_BUY_EVALUATE, ITEM_EVALUATION_LOG

if TYPE_CHECKING:
    from collections.abc import Callable

    from etisync.domain.model import CellValue, TableSnapshot
    from etisync.domain.ports import WorkbookRepositories

    from .run import WorkflowRun

INPUT_READY: Final = "Input_Ready_For_Comparison"
EVALUATION_ID: Final = "Evaluation_ID"
COMPARE_ID: Final = "Compare_ID"
SUMMARY_UI: Final = "Summary_UI"

SNAPSHOT_ALIASES: Final = (
    ("Evaluated_Item", "Planned_Item"),
    ("Evaluated_Brand", "Planned_Brand"),
    ("Evaluated_Product", "Planned_Product"),
    ("Evaluated_Platform", "Current_Platform"),
    ("Evaluated_Qty", "Planned_Qty"),
    ("Evaluated_Qty_Unit", "Planned_Qty_Unit"),
    ("Recorded_Normalised_Qty", "Planned_Normalised_Qty"),
    ("Evaluated_Price", "Current_Price"),
    ("Logged_At", "Evaluated_At"),
)
READY_FOR_LOGGING: Final = "Eval_Ready_For_Logging"

TEXT_MATCH_COLUMNS: Final = (
    "Evaluated_Item",
    "Evaluated_Brand",
    "Evaluated_Product",
    "Evaluated_Platform",
)
NUMBER_MATCH_COLUMNS: Final = ("Recorded_Normalised_Qty", "Evaluated_Price")

RESET_COLUMNS: Final = (
    "Planned_Item",
    "Planned_Brand",
    "Planned_Product",
    "Current_Platform",
    "Planned_Qty",
    "Planned_Qty_Unit",
    "Current_Price",
    "Evaluation_Date",
    "Evaluated_At",
    EVALUATION_ID,
)


class EvaluationOutcome(StrEnum):
    INSERTED = "inserted"
    UPDATED = "updated"
    GATED = "gated"


@dataclass(slots=True)
class EvaluationLogResult:
    outcome: EvaluationOutcome
    reason: str | None = None
    log_row: int | None = None


def update_evaluation_log(
    repositories: WorkbookRepositories,
    run: WorkflowRun,
    *,
    settle_seconds: float = 0.25,
    keep_evaluator_row: bool = False,
    sleep: Callable[[float], None] = time.sleep,
) -> EvaluationLogResult:
    tables = repositories.tables
    evaluator = tables.read_table(ITEM_BUY_EVALUATE)
    if evaluator.is_empty:
        run.exit_empty()
        return EvaluationLogResult(EvaluationOutcome.GATED, reason="empty")

    reason = _entry_gate(evaluator, evaluator.rows[0])
    if reason is not None:
        return _gated(run, reason)

    if settle_seconds > 0:
        sleep(settle_seconds)
    evaluator = tables.read_table(ITEM_BUY_EVALUATE)
    if evaluator.is_empty:
        return _gated(run, "evaluator row disappeared")
    row = evaluator.rows[0]
    reason = _entry_gate(evaluator, row) or _processing_gate(evaluator, row)
    if reason is not None:
        return _gated(run, reason)

    log_table = tables.read_table(ITEM_EVALUATION_LOG)
    snapshot = build_snapshot(evaluator, row)
    values = _project(log_table, snapshot)
    match = find_matching_row(log_table, snapshot)
    if match is not None:
        tables.write_rows(ITEM_EVALUATION_LOG, [Row(number=match.number, values=values)])
        outcome = EvaluationOutcome.UPDATED
        log_row: int | None = match.number
    else:
        tables.append_rows(ITEM_EVALUATION_LOG, [values])
        outcome = EvaluationOutcome.INSERTED
        log_row = None
    run.record(
        f"LOG_{outcome.name}",
        f"{EVALUATION_ID}={_cell(evaluator, row, EVALUATION_ID)}",
        row_number=log_row,
    )

    if not keep_evaluator_row:
        cells = [
            (row.number, column)
            for column in (evaluator.find_column(name) for name in RESET_COLUMNS)
            if column is not None
        ]
        if cells:
            tables.clear_cells(ITEM_BUY_EVALUATE, cells)

    run.summary(Outcome=outcome.value)
    return EvaluationLogResult(outcome, log_row=log_row)


def build_snapshot(evaluator: TableSnapshot, row: Row) -> dict[str, CellValue]:
    """Every evaluator column plus the log-side aliases of the planned inputs."""

    snapshot: dict[str, CellValue] = {column: row[column] for column in evaluator.columns}
    for target, source in SNAPSHOT_ALIASES:
        snapshot[target] = _cell(evaluator, row, source)
    snapshot[READY_FOR_LOGGING] = True
    return snapshot


def find_matching_row(log_table: TableSnapshot, snapshot: dict[str, CellValue]) -> Row | None:
    text_columns = [(name, log_table.find_column(name)) for name in TEXT_MATCH_COLUMNS]
    number_columns = [(name, log_table.find_column(name)) for name in NUMBER_MATCH_COLUMNS]
    wanted_text = [as_text(snapshot.get(name)).lower() for name, _ in text_columns]
    wanted_numbers = [as_number(snapshot.get(name)) for name, _ in number_columns]

    for candidate in log_table:
        texts = [
            candidate.text(column).lower() if column else "" for _, column in text_columns
        ]
        if texts != wanted_text:
            continue
        numbers = [
            as_number(candidate[column]) if column else None for _, column in number_columns
        ]
        if all(
            expected is not None and expected == actual
            for expected, actual in zip(wanted_numbers, numbers, strict=True)
        ):
            return candidate
    return None


def _project(log_table: TableSnapshot, snapshot: dict[str, CellValue]) -> dict[str, CellValue]:
    lookup = {key.strip().lower(): value for key, value in snapshot.items()}
    return {column: lookup.get(column.strip().lower()) for column in log_table.columns}


def _entry_gate(evaluator: TableSnapshot, row: Row) -> str | None:
    if not as_flag(_cell(evaluator, row, INPUT_READY)):
        return f"{INPUT_READY} is not TRUE"
    if is_blank(_cell(evaluator, row, EVALUATION_ID)):
        return f"{EVALUATION_ID} is blank"
    return None


def _processing_gate(evaluator: TableSnapshot, row: Row) -> str | None:
    if as_number(_cell(evaluator, row, COMPARE_ID)) != 1:
        return f"{COMPARE_ID} is not 1"
    if is_blank(_cell(evaluator, row, SUMMARY_UI)):
        return f"{SUMMARY_UI} is blank"
    return None


def _cell(table: TableSnapshot, row: Row, name: str) -> CellValue:
    column = table.find_column(name)
    return row[column] if column is not None else None


def _gated(run: WorkflowRun, reason: str) -> EvaluationLogResult:
    run.record("GATED", reason, level=LogLevel.WARN)
    return EvaluationLogResult(EvaluationOutcome.GATED, reason=reason)
