"""Enforce "identifier present => natural key present" after manual edits."""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

from etisync.domain.model import TRANSACTIONS, LogLevel, Row, filled_count

if TYPE_CHECKING:
    from collections.abc import Sequence

    from etisync.domain.model import EntityDefinition, TableSnapshot, TransactionDefinition
    from etisync.domain.ports import WorkbookRepositories

    from .run import WorkflowRun


class FillState(StrEnum):
    EMPTY = "empty"
    PARTIAL = "partial"
    COMPLETE = "complete"


def fill_state(row: Row, natural_key: Sequence[str]) -> FillState:
    filled = filled_count([row[column] for column in natural_key])
    if filled == 0:
        return FillState.EMPTY
    if filled < len(natural_key):
        return FillState.PARTIAL
    return FillState.COMPLETE


@dataclass(slots=True)
class OrphanCleanupResult:
    scanned: int = 0
    cleared_ids: int = 0
    cleared_rows: int = 0


def clear_orphan_ids(
    repositories: WorkbookRepositories,
    run: WorkflowRun,
    *,
    entity: EntityDefinition,
) -> OrphanCleanupResult:
    """Clear master machine ids whose name has been removed."""

    return _reconcile(
        repositories,
        run,
        table_name=entity.master_table,
        natural_key=(entity.name,),
        id_columns=(entity.machine_id,),
        strict=False,
    )


def cleanup_invalid_transactions(
    repositories: WorkbookRepositories,
    run: WorkflowRun,
    *,
    transactions: TransactionDefinition = TRANSACTIONS,
) -> OrphanCleanupResult:
    """Wipe partially filled raw transactions, keeping a snapshot in the audit log."""

    return _reconcile(
        repositories,
        run,
        table_name=transactions.table,
        natural_key=transactions.natural_key,
        id_columns=(transactions.id_column,),
        strict=True,
    )


def _reconcile(
    repositories: WorkbookRepositories,
    run: WorkflowRun,
    *,
    table_name: str,
    natural_key: tuple[str, ...],
    id_columns: tuple[str, ...],
    strict: bool,
) -> OrphanCleanupResult:
    tables = repositories.tables
    table = tables.read_table(table_name)
    table.require_columns(*natural_key, *id_columns)
    if table.is_empty:
        run.exit_empty()
        return OrphanCleanupResult()

    changed: list[Row] = []
    wiped: list[int] = []
    cleared_ids = 0
    for row in table:
        state = fill_state(row, natural_key)
        if state is FillState.COMPLETE:
            continue

        if strict and state is FillState.PARTIAL:
            run.record(
                "DELETE_INVALID_ROW",
                f"Partially filled row cleared. Snapshot={_snapshot(table, row)}",
                level=LogLevel.WARN,
                row_number=row.number,
            )
            wiped.append(row.number)
            continue

        present = [column for column in id_columns if not row.is_blank(column)]
        if not present:
            continue
        for column in present:
            run.record(
                "CLEAR_ORPHAN_ID",
                f"Natural key incomplete; cleared {column}: {row.text(column)}",
                level=LogLevel.WARN,
                row_number=row.number,
            )
        changed.append(Row(number=row.number, values=dict.fromkeys(present)))
        cleared_ids += len(present)

    if wiped:
        # snapshots must be stored before the rows they describe disappear
        run.flush()
        tables.clear_rows(table_name, wiped)
    if changed:
        tables.write_rows(table_name, changed)

    cleared_rows = len(wiped)
    run.summary(Scanned=len(table), ClearedIds=cleared_ids, ClearedRows=cleared_rows)
    return OrphanCleanupResult(
        scanned=len(table), cleared_ids=cleared_ids, cleared_rows=cleared_rows
    )


def _snapshot(table: TableSnapshot, row: Row) -> str:
    return json.dumps({column: row[column] for column in table.columns}, default=str)
