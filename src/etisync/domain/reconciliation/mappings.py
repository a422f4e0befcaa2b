"""Relationship tables derived from resolved transactions."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from etisync.domain.model import LogLevel
from etisync.domain.model.workbook import IS_ARCHIVED, NOTES, TRANSACTION_STAGING, TXN_ID

if TYPE_CHECKING:
    from collections.abc import Callable

    from etisync.domain.model import CellValue, MappingDefinition, Row
    from etisync.domain.ports import WorkbookRepositories

    from .run import WorkflowRun

TXN_DATE = "Txn_Date_Entered"
FIRST_SEEN_TXN_ID = "First_Seen_Txn_ID"
FIRST_SEEN_TXN_DATE = "First_Seen_Txn_Date"
IS_MAPPING_ACTIVE = "Is_Mapping_Active"
CREATED_AT = "Created_At"
DISCOVERY_NOTE = "Discovered from transaction"


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass(slots=True)
class MappingDiscoveryResult:
    scanned: int = 0
    appended: int = 0
    skipped: dict[str, int] = field(default_factory=dict[str, int])


@dataclass(slots=True)
class MappingCleanupResult:
    scanned: int = 0
    deleted: int = 0


def discover_mappings(
    repositories: WorkbookRepositories,
    run: WorkflowRun,
    *,
    mapping: MappingDefinition,
    now: Callable[[], datetime] = _utcnow,
) -> MappingDiscoveryResult:
    """Append every id combination seen in ``Transaction_Staging`` but not yet mapped."""

    tables = repositories.tables
    target = tables.read_table(mapping.table)
    target.require_columns(
        *mapping.id_columns,
        FIRST_SEEN_TXN_ID,
        FIRST_SEEN_TXN_DATE,
        *mapping.canonical_columns,
        IS_MAPPING_ACTIVE,
        IS_ARCHIVED,
        CREATED_AT,
        NOTES,
    )
    source = tables.read_table(TRANSACTION_STAGING)
    source.require_columns(TXN_ID, TXN_DATE, *mapping.id_columns, *mapping.canonical_columns)
    if source.is_empty:
        run.exit_empty(TRANSACTION_STAGING)
        return MappingDiscoveryResult()

    existing = {
        key for key in (_key(row, mapping.id_columns) for row in target) if all(key)
    }

    first_seen: dict[tuple[str, ...], Row] = {}
    for row in source:
        if row.is_blank(TXN_ID):
            run.skip("NoTxn")
            continue
        key = _key(row, mapping.id_columns)
        if not all(key):
            run.skip("MissingId")
            continue
        if key in existing:
            run.skip("Existing")
            continue
        if key in first_seen:
            run.skip("Repeat")
            continue
        first_seen[key] = row

    created_at = now()
    pending: list[dict[str, CellValue]] = []
    for key, row in first_seen.items():
        values: dict[str, CellValue] = dict(zip(mapping.id_columns, key, strict=True))
        values.update({column: row.text(column) for column in mapping.canonical_columns})
        values.update(
            {
                FIRST_SEEN_TXN_ID: row.text(TXN_ID),
                FIRST_SEEN_TXN_DATE: row[TXN_DATE],
                IS_MAPPING_ACTIVE: True,
                IS_ARCHIVED: False,
                CREATED_AT: created_at,
                NOTES: DISCOVERY_NOTE,
            }
        )
        pending.append(target.blank_row(values))
        run.record("DISCOVER_MAPPING", " / ".join(key), row_number=row.number)

    if pending:
        tables.append_rows(mapping.table, pending)

    run.summary(Scanned=len(source), Appended=len(pending))
    return MappingDiscoveryResult(
        scanned=len(source), appended=len(pending), skipped=dict(run.skips)
    )


def cleanup_invalid_mappings(
    repositories: WorkbookRepositories,
    run: WorkflowRun,
    *,
    mapping: MappingDefinition,
) -> MappingCleanupResult:
    """Delete mapping rows that lost any of their related ids."""

    tables = repositories.tables
    table = tables.read_table(mapping.table)
    table.require_columns(*mapping.id_columns)
    if table.is_empty:
        run.exit_empty()
        return MappingCleanupResult()

    invalid: list[int] = []
    for row in table:
        key = _key(row, mapping.id_columns)
        if all(key):
            continue
        invalid.append(row.number)
        run.record(
            "DELETE_INVALID_MAPPING",
            ", ".join(
                f"{column}={value or '<blank>'}"
                for column, value in zip(mapping.id_columns, key, strict=True)
            ),
            level=LogLevel.WARN,
            row_number=row.number,
        )

    if invalid:
        tables.delete_rows(mapping.table, invalid)

    run.summary(Scanned=len(table), Deleted=len(invalid))
    return MappingCleanupResult(scanned=len(table), deleted=len(invalid))


def _key(row: Row, columns: tuple[str, ...]) -> tuple[str, ...]:
    return tuple(row.text(column) for column in columns)
