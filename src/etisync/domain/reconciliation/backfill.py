"""Identifier backfill for master and raw transaction tables.

Every function reads its table once, decides all assignments in memory and
writes the changed cells back with a single ``write_rows`` call. Rows that
already carry an identifier are never touched, so a second run writes nothing.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from etisync.domain.model import (
    TRANSACTIONS,
    HumanIdSequence,
    LogLevel,
    Row,
    filled_count,
    format_human_id,
    new_machine_id,
    parse_human_id,
)
from etisync.domain.model.workbook import HUMAN_ID_PAD_LENGTH

if TYPE_CHECKING:
    from etisync.domain.model import EntityDefinition, TransactionDefinition
    from etisync.domain.ports import WorkbookRepositories

    from .run import WorkflowRun

IdFactory = Callable[[], str]


@dataclass(slots=True)
class BackfillResult:
    scanned: int = 0
    generated: int = 0
    skipped: dict[str, int] = field(default_factory=dict[str, int])
    last_human_id: str | None = None


def backfill_transaction_ids(
    repositories: WorkbookRepositories,
    run: WorkflowRun,
    *,
    transactions: TransactionDefinition = TRANSACTIONS,
    id_factory: IdFactory = new_machine_id,
) -> BackfillResult:
    """Assign a transaction id to every complete raw row that lacks one."""

    tables = repositories.tables
    table = tables.read_table(transactions.table)
    table.require_columns(*transactions.natural_key, transactions.id_column)
    if table.is_empty:
        run.exit_empty()
        return BackfillResult()

    required = len(transactions.natural_key)
    changed: list[Row] = []
    for row in table:
        if filled_count([row[column] for column in transactions.natural_key]) < required:
            run.skip("Invalid")
            continue
        if not row.is_blank(transactions.id_column):
            run.skip("Existing")
            continue
        value = id_factory()
        changed.append(Row(number=row.number, values={transactions.id_column: value}))
        run.record(
            "GENERATE_TXN_ID",
            f"Generated {transactions.id_column}: {value}",
            row_number=row.number,
        )

    if changed:
        tables.write_rows(transactions.table, changed)

    run.summary(Scanned=len(table), Generated=len(changed))
    return BackfillResult(scanned=len(table), generated=len(changed), skipped=dict(run.skips))


def backfill_machine_ids(
    repositories: WorkbookRepositories,
    run: WorkflowRun,
    *,
    entity: EntityDefinition,
    id_factory: IdFactory = new_machine_id,
) -> BackfillResult:
    """Assign a machine id to every named master row that lacks one."""

    tables = repositories.tables
    table = tables.read_table(entity.master_table)
    table.require_columns(entity.name, entity.machine_id)
    if table.is_empty:
        run.exit_empty()
        return BackfillResult()

    changed: list[Row] = []
    for row in table:
        if row.is_blank(entity.name):
            run.skip("NoName")
            continue
        if not row.is_blank(entity.machine_id):
            run.skip("Existing")
            continue
        value = id_factory()
        changed.append(Row(number=row.number, values={entity.machine_id: value}))
        run.record(
            f"GENERATE_{entity.key}_ID",
            f"Generated {entity.machine_id}: {value}",
            row_number=row.number,
        )

    if changed:
        tables.write_rows(entity.master_table, changed)

    run.summary(Scanned=len(table), Generated=len(changed))
    return BackfillResult(scanned=len(table), generated=len(changed), skipped=dict(run.skips))


def backfill_human_ids(
    repositories: WorkbookRepositories,
    run: WorkflowRun,
    *,
    entity: EntityDefinition,
    pad_length: int = HUMAN_ID_PAD_LENGTH,
) -> BackfillResult:
    """Assign ``PREFIX-000001`` style ids from the entity's counter.

    The counter is read once and written once, and only when at least one id
    was handed out. Existing ids are never renumbered.
    """

    tables = repositories.tables
    table = tables.read_table(entity.master_table)
    table.require_columns(entity.name, entity.human_id)
    counter = repositories.counters.get_counter(entity.key)
    if table.is_empty:
        run.exit_empty()
        return BackfillResult()

    prefix = entity.human_id_prefix
    highest = max(
        (
            suffix
            for suffix in (parse_human_id(prefix, row[entity.human_id]) for row in table)
            if suffix is not None
        ),
        default=0,
    )
    start = counter
    if highest > counter:
        run.record(
            "COUNTER_BEHIND",
            f"Counter {entity.key}={counter} is below existing "
            f"{format_human_id(prefix, highest, pad_length)}; continuing from there",
            level=LogLevel.WARN,
        )
        start = highest

    sequence = HumanIdSequence(prefix=prefix, pad_length=pad_length, start=start)
    changed: list[Row] = []
    for row in table:
        if row.is_blank(entity.name):
            run.skip("NoName")
            continue
        if not row.is_blank(entity.human_id):
            run.skip("Existing")
            continue
        value = sequence.next()
        changed.append(Row(number=row.number, values={entity.human_id: value}))
        run.record(
            f"GENERATE_{entity.key}_ID_HUMAN",
            f"Generated {entity.human_id}: {value}",
            row_number=row.number,
        )

    last_human_id: str | None = None
    if changed:
        tables.write_rows(entity.master_table, changed)
        repositories.counters.set_counter(entity.key, sequence.current)
        last_human_id = format_human_id(prefix, sequence.current, pad_length)

    run.summary(Generated=len(changed), Last=last_human_id or "-")
    return BackfillResult(
        scanned=len(table),
        generated=len(changed),
        skipped=dict(run.skips),
        last_human_id=last_human_id,
    )
