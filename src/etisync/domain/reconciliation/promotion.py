"""Publish approved staging rows into their master table exactly once.

Promotion happens in three bulk writes so that stores without transactions
can resume after a crash:

1. the new machine id is written to ``Mapped_<E>_ID_Machine`` of each staging
   row, which marks the row as in progress,
2. master rows are appended for every id not already present,
3. ``Is_Lookup_Promoted`` is set and the note is appended.

An approved, unpromoted row that already carries a mapped id reuses it, and
its master row is only appended when no master row with that id exists.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from etisync.domain.model import Row, as_flag, new_machine_id
from etisync.domain.model.workbook import (
    IS_ACTIVE,
    IS_APPROVED,
    IS_ARCHIVED,
    IS_LOOKUP_PROMOTED,
    IS_STAGING_PROMOTED,
    NOTES,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from etisync.domain.model import CellValue, EntityDefinition, TableSnapshot
    from etisync.domain.ports import WorkbookRepositories

    from .run import WorkflowRun

MASTER_NOTE = "Promoted from staging"
NOTE_SEPARATOR = " | "


@dataclass(slots=True)
class PromotionResult:
    scanned: int = 0
    promoted: int = 0
    resumed: int = 0
    skipped: dict[str, int] = field(default_factory=dict[str, int])
    machine_ids: list[str] = field(default_factory=list[str])


@dataclass(slots=True, frozen=True)
class _Claim:
    row: Row
    machine_id: str
    name: str
    canonical: str
    resumed: bool


def promote_approved(
    repositories: WorkbookRepositories,
    run: WorkflowRun,
    *,
    entity: EntityDefinition,
    id_factory: Callable[[], str] = new_machine_id,
) -> PromotionResult:
    tables = repositories.tables
    master = tables.read_table(entity.master_table)
    master.require_columns(
        entity.machine_id,
        entity.human_id,
        entity.name,
        entity.canonical_name,
        IS_ACTIVE,
        IS_ARCHIVED,
        IS_STAGING_PROMOTED,
        NOTES,
    )
    staging = tables.read_table(entity.staging_table)
    staging.require_columns(
        entity.entered_name,
        entity.approved_name,
        entity.canonical_name,
        entity.mapped_id,
        IS_APPROVED,
        IS_LOOKUP_PROMOTED,
        NOTES,
    )
    if staging.is_empty:
        run.exit_empty()
        return PromotionResult()

    claims: list[_Claim] = []
    for row in staging:
        if not as_flag(row[IS_APPROVED]):
            run.skip("NotApproved")
            continue
        if as_flag(row[IS_LOOKUP_PROMOTED]):
            run.skip("AlreadyPromoted")
            continue
        name = row.text(entity.approved_name) or row.text(entity.entered_name)
        if not name:
            run.skip("NoName")
            continue
        mapped = row.text(entity.mapped_id)
        claims.append(
            _Claim(
                row=row,
                machine_id=mapped or id_factory(),
                name=name,
                canonical=row.text(entity.canonical_name),
                resumed=bool(mapped),
            )
        )

    if claims:
        _publish(repositories, run, entity=entity, master=master, claims=claims)

    resumed = sum(1 for claim in claims if claim.resumed)
    run.summary(Scanned=len(staging), Promoted=len(claims) - resumed, Resumed=resumed)
    return PromotionResult(
        scanned=len(staging),
        promoted=len(claims) - resumed,
        resumed=resumed,
        skipped=dict(run.skips),
        machine_ids=[claim.machine_id for claim in claims],
    )


def _publish(
    repositories: WorkbookRepositories,
    run: WorkflowRun,
    *,
    entity: EntityDefinition,
    master: TableSnapshot,
    claims: list[_Claim],
) -> None:
    tables = repositories.tables

    fresh = [claim for claim in claims if not claim.resumed]
    if fresh:
        tables.write_rows(
            entity.staging_table,
            [Row(claim.row.number, {entity.mapped_id: claim.machine_id}) for claim in fresh],
        )

    published = {row.text(entity.machine_id) for row in master} - {""}
    new_master: list[dict[str, CellValue]] = []
    for claim in claims:
        if claim.machine_id in published:
            run.record(
                f"RESUME_{entity.key}",
                f"{entity.machine_id}={claim.machine_id} already in {entity.master_table}",
                row_number=claim.row.number,
            )
            continue
        published.add(claim.machine_id)
        new_master.append(
            master.blank_row(
                {
                    entity.machine_id: claim.machine_id,
                    entity.human_id: "",
                    entity.name: claim.name,
                    entity.canonical_name: claim.canonical,
                    IS_ACTIVE: True,
                    IS_ARCHIVED: False,
                    IS_STAGING_PROMOTED: True,
                    NOTES: MASTER_NOTE,
                }
            )
        )
        run.record(
            f"PROMOTE_{entity.key}",
            f"{claim.name!r} -> {entity.machine_id}={claim.machine_id}",
            row_number=claim.row.number,
        )
    if new_master:
        tables.append_rows(entity.master_table, new_master)

    tables.write_rows(
        entity.staging_table,
        [
            Row(
                claim.row.number,
                {
                    IS_LOOKUP_PROMOTED: True,
                    NOTES: _append_note(
                        claim.row.text(NOTES),
                        f"Promoted to {entity.master_table} -> "
                        f"{entity.machine_id}={claim.machine_id}",
                    ),
                },
            )
            for claim in claims
        ],
    )


def _append_note(existing: str, note: str) -> str:
    return f"{existing}{NOTE_SEPARATOR}{note}" if existing else note
