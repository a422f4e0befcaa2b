"""Collect unresolved canonical names from resolved transactions into staging."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from etisync.domain.model import ReviewStatus, new_machine_id
from etisync.domain.model.workbook import (
    IS_ACTIVE,
    IS_APPROVED,
    IS_ARCHIVED,
    IS_LOOKUP_PROMOTED,
    NOTES,
    REVIEW_STATUS,
    TRANSACTION_RESOLUTION,
    TXN_ID,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from etisync.domain.model import CellValue, EntityDefinition
    from etisync.domain.ports import WorkbookRepositories

    from .run import WorkflowRun

log = logging.getLogger(__name__)


@dataclass(slots=True)
class IntakeResult:
    scanned: int = 0
    appended: int = 0
    skipped: dict[str, int] = field(default_factory=dict[str, int])


def populate_staging(
    repositories: WorkbookRepositories,
    run: WorkflowRun,
    *,
    entity: EntityDefinition,
    id_factory: Callable[[], str] = new_machine_id,
) -> IntakeResult:
    """Append one pending staging row per canonical name not yet staged.

    Source rows are scanned in table order and the first occurrence of a
    canonical name wins. Existing staging rows are never modified.
    """

    tables = repositories.tables
    staging = tables.read_table(entity.staging_table)
    staging.require_columns(
        entity.source_txn_id,
        entity.staging_id,
        entity.mapped_id,
        entity.entered_name,
        entity.canonical_name,
        entity.approved_name,
        IS_APPROVED,
        IS_ACTIVE,
        IS_ARCHIVED,
        IS_LOOKUP_PROMOTED,
        REVIEW_STATUS,
        NOTES,
    )
    source = tables.read_table(TRANSACTION_RESOLUTION)
    source.require_columns(
        TXN_ID, entity.machine_id, entity.entered_name, entity.canonical_name
    )
    if source.is_empty:
        run.exit_empty(TRANSACTION_RESOLUTION)
        return IntakeResult()

    staged = {row.text(entity.canonical_name) for row in staging} - {""}
    log.info("%s already holds %d canonical names", entity.staging_table, len(staged))

    pending: list[dict[str, CellValue]] = []
    for row in source:
        if row.is_blank(TXN_ID):
            run.skip("NoTxn")
            continue
        if not row.is_blank(entity.machine_id):
            run.skip(f"Has{entity.label}")
            continue
        canonical = row.text(entity.canonical_name)
        if not canonical:
            run.skip("NoCanon")
            continue
        if canonical in staged:
            run.skip("DuplicateCanon")
            continue

        staged.add(canonical)
        staging_id = id_factory()
        pending.append(
            staging.blank_row(
                {
                    entity.source_txn_id: row.text(TXN_ID),
                    entity.staging_id: staging_id,
                    entity.mapped_id: "",
                    entity.entered_name: row[entity.entered_name],
                    entity.canonical_name: canonical,
                    entity.approved_name: "",
                    IS_APPROVED: False,
                    IS_ACTIVE: True,
                    IS_ARCHIVED: False,
                    IS_LOOKUP_PROMOTED: False,
                    REVIEW_STATUS: ReviewStatus.PENDING.value,
                    NOTES: "",
                }
            )
        )
        run.record(
            "STAGE_CANONICAL",
            f"Queued {canonical!r} as {entity.staging_id}={staging_id}",
            row_number=row.number,
        )

    if pending:
        tables.append_rows(entity.staging_table, pending)

    run.summary(Scanned=len(source), Appended=len(pending))
    return IntakeResult(scanned=len(source), appended=len(pending), skipped=dict(run.skips))
