"""Application orchestration entry points.

Every workflow runs the same way: hold the workflow's named lock, open a unit
of work, record START, run the domain function, record END and commit. On
failure the unit of work is rolled back and a FAILED entry is written in a
fresh unit of work before the exception propagates.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from functools import partial
from logging import getLogger
from typing import TYPE_CHECKING, TypeVar

from etisync.adapters.local_lock import LocalWorkflowLock
from etisync.config import (
    WorkflowConfig,
    get_backend,
    get_database_config,
    get_google_sheets_config,
    get_workflow_config,
)
from etisync.domain import reconciliation
from etisync.domain.model import TRANSACTIONS, new_machine_id
from etisync.domain.model.workbook import ITEM_BUY_EVALUATE, SCHEMA_SNAPSHOT
from etisync.domain.reconciliation import WorkflowRun

if TYPE_CHECKING:
    from etisync.config.storage import Backend
    from etisync.domain.model import EntityDefinition, MappingDefinition
    from etisync.domain.ports import WorkbookRepositories, WorkbookUnitOfWork, WorkflowLock
    from etisync.domain.reconciliation import (
        BackfillResult,
        EvaluationLogResult,
        IntakeResult,
        MappingCleanupResult,
        MappingDiscoveryResult,
        OrphanCleanupResult,
        PromotionResult,
        SchemaSnapshotResult,
    )

UnitOfWorkFactory = Callable[[], "WorkbookUnitOfWork"]

log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class WorkflowContext:
    unit_of_work_factory: UnitOfWorkFactory
    lock: WorkflowLock
    config: WorkflowConfig = field(default_factory=WorkflowConfig)


def build_context(*, backend: Backend | None = None) -> WorkflowContext:
    """Wire the configured backend's unit of work and lock."""

    config = get_workflow_config()
    resolved = backend or get_backend()
    if resolved == "gsheets":
        from etisync.adapters.gsheets import (  # noqa: PLC0415
            GSheetsWorkbookUnitOfWork,
            open_spreadsheet,
        )

        spreadsheet = open_spreadsheet(get_google_sheets_config())
        return WorkflowContext(
            unit_of_work_factory=partial(GSheetsWorkbookUnitOfWork, spreadsheet),
            lock=LocalWorkflowLock(),
            config=config,
        )

    from etisync.adapters.sqlalchemy import (  # noqa: PLC0415
        SqlAlchemyWorkbookUnitOfWork,
        SqlAlchemyWorkflowLock,
        configured_engine,
        startup,
    )

    engine = configured_engine()
    if engine is None:
        engine = startup(database_uri=get_database_config().uri)
    return WorkflowContext(
        unit_of_work_factory=SqlAlchemyWorkbookUnitOfWork,
        lock=SqlAlchemyWorkflowLock(engine),
        config=config,
    )


def init_database(database_uri: str | None = None) -> None:
    from etisync.adapters.sqlalchemy import configured_engine, startup  # noqa: PLC0415

    if configured_engine() is None:
        startup(database_uri=database_uri or get_database_config().uri)
    log.info("Database schema is at head")


T = TypeVar("T")


def run_workflow(
    context: WorkflowContext,
    *,
    script_name: str,
    table_name: str,
    lock_name: str,
    action: Callable[[WorkbookRepositories, WorkflowRun], T],
) -> T:
    """Run ``action`` under the named lock inside one unit of work."""

    execution_id = new_machine_id()
    with context.lock.hold(lock_name, timeout=context.config.lock_timeout_seconds):
        try:
            with context.unit_of_work_factory() as uow:
                run = WorkflowRun(
                    script_name=script_name,
                    table_name=table_name,
                    audit_log=uow.repositories.audit_log,
                    trigger_type=context.config.trigger_type,
                    execution_id=execution_id,
                )
                run.start()
                result = action(uow.repositories, run)
                run.end()
                uow.commit()
                return result
        except Exception as exc:
            _record_failure(
                context,
                script_name=script_name,
                table_name=table_name,
                execution_id=execution_id,
                error=exc,
            )
            raise


def _record_failure(
    context: WorkflowContext,
    *,
    script_name: str,
    table_name: str,
    execution_id: str,
    error: Exception,
) -> None:
    log.error("%s failed: %s", script_name, error)
    try:
        with context.unit_of_work_factory() as uow:
            WorkflowRun(
                script_name=script_name,
                table_name=table_name,
                audit_log=uow.repositories.audit_log,
                trigger_type=context.config.trigger_type,
                execution_id=execution_id,
            ).fail(error)
            uow.commit()
    except Exception:
        log.exception("Could not write the failure audit entry for %s", script_name)


def cleanup_invalid_transactions(context: WorkflowContext) -> OrphanCleanupResult:
    return run_workflow(
        context,
        script_name="cleanup_Transaction_Raw_InvalidRows",
        table_name=TRANSACTIONS.table,
        lock_name="cleanup-transactions",
        action=reconciliation.cleanup_invalid_transactions,
    )


def backfill_transaction_ids(context: WorkflowContext) -> BackfillResult:
    return run_workflow(
        context,
        script_name="backfill_Txn_ID_Machine",
        table_name=TRANSACTIONS.table,
        lock_name="backfill-transaction-ids",
        action=reconciliation.backfill_transaction_ids,
    )


def populate_staging(context: WorkflowContext, entity: EntityDefinition) -> IntakeResult:
    return run_workflow(
        context,
        script_name=f"populate_{entity.staging_table}",
        table_name=entity.staging_table,
        lock_name=f"populate-staging:{entity.key}",
        action=partial(reconciliation.populate_staging, entity=entity),
    )


def promote_approved(context: WorkflowContext, entity: EntityDefinition) -> PromotionResult:
    return run_workflow(
        context,
        script_name=f"promote_{entity.staging_table}",
        table_name=entity.master_table,
        lock_name=f"promote:{entity.key}",
        action=partial(reconciliation.promote_approved, entity=entity),
    )


def clear_orphan_ids(context: WorkflowContext, entity: EntityDefinition) -> OrphanCleanupResult:
    return run_workflow(
        context,
        script_name=f"cleanup_{entity.master_table}_OrphanIDs",
        table_name=entity.master_table,
        lock_name=f"clear-orphans:{entity.key}",
        action=partial(reconciliation.clear_orphan_ids, entity=entity),
    )


def backfill_machine_ids(context: WorkflowContext, entity: EntityDefinition) -> BackfillResult:
    return run_workflow(
        context,
        script_name=f"backfill_{entity.machine_id}",
        table_name=entity.master_table,
        lock_name=f"backfill-machine-ids:{entity.key}",
        action=partial(reconciliation.backfill_machine_ids, entity=entity),
    )


def backfill_human_ids(context: WorkflowContext, entity: EntityDefinition) -> BackfillResult:
    return run_workflow(
        context,
        script_name=f"backfill_{entity.human_id}",
        table_name=entity.master_table,
        lock_name=f"backfill-human-ids:{entity.key}",
        action=partial(reconciliation.backfill_human_ids, entity=entity),
    )


def discover_mappings(
    context: WorkflowContext, mapping: MappingDefinition
) -> MappingDiscoveryResult:
    return run_workflow(
        context,
        script_name=f"populate_{mapping.table}",
        table_name=mapping.table,
        lock_name=f"discover-mappings:{mapping.key}",
        action=partial(reconciliation.discover_mappings, mapping=mapping),
    )


def cleanup_invalid_mappings(
    context: WorkflowContext, mapping: MappingDefinition
) -> MappingCleanupResult:
    return run_workflow(
        context,
        script_name=f"cleanup_{mapping.table}_InvalidRows",
        table_name=mapping.table,
        lock_name=f"cleanup-mappings:{mapping.key}",
        action=partial(reconciliation.cleanup_invalid_mappings, mapping=mapping),
    )


def update_evaluation_log(
    context: WorkflowContext, *, keep_evaluator_row: bool = False
) -> EvaluationLogResult:
    return run_workflow(
        context,
        script_name="Evaluation_Log_Updater",
        table_name=ITEM_BUY_EVALUATE,
        lock_name="evaluation-log",
        action=partial(
            reconciliation.update_evaluation_log,
            settle_seconds=context.config.settle_seconds,
            keep_evaluator_row=keep_evaluator_row,
        ),
    )


def export_schema_snapshot(context: WorkflowContext) -> SchemaSnapshotResult:
    return run_workflow(
        context,
        script_name="exportSchemaSnapshot",
        table_name=SCHEMA_SNAPSHOT,
        lock_name="schema-snapshot",
        action=reconciliation.export_schema_snapshot,
    )


def reconcile_entity(context: WorkflowContext, entity: EntityDefinition) -> dict[str, object]:
    """Run the whole chain for one entity in data-flow order.

    Transactions are cleaned and identified first, unresolved names are staged,
    approved names promoted, and finally the master table's ids are repaired
    and completed.
    """

    steps: list[tuple[str, Callable[[], object]]] = [
        ("cleanup-transactions", partial(cleanup_invalid_transactions, context)),
        ("backfill-transaction-ids", partial(backfill_transaction_ids, context)),
        ("populate-staging", partial(populate_staging, context, entity)),
        ("promote", partial(promote_approved, context, entity)),
        ("clear-orphans", partial(clear_orphan_ids, context, entity)),
        ("backfill-machine-ids", partial(backfill_machine_ids, context, entity)),
        ("backfill-human-ids", partial(backfill_human_ids, context, entity)),
    ]
    results: dict[str, object] = {}
    for name, step in steps:
        log.info("Reconcile %s: %s", entity.key, name)
        results[name] = step()
    return results
