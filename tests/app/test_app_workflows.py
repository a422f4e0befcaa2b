from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING

import pytest

from etisync import app
from etisync.adapters.local_lock import LocalWorkflowLock
from etisync.adapters.sqlalchemy.locking import SqlAlchemyWorkflowLock
from etisync.adapters.sqlalchemy.unit_of_work import configured_engine, shutdown
from etisync.config import WorkflowConfig
from etisync.domain.errors import LockTimeoutError, MissingColumnError
from etisync.domain.model import ITEM, TRANSACTIONS
from etisync.domain.model.workbook import SCRIPT_LOGS, TRANSACTION_RESOLUTION
from tests.helpers.workbook import (
    FakeUnitOfWork,
    InMemoryTabularStore,
    RecordingAuditLog,
    make_repositories,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from sqlalchemy.engine import Engine

    from etisync.adapters.sqlalchemy.unit_of_work import SqlAlchemyWorkbookUnitOfWork


def _context(
    workbook: InMemoryTabularStore,
    audit_log: RecordingAuditLog,
    *,
    lock: LocalWorkflowLock | None = None,
    timeout: float = 1.0,
) -> tuple[app.WorkflowContext, FakeUnitOfWork]:
    uow = FakeUnitOfWork(make_repositories(workbook, audit_log))
    context = app.WorkflowContext(
        unit_of_work_factory=lambda: uow,
        lock=lock or LocalWorkflowLock(),
        config=WorkflowConfig(lock_timeout_seconds=timeout, settle_seconds=0),
    )
    return context, uow


def test_successful_run_is_bracketed_and_committed(
    workbook: InMemoryTabularStore, audit_log: RecordingAuditLog
) -> None:
    workbook.add_rows(ITEM.master_table, [{ITEM.name: "Milk"}])
    context, uow = _context(workbook, audit_log)

    result = app.backfill_machine_ids(context, ITEM)

    assert result.generated == 1
    assert audit_log.actions() == ["START", "GENERATE_ITEM_ID", "SUMMARY", "END"]
    assert {entry.script_name for entry in audit_log.entries} == {"backfill_Item_ID_Machine"}
    assert uow.commits == 1


def test_failure_is_rolled_back_and_audited(
    audit_log: RecordingAuditLog,
) -> None:
    workbook = InMemoryTabularStore()
    workbook.add_table(ITEM.master_table, [ITEM.name], [{ITEM.name: "Milk"}])
    context, uow = _context(workbook, audit_log)

    with pytest.raises(MissingColumnError):
        app.backfill_machine_ids(context, ITEM)

    assert uow.rollbacks == 1
    assert uow.commits == 1
    assert audit_log.actions() == ["START", "FAILED"]
    failed = audit_log.find("FAILED")[0]
    assert "MissingColumnError" in failed.details
    assert failed.execution_id == audit_log.entries[0].execution_id


def test_held_lock_fails_fast_without_writing(
    workbook: InMemoryTabularStore, audit_log: RecordingAuditLog
) -> None:
    lock = LocalWorkflowLock()
    workbook.add_rows(ITEM.master_table, [{ITEM.name: "Milk"}])
    context, _ = _context(workbook, audit_log, lock=lock, timeout=0.01)

    with lock.hold("backfill-machine-ids:ITEM", timeout=1), pytest.raises(LockTimeoutError):
        app.backfill_machine_ids(context, ITEM)

    assert workbook.writes == []
    assert audit_log.entries == []


def test_reconcile_runs_the_chain_in_order(
    workbook: InMemoryTabularStore, audit_log: RecordingAuditLog
) -> None:
    workbook.add_rows(
        TRANSACTIONS.table,
        [
            {
                "Trx_Date_Entered": date(2024, 3, 1),
                "Item_Name_Entered": "Milk",
                "Qty_Value_Entered": 1,
                "Qty_Unit_Entered": "L",
                "Price_Entered": 1.2,
            }
        ],
    )
    workbook.add_rows(
        TRANSACTION_RESOLUTION,
        [{"Txn_ID_Machine": "T1", ITEM.entered_name: "milk", ITEM.canonical_name: "Milk"}],
    )
    context, _ = _context(workbook, audit_log)

    results = app.reconcile_entity(context, ITEM)

    assert list(results) == [
        "cleanup-transactions",
        "backfill-transaction-ids",
        "populate-staging",
        "promote",
        "clear-orphans",
        "backfill-machine-ids",
        "backfill-human-ids",
    ]
    assert workbook.values(TRANSACTIONS.table)[0]["Txn_ID_Machine"]
    assert workbook.values(ITEM.staging_table)[0][ITEM.canonical_name] == "Milk"
    assert audit_log.actions().count("START") == 7


def test_promotion_on_sqlite_end_to_end(
    sqlite_engine: Engine,
    sqlite_unit_of_work: Callable[[], SqlAlchemyWorkbookUnitOfWork],
) -> None:
    with sqlite_unit_of_work() as uow:
        uow.repositories.tables.append_rows(
            ITEM.staging_table,
            [
                {
                    ITEM.entered_name: "milk",
                    ITEM.canonical_name: "Milk",
                    ITEM.approved_name: "Whole Milk",
                    "Is_Approved": True,
                    "Is_Lookup_Promoted": False,
                }
            ],
        )
        uow.repositories.tables.append_rows(
            "Counter_Control", [{"Entity_Key": "ITEM", "Total_Counter": 0}]
        )
        uow.commit()
    context = app.WorkflowContext(
        unit_of_work_factory=sqlite_unit_of_work,
        lock=SqlAlchemyWorkflowLock(sqlite_engine),
        config=WorkflowConfig(lock_timeout_seconds=1),
    )

    promoted = app.promote_approved(context, ITEM)
    numbered = app.backfill_human_ids(context, ITEM)
    again = app.promote_approved(context, ITEM)

    assert promoted.promoted == 1
    assert numbered.last_human_id == "ITEM-000001"
    assert again.promoted == 0
    with sqlite_unit_of_work() as uow:
        masters = uow.repositories.tables.read_table(ITEM.master_table)
        logs = uow.repositories.tables.read_table(SCRIPT_LOGS)
    assert [(row[ITEM.name], row[ITEM.human_id]) for row in masters] == [
        ("Whole Milk", "ITEM-000001")
    ]
    assert [row["Action"] for row in logs].count("END") == 3


def test_sql_context_starts_the_adapter_once(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URI", "sqlite+pysqlite:///:memory:")
    shutdown()
    try:
        context = app.build_context(backend="sqlalchemy")
        engine = configured_engine()
        again = app.build_context(backend="sqlalchemy")
    finally:
        shutdown()

    assert engine is not None
    assert isinstance(context.lock, SqlAlchemyWorkflowLock)
    assert isinstance(again.lock, SqlAlchemyWorkflowLock)
    assert again.lock.engine is engine
