from __future__ import annotations

from etisync.domain.model import LogLevel
from etisync.domain.reconciliation import WorkflowRun
from tests.helpers.workbook import RecordingAuditLog


def test_entries_share_the_execution_id() -> None:
    audit_log = RecordingAuditLog()
    run = WorkflowRun(
        script_name="backfill", table_name="Lookup_Items", audit_log=audit_log, trigger_type="TIME"
    )

    run.start()
    run.record("GENERATE", "id", row_number=4)
    run.end()

    assert audit_log.actions() == ["START", "GENERATE", "END"]
    assert {entry.execution_id for entry in audit_log.entries} == {run.execution_id}
    assert all(entry.trigger_type == "TIME" for entry in audit_log.entries)
    assert audit_log.entries[1].row_number == 4


def test_summary_includes_counts_and_skip_reasons() -> None:
    audit_log = RecordingAuditLog()
    run = WorkflowRun(script_name="s", table_name="t", audit_log=audit_log)
    run.skip("NoName")
    run.skip("NoName")
    run.skip("Existing")

    run.summary(Scanned=5, Generated=2)

    (summary,) = audit_log.find("SUMMARY")
    assert summary.details.startswith("Scanned=5, Generated=2, SkipExisting=1, SkipNoName=2, ")
    assert "DurationMs=" in summary.details


def test_failure_is_recorded_as_error() -> None:
    audit_log = RecordingAuditLog()
    run = WorkflowRun(script_name="s", table_name="t", audit_log=audit_log)

    run.fail(ValueError("boom"))

    (entry,) = audit_log.entries
    assert entry.action == "FAILED"
    assert entry.level is LogLevel.ERROR
    assert entry.details == "ValueError: boom"
