"""Per-run bookkeeping: execution id, audit events and skip counters."""

from __future__ import annotations

import logging
import time
from collections import Counter
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from etisync.domain.model import AuditEntry, LogLevel, new_machine_id

if TYPE_CHECKING:
    from etisync.domain.ports import AuditLogSink

log = logging.getLogger(__name__)

_LOG_LEVELS = {
    LogLevel.INFO: logging.INFO,
    LogLevel.WARN: logging.WARNING,
    LogLevel.ERROR: logging.ERROR,
}


@dataclass(slots=True)
class WorkflowRun:
    """One execution of a workflow, mirrored to ``logging`` and the audit sink."""

    script_name: str
    table_name: str
    audit_log: AuditLogSink
    trigger_type: str = "MANUAL"
    execution_id: str = field(default_factory=new_machine_id)
    skips: Counter[str] = field(default_factory=Counter[str])
    _started: float = field(default_factory=time.monotonic, init=False)

    def record(
        self,
        action: str,
        details: str = "",
        *,
        level: LogLevel = LogLevel.INFO,
        row_number: int | None = None,
    ) -> None:
        row = f"ROW {row_number} " if row_number is not None else ""
        log.log(_LOG_LEVELS[level], "[%s] %s %s%s", self.script_name, action, row, details)
        self.audit_log.append(
            AuditEntry(
                execution_id=self.execution_id,
                script_name=self.script_name,
                table_name=self.table_name,
                action=action,
                details=details,
                level=level,
                row_number=row_number,
                trigger_type=self.trigger_type,
            )
        )

    def start(self) -> None:
        self.record("START", "Execution started")

    def end(self) -> None:
        self.record("END", "Execution completed successfully")

    def fail(self, error: BaseException) -> None:
        self.record("FAILED", f"{type(error).__name__}: {error}", level=LogLevel.ERROR)

    def flush(self) -> None:
        """Persist buffered audit entries before a destructive write."""

        self.audit_log.flush()

    def exit_empty(self, table: str | None = None) -> None:
        self.record(
            "EXIT", f"No data rows found in {table or self.table_name}", level=LogLevel.WARN
        )

    def skip(self, reason: str) -> None:
        self.skips[reason] += 1

    @property
    def duration_ms(self) -> int:
        return int((time.monotonic() - self._started) * 1000)

    def summary(self, **counts: int | str | None) -> None:
        parts = [f"{key}={value}" for key, value in counts.items()]
        parts.extend(f"Skip{reason}={count}" for reason, count in sorted(self.skips.items()))
        parts.append(f"DurationMs={self.duration_ms}")
        self.record("SUMMARY", ", ".join(parts))
