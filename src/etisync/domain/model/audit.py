"""Audit log entries written once per workflow event."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime

from .enums import LogLevel


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True, slots=True)
class AuditEntry:
    execution_id: str
    script_name: str
    table_name: str
    action: str
    details: str = ""
    level: LogLevel = LogLevel.INFO
    row_number: int | None = None
    trigger_type: str = "MANUAL"
    timestamp: datetime = field(default_factory=_utcnow)
