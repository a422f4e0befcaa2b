"""Port for the append-only audit trail."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from etisync.domain.model import AuditEntry


@runtime_checkable
class AuditLogSink(Protocol):
    """Sinks may buffer; ``flush`` must persist everything appended so far."""

    def append(self, entry: AuditEntry) -> None: ...

    def flush(self) -> None: ...
