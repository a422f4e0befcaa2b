"""Counter and audit stores built on any :class:`TabularStore`."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Final

from etisync.domain.errors import CounterNotFoundError
from etisync.domain.model import Row, as_number
from etisync.domain.model.workbook import COUNTER_CONTROL, SCRIPT_LOGS

if TYPE_CHECKING:
    from etisync.domain.model import AuditEntry, CellValue
    from etisync.domain.ports import TabularStore

log = logging.getLogger(__name__)

ENTITY_KEY: Final = "Entity_Key"
TOTAL_COUNTER: Final = "Total_Counter"


class TableCounterStore:
    """Counters kept as one ``Entity_Key``/``Total_Counter`` row per entity."""

    def __init__(self, tables: TabularStore, *, table: str = COUNTER_CONTROL) -> None:
        self.tables = tables
        self.table = table

    def _find(self, entity_key: str) -> Row:
        snapshot = self.tables.read_table(self.table)
        snapshot.require_columns(ENTITY_KEY, TOTAL_COUNTER)
        for row in snapshot:
            if row.text(ENTITY_KEY) == entity_key:
                return row
        raise CounterNotFoundError(entity_key, self.table)

    def get_counter(self, entity_key: str) -> int:
        value = as_number(self._find(entity_key)[TOTAL_COUNTER])
        return int(value) if value is not None else 0

    def set_counter(self, entity_key: str, value: int) -> None:
        row = self._find(entity_key)
        self.tables.write_rows(self.table, [Row(number=row.number, values={TOTAL_COUNTER: value})])
        log.info("Counter %s set to %d", entity_key, value)


class TableAuditLog:
    """Buffers audit entries and appends them to ``Script_Logs`` in one batch on flush."""

    def __init__(self, tables: TabularStore, *, table: str = SCRIPT_LOGS) -> None:
        self.tables = tables
        self.table = table
        self.pending: list[AuditEntry] = []

    def append(self, entry: AuditEntry) -> None:
        self.pending.append(entry)

    def flush(self) -> None:
        if not self.pending:
            return
        rows = [self._to_row(entry) for entry in self.pending]
        self.tables.append_rows(self.table, rows)
        self.pending.clear()

    def discard(self) -> None:
        self.pending.clear()

    @staticmethod
    def _to_row(entry: AuditEntry) -> dict[str, CellValue]:
        return {
            "Timestamp": entry.timestamp,
            "Execution_ID": entry.execution_id,
            "Script_Name": entry.script_name,
            "Sheet_Name": entry.table_name,
            "Trigger_Type": entry.trigger_type,
            "Level": entry.level.value,
            "Row_Number": entry.row_number,
            "Action": entry.action,
            "Details": entry.details,
        }
