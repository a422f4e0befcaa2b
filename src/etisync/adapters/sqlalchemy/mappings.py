"""SQLAlchemy table metadata for the workbook.

Every sheet is stored as a table of the same name: a ``Row_ID`` surrogate key
followed by the sheet's header columns.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Final

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Dialect,
    Float,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    TypeDecorator,
)

from etisync.domain.model import ENTITIES, MAPPINGS, TRANSACTIONS
from etisync.domain.model.workbook import (
    COUNTER_CONTROL,
    IS_ACTIVE,
    IS_APPROVED,
    IS_ARCHIVED,
    IS_LOOKUP_PROMOTED,
    IS_STAGING_PROMOTED,
    ITEM_BUY_EVALUATE,
    ITEM_EVALUATION_LOG,
    NOTES,
    REVIEW_STATUS,
    SCHEMA_SNAPSHOT,
    SCRIPT_LOGS,
    TRANSACTION_RESOLUTION,
    TRANSACTION_STAGING,
    TXN_ID,
)

if TYPE_CHECKING:
    from sqlalchemy.engine import Connection, Engine

    from etisync.domain.model import EntityDefinition, MappingDefinition

log = logging.getLogger(__name__)

ROW_ID: Final = "Row_ID"
WORKFLOW_LOCKS: Final = "Workflow_Locks"
ALEMBIC_VERSION: Final = "etisync_alembic_version"
INTERNAL_TABLES: Final = frozenset({WORKFLOW_LOCKS, ALEMBIC_VERSION})


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


metadata = MetaData()


def _sheet(name: str, *columns: Column[object]) -> Table:
    return Table(
        name,
        metadata,
        Column(ROW_ID, Integer, primary_key=True, autoincrement=True),
        *columns,
    )


def _text(name: str) -> Column[object]:
    return Column(name, String(255), nullable=True)


def _notes(name: str = NOTES) -> Column[object]:
    return Column(name, Text, nullable=True)


def _flag(name: str) -> Column[object]:
    return Column(name, Boolean, nullable=True)


def _number(name: str) -> Column[object]:
    return Column(name, Float, nullable=True)


def _master_table(entity: EntityDefinition) -> Table:
    return _sheet(
        entity.master_table,
        _text(entity.machine_id),
        _text(entity.human_id),
        _text(entity.name),
        _text(entity.canonical_name),
        _flag(IS_ACTIVE),
        _flag(IS_ARCHIVED),
        _flag(IS_STAGING_PROMOTED),
        _notes(),
    )


def _staging_table(entity: EntityDefinition) -> Table:
    return _sheet(
        entity.staging_table,
        _text(entity.source_txn_id),
        _text(entity.staging_id),
        _text(entity.mapped_id),
        _text(entity.entered_name),
        _text(entity.canonical_name),
        _text(entity.approved_name),
        _flag(IS_APPROVED),
        _flag(IS_ACTIVE),
        _flag(IS_ARCHIVED),
        _flag(IS_LOOKUP_PROMOTED),
        _text(REVIEW_STATUS),
        _notes(),
    )


def _mapping_table(mapping: MappingDefinition) -> Table:
    return _sheet(
        mapping.table,
        *(_text(column) for column in mapping.id_columns),
        _text("First_Seen_Txn_ID"),
        Column("First_Seen_Txn_Date", Date, nullable=True),
        *(_text(column) for column in mapping.canonical_columns),
        _flag("Is_Mapping_Active"),
        _flag(IS_ARCHIVED),
        Column("Created_At", UTCDateTime(), nullable=True),
        _notes(),
    )


master_tables: Final = {key: _master_table(entity) for key, entity in ENTITIES.items()}
staging_tables: Final = {key: _staging_table(entity) for key, entity in ENTITIES.items()}
mapping_tables: Final = {key: _mapping_table(mapping) for key, mapping in MAPPINGS.items()}

transaction_raw_table = _sheet(
    TRANSACTIONS.table,
    _text(TRANSACTIONS.id_column),
    Column("Trx_Date_Entered", Date, nullable=True),
    _text("Item_Name_Entered"),
    _text("Brand_Name_Entered"),
    _text("Product_Name_Entered"),
    _number("Qty_Value_Entered"),
    _text("Qty_Unit_Entered"),
    _number("Price_Entered"),
    _text("Platform_Entered"),
    _notes(),
)

transaction_resolution_table = _sheet(
    TRANSACTION_RESOLUTION,
    _text(TXN_ID),
    *(
        column
        for entity in ENTITIES.values()
        for column in (
            _text(entity.entered_name),
            _text(entity.canonical_name),
            _text(entity.machine_id),
        )
    ),
)

transaction_staging_table = _sheet(
    TRANSACTION_STAGING,
    _text(TXN_ID),
    Column("Txn_Date_Entered", Date, nullable=True),
    *(
        column
        for entity in ENTITIES.values()
        for column in (_text(entity.machine_id), _text(entity.canonical_name))
    ),
)

counter_control_table = _sheet(
    COUNTER_CONTROL,
    _text("Entity_Key"),
    Column("Total_Counter", Integer, nullable=True),
)

script_logs_table = _sheet(
    SCRIPT_LOGS,
    Column("Timestamp", UTCDateTime(), nullable=True),
    _text("Execution_ID"),
    _text("Script_Name"),
    _text("Sheet_Name"),
    _text("Trigger_Type"),
    _text("Level"),
    Column("Row_Number", Integer, nullable=True),
    _text("Action"),
    _notes("Details"),
)

schema_snapshot_table = _sheet(
    SCHEMA_SNAPSHOT,
    _text("Sheet_Name"),
    Column("Column_Index", Integer, nullable=True),
    _text("Column_Letter"),
    _text("Header_Value"),
)

item_buy_evaluate_table = _sheet(
    ITEM_BUY_EVALUATE,
    _text("Evaluation_ID"),
    _flag("Input_Ready_For_Comparison"),
    Column("Compare_ID", Integer, nullable=True),
    _notes("Summary_UI"),
    _text("Planned_Item"),
    _text("Planned_Brand"),
    _text("Planned_Product"),
    _text("Current_Platform"),
    _number("Planned_Qty"),
    _text("Planned_Qty_Unit"),
    _number("Planned_Normalised_Qty"),
    _number("Current_Price"),
    Column("Evaluation_Date", Date, nullable=True),
    Column("Evaluated_At", UTCDateTime(), nullable=True),
)

item_evaluation_log_table = _sheet(
    ITEM_EVALUATION_LOG,
    _text("Evaluation_ID"),
    _text("Evaluated_Item"),
    _text("Evaluated_Brand"),
    _text("Evaluated_Product"),
    _text("Evaluated_Platform"),
    _number("Evaluated_Qty"),
    _text("Evaluated_Qty_Unit"),
    _number("Recorded_Normalised_Qty"),
    _number("Evaluated_Price"),
    Column("Evaluation_Date", Date, nullable=True),
    _notes("Summary_UI"),
    _flag("Eval_Ready_For_Logging"),
    Column("Logged_At", UTCDateTime(), nullable=True),
)

workflow_locks_table = Table(
    WORKFLOW_LOCKS,
    metadata,
    Column("Lock_Name", String(255), primary_key=True),
    Column("Owner_ID", String(64), nullable=False),
    Column("Acquired_At", UTCDateTime(), nullable=False),
)


def declared_table(name: str) -> Table | None:
    """Return the declared table for ``name``; used to type reflected columns."""

    return metadata.tables.get(name)


def create_all_tables(bind: Engine | Connection) -> None:
    """Create any missing workbook tables."""

    log.info("Ensuring %d workbook tables exist", len(metadata.tables))
    metadata.create_all(bind, checkfirst=True)
