"""Tabular domain model."""

from __future__ import annotations

from .audit import AuditEntry
from .cells import CellValue, as_flag, as_number, as_text, filled_count, is_blank, is_filled
from .enums import LogLevel, ReviewStatus
from .identifiers import (
    HumanIdSequence,
    format_human_id,
    new_machine_id,
    parse_human_id,
)
from .table import Row, TableSnapshot
from .workbook import (
    BRAND,
    ENTITIES,
    ITEM,
    MAPPINGS,
    PRODUCT,
    TRANSACTIONS,
    EntityDefinition,
    MappingDefinition,
    TransactionDefinition,
)

__all__ = [
    "BRAND",
    "ENTITIES",
    "ITEM",
    "MAPPINGS",
    "PRODUCT",
    "TRANSACTIONS",
    "AuditEntry",
    "CellValue",
    "EntityDefinition",
    "HumanIdSequence",
    "LogLevel",
    "MappingDefinition",
    "ReviewStatus",
    "Row",
    "TableSnapshot",
    "TransactionDefinition",
    "as_flag",
    "as_number",
    "as_text",
    "filled_count",
    "format_human_id",
    "is_blank",
    "is_filled",
    "new_machine_id",
    "parse_human_id",
]
