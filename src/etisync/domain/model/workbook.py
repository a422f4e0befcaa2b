"""Names of the workbook's tables and columns.

Item, brand and product share one shape; an :class:`EntityDefinition` derives
the column names of its master, staging and resolution tables from the label.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

TRANSACTION_RAW: Final = "Transaction_Raw"
TRANSACTION_RESOLUTION: Final = "Transaction_Resolution"
TRANSACTION_STAGING: Final = "Transaction_Staging"
COUNTER_CONTROL: Final = "Counter_Control"
SCRIPT_LOGS: Final = "Script_Logs"
SCHEMA_SNAPSHOT: Final = "Schema_Snapshot"
ITEM_BUY_EVALUATE: Final = "Item_Buy_Evaluate"
ITEM_EVALUATION_LOG: Final = "Item_Evaluation_Log"

TXN_ID: Final = "Txn_ID_Machine"
IS_ACTIVE: Final = "Is_Active"
IS_ARCHIVED: Final = "Is_Archived"
IS_APPROVED: Final = "Is_Approved"
IS_LOOKUP_PROMOTED: Final = "Is_Lookup_Promoted"
IS_STAGING_PROMOTED: Final = "Is_Staging_Promoted"
REVIEW_STATUS: Final = "Review_Status"
NOTES: Final = "Notes"


@dataclass(frozen=True, slots=True)
class EntityDefinition:
    """One master entity (item, brand, product) and its staging workflow."""

    key: str
    label: str
    plural: str

    @property
    def master_table(self) -> str:
        return f"Lookup_{self.plural}"

    @property
    def staging_table(self) -> str:
        return f"Staging_Lookup_{self.plural}"

    @property
    def machine_id(self) -> str:
        return f"{self.label}_ID_Machine"

    @property
    def human_id(self) -> str:
        return f"{self.label}_ID_Human"

    @property
    def name(self) -> str:
        return f"{self.label}_Name"

    @property
    def canonical_name(self) -> str:
        return f"{self.label}_Name_Canonical"

    @property
    def entered_name(self) -> str:
        return f"{self.label}_Name_Entered"

    @property
    def approved_name(self) -> str:
        return f"{self.label}_Name_Approved"

    @property
    def staging_id(self) -> str:
        return f"Staging_{self.label}_ID_Machine"

    @property
    def mapped_id(self) -> str:
        return f"Mapped_{self.label}_ID_Machine"

    @property
    def source_txn_id(self) -> str:
        return f"Source_{TXN_ID}"

    @property
    def human_id_prefix(self) -> str:
        return f"{self.key}-"


ITEM: Final = EntityDefinition(key="ITEM", label="Item", plural="Items")
BRAND: Final = EntityDefinition(key="BRAND", label="Brand", plural="Brands")
PRODUCT: Final = EntityDefinition(key="PRODUCT", label="Product", plural="Products")

ENTITIES: Final[dict[str, EntityDefinition]] = {
    "item": ITEM,
    "brand": BRAND,
    "product": PRODUCT,
}

HUMAN_ID_PAD_LENGTH: Final = 6


@dataclass(frozen=True, slots=True)
class TransactionDefinition:
    """Raw transaction grain: the natural key and its derived id."""

    table: str
    natural_key: tuple[str, ...]
    id_column: str


TRANSACTIONS: Final = TransactionDefinition(
    table=TRANSACTION_RAW,
    natural_key=(
        "Trx_Date_Entered",
        "Item_Name_Entered",
        "Qty_Value_Entered",
        "Qty_Unit_Entered",
        "Price_Entered",
    ),
    id_column=TXN_ID,
)


@dataclass(frozen=True, slots=True)
class MappingDefinition:
    """A many-to-many relationship table keyed by master ids."""

    key: str
    entities: tuple[EntityDefinition, ...]

    @property
    def table(self) -> str:
        return "Mapping_" + "_".join(entity.label for entity in self.entities)

    @property
    def id_columns(self) -> tuple[str, ...]:
        return tuple(entity.machine_id for entity in self.entities)

    @property
    def canonical_columns(self) -> tuple[str, ...]:
        return tuple(entity.canonical_name for entity in self.entities)


MAPPINGS: Final[dict[str, MappingDefinition]] = {
    "item-brand": MappingDefinition(key="item-brand", entities=(ITEM, BRAND)),
    "item-brand-product": MappingDefinition(
        key="item-brand-product", entities=(ITEM, BRAND, PRODUCT)
    ),
}
