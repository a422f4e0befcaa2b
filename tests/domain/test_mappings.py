from __future__ import annotations

from datetime import UTC, date, datetime

from etisync.domain.model import MAPPINGS
from etisync.domain.model.workbook import TRANSACTION_STAGING
from etisync.domain.reconciliation import cleanup_invalid_mappings, discover_mappings
from tests.helpers.workbook import InMemoryTabularStore, make_repositories, make_run

ITEM_BRAND = MAPPINGS["item-brand"]
CREATED = datetime(2024, 4, 1, 12, 0, tzinfo=UTC)


def _staged(txn: str, item: str, brand: str, day: int = 1) -> dict[str, object]:
    return {
        "Txn_ID_Machine": txn,
        "Txn_Date_Entered": date(2024, 3, day),
        "Item_ID_Machine": item,
        "Brand_ID_Machine": brand,
        "Item_Name_Canonical": f"{item}-name",
        "Brand_Name_Canonical": f"{brand}-name",
    }


def test_discovery_keeps_first_seen_transaction(workbook: InMemoryTabularStore) -> None:
    workbook.add_rows(
        ITEM_BRAND.table,
        [{"Item_ID_Machine": "I3", "Brand_ID_Machine": "B3"}],
    )
    workbook.add_rows(
        TRANSACTION_STAGING,
        [
            _staged("T1", "I1", "B1", day=1),
            _staged("T2", "I1", "B1", day=2),
            _staged("T3", "I2", "", day=3),
            _staged("", "I4", "B4", day=4),
            _staged("T5", "I3", "B3", day=5),
            _staged("T6", "I2", "B2", day=6),
        ],
    )
    repositories = make_repositories(workbook)

    result = discover_mappings(
        repositories, make_run(repositories), mapping=ITEM_BRAND, now=lambda: CREATED
    )

    rows = workbook.values(ITEM_BRAND.table)
    assert [(row["Item_ID_Machine"], row["Brand_ID_Machine"]) for row in rows] == [
        ("I3", "B3"),
        ("I1", "B1"),
        ("I2", "B2"),
    ]
    first = rows[1]
    assert first["First_Seen_Txn_ID"] == "T1"
    assert first["First_Seen_Txn_Date"] == date(2024, 3, 1)
    assert first["Item_Name_Canonical"] == "I1-name"
    assert first["Is_Mapping_Active"] is True
    assert first["Is_Archived"] is False
    assert first["Created_At"] == CREATED
    assert first["Notes"] == "Discovered from transaction"
    assert result.appended == 2
    assert result.skipped == {"Repeat": 1, "MissingId": 1, "NoTxn": 1, "Existing": 1}
    assert workbook.writes == [("append_rows", ITEM_BRAND.table)]


def test_cleanup_deletes_rows_with_missing_ids(workbook: InMemoryTabularStore) -> None:
    workbook.add_rows(
        ITEM_BRAND.table,
        [
            {"Item_ID_Machine": "I1", "Brand_ID_Machine": "B1"},
            {"Item_ID_Machine": "I2", "Brand_ID_Machine": ""},
            {"Item_ID_Machine": None, "Brand_ID_Machine": "B3"},
        ],
    )
    repositories = make_repositories(workbook)

    result = cleanup_invalid_mappings(repositories, make_run(repositories), mapping=ITEM_BRAND)

    assert result.deleted == 2
    assert [row["Item_ID_Machine"] for row in workbook.values(ITEM_BRAND.table)] == ["I1"]
    assert workbook.writes == [("delete_rows", ITEM_BRAND.table)]


def test_three_way_mapping_requires_every_id(workbook: InMemoryTabularStore) -> None:
    mapping = MAPPINGS["item-brand-product"]
    workbook.add_rows(
        TRANSACTION_STAGING,
        [
            {**_staged("T1", "I1", "B1"), "Product_ID_Machine": "P1"},
            {**_staged("T2", "I1", "B1"), "Product_ID_Machine": ""},
        ],
    )
    repositories = make_repositories(workbook)

    result = discover_mappings(repositories, make_run(repositories), mapping=mapping)

    assert result.appended == 1
    assert workbook.values(mapping.table)[0]["Product_ID_Machine"] == "P1"
