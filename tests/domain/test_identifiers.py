from __future__ import annotations

from uuid import UUID

from etisync.domain.model import HumanIdSequence, format_human_id, new_machine_id, parse_human_id
from etisync.domain.reconciliation import column_letter


def test_machine_ids_are_unique_uuid4_strings() -> None:
    first = new_machine_id()
    second = new_machine_id()

    assert first != second
    assert UUID(first).version == 4


def test_human_id_formatting_and_parsing() -> None:
    assert format_human_id("ITEM-", 42, 6) == "ITEM-000042"
    assert parse_human_id("ITEM-", "ITEM-000042") == 42
    assert parse_human_id("ITEM-", "BRAND-000042") is None
    assert parse_human_id("ITEM-", "ITEM-abc") is None
    assert parse_human_id("ITEM-", None) is None


def test_human_id_sequence_only_moves_forward() -> None:
    sequence = HumanIdSequence(prefix="BRAND-", pad_length=6, start=41)

    assert sequence.current == 41
    assert sequence.next() == "BRAND-000042"
    assert sequence.next() == "BRAND-000043"
    assert sequence.current == 43


def test_column_letters() -> None:
    assert column_letter(1) == "A"
    assert column_letter(26) == "Z"
    assert column_letter(27) == "AA"
    assert column_letter(52) == "AZ"
    assert column_letter(703) == "AAA"
