from __future__ import annotations

from datetime import date

import pytest

from etisync.domain.errors import MissingColumnError
from etisync.domain.model import Row, TableSnapshot, as_flag, as_number, as_text, is_blank


@pytest.mark.parametrize("value", [None, "", "   ", "\t"])
def test_blank_values(value: str | None) -> None:
    assert is_blank(value)


@pytest.mark.parametrize("value", [0, 0.0, False, "x", date(2024, 1, 1)])
def test_zero_and_false_are_not_blank(value: object) -> None:
    assert not is_blank(value)  # pyright: ignore[reportArgumentType]


def test_flag_is_true_only_for_checked_values() -> None:
    assert as_flag(True)
    assert as_flag("TRUE")
    assert as_flag(" true ")
    assert not as_flag("yes")
    assert not as_flag(1)
    assert not as_flag(None)


def test_number_parsing() -> None:
    assert as_number("1,250.5") == 1250.5
    assert as_number(3) == 3.0
    assert as_number("abc") is None
    assert as_number(True) is None
    assert as_number("") is None


def test_text_renders_dates_in_iso_format() -> None:
    assert as_text(date(2024, 5, 1)) == "2024-05-01"
    assert as_text("  Milk ") == "Milk"


def test_snapshot_column_lookup_ignores_case_and_spacing() -> None:
    snapshot = TableSnapshot(name="T", columns=("Planned_Item", "Notes"))

    assert snapshot.find_column(" planned_item ") == "Planned_Item"
    assert snapshot.find_column("missing") is None


def test_snapshot_require_columns_names_every_missing_column() -> None:
    snapshot = TableSnapshot(name="T", columns=("A",))

    with pytest.raises(MissingColumnError) as excinfo:
        snapshot.require_columns("A", "B", "C")

    assert excinfo.value.columns == ("B", "C")
    assert "T" in str(excinfo.value)


def test_blank_row_rejects_unknown_columns() -> None:
    snapshot = TableSnapshot(name="T", columns=("A", "B"))

    assert snapshot.blank_row({"A": 1}) == {"A": 1, "B": None}
    with pytest.raises(MissingColumnError):
        snapshot.blank_row({"Z": 1})


def test_row_accessors_default_to_blank() -> None:
    row = Row(number=2, values={"A": " x "})

    assert row["missing"] is None
    assert row.text("A") == "x"
    assert row.is_blank("missing")
