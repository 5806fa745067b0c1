"""
tests/test_cell_parsers.py

Pytest unit tests for cell-level parsing.
"""

from __future__ import annotations

from datetime import date, datetime

import pytest

from dashboard.validators.cell_parsers import (
    is_empty_row,
    is_total_row,
    parse_date,
    parse_label,
    parse_number,
)


# ---------------------------------------------------------------------------
# Numbers
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        (150, 150.0),
        (12.5, 12.5),
        ("1,234", 1234.0),
        (" $2,000.50 ", 2000.5),
        ("(45)", -45.0),
        ("", 0.0),
        (None, 0.0),
        ("-", 0.0),
    ],
)
def test_parse_number_accepts_common_spellings(raw, expected) -> None:
    parsed = parse_number(raw)
    assert parsed.ok is True
    assert parsed.value == pytest.approx(expected)


@pytest.mark.parametrize("raw", ["n/a", "abc", True, "12abc"])
def test_parse_number_flags_non_numeric_values(raw) -> None:
    parsed = parse_number(raw)
    assert parsed.ok is False
    assert parsed.value == 0.0


# ---------------------------------------------------------------------------
# Dates
# ---------------------------------------------------------------------------


def test_parse_date_from_native_values() -> None:
    assert parse_date(date(2024, 1, 5)).day == date(2024, 1, 5)
    assert parse_date(datetime(2024, 1, 5, 13, 30)).day == date(2024, 1, 5)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("2024-01-05", date(2024, 1, 5)),
        ("01/05/2024", date(2024, 1, 5)),
        ("2024/01/05", date(2024, 1, 5)),
        ("20240105", date(2024, 1, 5)),
        (20240105, date(2024, 1, 5)),
        (45292, date(2024, 1, 1)),
    ],
)
def test_parse_date_text_and_serial_forms(raw, expected) -> None:
    parsed = parse_date(raw)
    assert parsed is not None
    assert parsed.day == expected
    assert parsed.month_level is False
    assert parsed.entity_key == expected.isoformat()


@pytest.mark.parametrize("raw", [202401, "202401", "2024-01", "2024/01"])
def test_parse_date_month_level_values(raw) -> None:
    parsed = parse_date(raw)
    assert parsed is not None
    assert parsed.month_level is True
    assert parsed.period == "202401"
    assert parsed.entity_key == "202401"


@pytest.mark.parametrize("raw", [None, "", "not a date", "2024-13-45", -5])
def test_parse_date_returns_none_for_unplaceable_values(raw) -> None:
    assert parse_date(raw) is None


# ---------------------------------------------------------------------------
# Rows and labels
# ---------------------------------------------------------------------------


def test_total_rows_are_detected_by_leading_cell() -> None:
    assert is_total_row(("Total", 10, 20))
    assert is_total_row((None, "Grand Total", 10))
    assert is_total_row(("Subtotal", 5))
    assert is_total_row(("TOTALS:", 5))
    assert not is_total_row(("Totally Normal Partner", 5))
    assert not is_total_row((None, 10, "Total"))
    assert not is_total_row(("Total Quality Logistics", 5))
    assert is_total_row(("Sub-Total", 5))


def test_empty_rows() -> None:
    assert is_empty_row((None, "", "   "))
    assert not is_empty_row((None, 0))


def test_parse_label_normalizes_numeric_ids() -> None:
    assert parse_label(850.0) == "850"
    assert parse_label("  ACME01 ") == "ACME01"
    assert parse_label(None) == ""
