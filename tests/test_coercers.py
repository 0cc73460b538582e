"""
tests/test_coercers.py

Pytest unit tests for the CSV cell coercers.

Coercers never raise: unusable input becomes None.
"""

from __future__ import annotations

from datetime import date

import pytest

from app.parsing.coercers import (
    annualize_hourly,
    parse_boolean,
    parse_date,
    parse_integer,
    parse_number,
    parse_string,
)


# ---------------------------------------------------------------------------
# Numbers
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("$1,234.50", 1234.50),
        ("85000", 85000.0),
        (" 42.1 ", 42.1),
        ("NA", None),
        ("", None),
        (None, None),
        ("twelve", None),
        ("nan", None),
    ],
)
def test_parse_number(raw: str | None, expected: float | None) -> None:
    assert parse_number(raw) == expected


def test_parse_integer_rounds_numeric_text() -> None:
    assert parse_integer("3") == 3
    assert parse_integer("1,000") == 1000
    assert parse_integer("NA") is None


# ---------------------------------------------------------------------------
# Booleans
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("Y", True),
        ("yes", True),
        ("1", True),
        ("N", False),
        ("TRUE", False),
        ("T", False),
        ("", None),
        ("NA", None),
        (None, None),
    ],
)
def test_parse_boolean(raw: str | None, expected: bool | None) -> None:
    assert parse_boolean(raw) is expected


# ---------------------------------------------------------------------------
# Strings and dates
# ---------------------------------------------------------------------------


def test_parse_string_trims_and_blanks_to_none() -> None:
    assert parse_string("  Acme Inc ") == "Acme Inc"
    assert parse_string("   ") is None
    assert parse_string(None) is None


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("2024-03-15", date(2024, 3, 15)),
        ("03/15/2024", date(2024, 3, 15)),
        ("2024-03-15T23:30:00-05:00", date(2024, 3, 16)),
        ("NA", None),
        ("not a date", None),
        ("", None),
    ],
)
def test_parse_date(raw: str, expected: date | None) -> None:
    assert parse_date(raw) == expected


# ---------------------------------------------------------------------------
# Annualization
# ---------------------------------------------------------------------------


def test_annualize_hourly_uses_2080_hours_and_rounds_to_cents() -> None:
    assert annualize_hourly(50.0) == 104000.0
    assert annualize_hourly(21.555) == 44834.40
    assert annualize_hourly(0) is None
    assert annualize_hourly(None) is None
