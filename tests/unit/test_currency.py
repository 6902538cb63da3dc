"""Unit tests for money helpers."""

from decimal import Decimal

import pytest
from libs.common.currency import (
    Currency,
    cents_to_units,
    format_cents,
    line_total,
    units_to_cents,
)


@pytest.mark.unit
@pytest.mark.parametrize(
    "cents, expected",
    [
        (0, "0,00 UAH"),
        (5, "0,05 UAH"),
        (9900, "99,00 UAH"),
        (123456, "1 234,56 UAH"),
        (100000000, "1 000 000,00 UAH"),
        (-2550, "-25,50 UAH"),
    ],
)
def test_format_cents(cents, expected):
    assert format_cents(cents) == expected


@pytest.mark.unit
def test_format_cents_accepts_code_string():
    assert format_cents(100, "UAH") == "1,00 UAH"
    assert format_cents(100, Currency.UAH) == "1,00 UAH"


@pytest.mark.unit
def test_units_round_trip():
    assert units_to_cents("12.345") == 1235
    assert units_to_cents(Decimal("0.1")) == 10
    assert cents_to_units(1235) == Decimal("12.35")


@pytest.mark.unit
def test_line_total_has_no_overflow():
    assert line_total(9_000_000_000, 1_000_000) == 9_000_000_000_000_000
