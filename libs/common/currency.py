"""Money helpers for the market back office.

Internal storage unit: cents (minor units, 100 cents = 1 hryvnia).
API unit: cents as integers. Floats never enter amount arithmetic.
Display unit: "1 234,56 UAH" (space-grouped, comma decimal, ISO code).

Conversion chain
----------------
Units × 100 → Cents
Cents ÷ 100 → Units (Decimal, for display only)
"""

from __future__ import annotations

import enum
from decimal import ROUND_HALF_UP, Decimal

# ─── constants ───────────────────────────────────────────────────────────────

CENTS_PER_UNIT: int = 100


class Currency(str, enum.Enum):
    UAH = "UAH"


DEFAULT_CURRENCY = Currency.UAH


# ─── conversion helpers ───────────────────────────────────────────────────────


def units_to_cents(units: Decimal | int | str) -> int:
    """Convert major units to cents (round half-up). 1 UAH = 100 cents."""
    value = Decimal(str(units)) * CENTS_PER_UNIT
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def cents_to_units(cents: int) -> Decimal:
    """Convert cents to major units. 100 cents = 1 UAH."""
    return (Decimal(cents) / CENTS_PER_UNIT).quantize(Decimal("0.01"))


def line_total(unit_price_cents: int, qty: int) -> int:
    """Line amount for ``qty`` units. Python ints do not overflow."""
    return unit_price_cents * qty


# ─── formatting ──────────────────────────────────────────────────────────────


def format_cents(cents: int, currency: Currency | str = DEFAULT_CURRENCY) -> str:
    """Format cents for receipts, e.g. ``format_cents(123456) == "1 234,56 UAH"``."""
    code = currency.value if isinstance(currency, Currency) else str(currency)
    sign = "-" if cents < 0 else ""
    whole, _, minor = f"{cents_to_units(abs(cents)):,.2f}".partition(".")
    return f"{sign}{whole.replace(',', ' ')},{minor} {code}"
