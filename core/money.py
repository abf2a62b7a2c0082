"""Cent-safe money arithmetic.

Every monetary sum in the system goes through this module: values are
converted to integer hundredths, added as integers, and converted back to
a two-place Decimal once at the end. Repeated additions therefore never
accumulate rounding drift (0.1 + 0.2 is exactly 0.30, a thousand times over).

Usage:
    from core.money import cent_add, cent_sum, format_amount

    total = cent_sum(t.net for t in transactions)
    net = cent_add(Decimal("100.00"), Decimal("-2.50"))   # Decimal("97.50")
    format_amount(Decimal("12.345"))                       # "12.35"
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Iterable, Optional, Union

Number = Union[Decimal, int, float, str]

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_decimal(value: Number) -> Decimal:
    """Convert value to Decimal without going through binary floats."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(repr(value))
    return Decimal(str(value).strip())


def to_cents(value: Number) -> int:
    """Round a monetary value to integer hundredths (half away from zero)."""
    scaled = (to_decimal(value) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return int(scaled)


def from_cents(cents: int) -> Decimal:
    """Convert integer hundredths back to a two-place Decimal."""
    return (Decimal(cents) / 100).quantize(CENT)


def cent_add(a: Number, b: Number) -> Decimal:
    """Add two monetary values on integer cents."""
    return from_cents(to_cents(a) + to_cents(b))


def cent_sum(values: Iterable[Number]) -> Decimal:
    """Sum monetary values on integer cents and convert once at the end."""
    return from_cents(sum(to_cents(v) for v in values))


def round_money(value: Number) -> Decimal:
    """Round to two decimal places, half away from zero."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def format_amount(value: Number) -> str:
    """Format as a fixed two-decimal string (e.g. "-12.50")."""
    return f"{round_money(value):.2f}"


def parse_amount(raw: Optional[str]) -> Optional[Decimal]:
    """Parse a plain numeric string; None when it is blank or not a number."""
    if raw is None:
        return None
    s = raw.strip()
    if not s:
        return None
    try:
        value = Decimal(s)
    except InvalidOperation:
        return None
    if not value.is_finite():
        return None
    return value
