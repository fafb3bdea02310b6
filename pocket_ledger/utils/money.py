"""Helpers for Decimal money values"""

from decimal import ROUND_HALF_UP, Decimal

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_decimal(value) -> Decimal:
    """Normalize numeric values to Decimal.

    Floats go through ``str`` so 0.1 becomes Decimal("0.1") and not its
    binary expansion.
    """
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def to_money(value) -> Decimal:
    """Quantize to cents, half-up"""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)
