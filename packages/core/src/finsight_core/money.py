"""Decimal helpers shared by the analytics components."""

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Union

CENTS = Decimal("0.01")
RATIO_PLACES = Decimal("0.0001")
ZERO = Decimal("0")
HUNDRED = Decimal("100")

Number = Union[Decimal, int, float, str]


def to_decimal(value: Number) -> Decimal:
    """Convert a number to Decimal without going through binary floats."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(repr(value))
    return Decimal(value)


def round_money(value: Number) -> Decimal:
    """Round to 2 decimal places, half-up."""
    return to_decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


def percentage_of(part: Decimal, whole: Decimal) -> Decimal:
    """Share of ``whole`` as a percentage.

    The ratio is rounded to 4 decimal places (half-up) before scaling
    by 100. Returns 0 when ``whole`` is 0.
    """
    if whole == 0:
        return ZERO
    ratio = (part / whole).quantize(RATIO_PLACES, rounding=ROUND_HALF_UP)
    return ratio * HUNDRED


def sum_decimals(values: Iterable[Decimal]) -> Decimal:
    """Sum Decimals, returning Decimal("0") for an empty iterable."""
    return sum(values, ZERO)
