"""
Fixed-point helpers for money, units, prices and percentages.

All settlement arithmetic runs on ``Decimal``:
- money (balances, amounts, values, gains) -> 0.01
- units -> 0.0001
- prices and average cost -> 0.0001
- percentages -> 0.01
"""

from decimal import Decimal, ROUND_DOWN, ROUND_HALF_UP
from typing import Union

CENT = Decimal("0.01")
UNIT_QUANTUM = Decimal("0.0001")
PRICE_QUANTUM = Decimal("0.0001")
PERCENT_QUANTUM = Decimal("0.01")

ZERO = Decimal("0")
HUNDRED = Decimal("100")

# Two unit amounts closer than this are treated as equal (one 4-dp quantum)
UNIT_TOLERANCE = Decimal("0.0001")

NumberLike = Union[Decimal, int, float, str]


def to_decimal(value: NumberLike) -> Decimal:
    """Convert ``value`` to Decimal without going through binary float noise."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise TypeError("Booleans are not numeric amounts")
    if isinstance(value, (int, float, str)):
        return Decimal(str(value))
    raise TypeError(f"Unsupported numeric type: {type(value)!r}")


def money(value: NumberLike) -> Decimal:
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def units(value: NumberLike) -> Decimal:
    return to_decimal(value).quantize(UNIT_QUANTUM, rounding=ROUND_HALF_UP)


def units_floor(value: NumberLike) -> Decimal:
    """Round units down so a buy never credits more than was paid for."""
    return to_decimal(value).quantize(UNIT_QUANTUM, rounding=ROUND_DOWN)


def price(value: NumberLike) -> Decimal:
    return to_decimal(value).quantize(PRICE_QUANTUM, rounding=ROUND_HALF_UP)


def percent(value: NumberLike) -> Decimal:
    return to_decimal(value).quantize(PERCENT_QUANTUM, rounding=ROUND_HALF_UP)


def ratio_percent(numerator: Decimal, denominator: Decimal) -> Decimal:
    """``numerator / denominator * 100`` rounded to 2 dp; 0 when denominator is 0."""
    if denominator == ZERO:
        return percent(ZERO)
    return percent(numerator / denominator * HUNDRED)


def format_rupiah(amount: NumberLike) -> str:
    return f"Rp {money(amount):,.2f}"
