"""
Currency helpers shared by the BOM generator and the pricing engine.

Amounts are carried as Decimal. Floats are converted through their
shortest repr so that 7.25 means 7.25 and not its binary approximation.
"""

from decimal import Decimal, ROUND_HALF_UP, localcontext
from typing import Union

Number = Union[int, float, str, Decimal]

CENT = Decimal("0.01")
ZERO = Decimal("0")
HUNDRED = Decimal("100")


def to_decimal(value: Number) -> Decimal:
    """Convert an int, float, str or Decimal into a Decimal."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise TypeError("Boolean is not a currency amount")
    if isinstance(value, float):
        return Decimal(repr(value))
    return Decimal(value)


def round_currency(value: Number) -> Decimal:
    """Round to two decimal places, halves away from zero."""
    value = to_decimal(value)
    with localcontext() as ctx:
        # Room for every integer digit plus the cents
        ctx.prec = max(ctx.prec, value.adjusted() + 3)
        return value.quantize(CENT, rounding=ROUND_HALF_UP)
