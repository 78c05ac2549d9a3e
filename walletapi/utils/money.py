"""
Money helpers

Amounts are Decimal with two fractional digits, rounded half-up.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Union

CENT = Decimal("0.01")

Number = Union[Decimal, int, str]


def to_money(value: Number) -> Decimal:
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def commission_of(amount: Number, rate: Number) -> Decimal:
    """Platform share of an amount, e.g. commission_of(100000, "0.02") == 2000.00"""
    return to_money(Decimal(amount) * Decimal(rate))
