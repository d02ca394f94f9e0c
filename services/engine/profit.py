# services/engine/profit.py
from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from utils.common_helpers import PERCENT_SCALE, PRESENT_SCALE, to_decimal

_HUNDRED = Decimal(100)


def profit_percent(avg_cost, current_price) -> Decimal:
    """
    Signed % move from avg_cost to current_price (positive = gain), 4 dp.
    A zero cost basis has no meaningful percentage and floors to 0.
    """
    avg = to_decimal(avg_cost)
    cur = to_decimal(current_price)
    if avg == 0:
        return Decimal(0).quantize(PERCENT_SCALE)
    return ((cur - avg) / avg * _HUNDRED).quantize(PERCENT_SCALE, rounding=ROUND_HALF_UP)


def monetary_delta(avg_cost, current_price, quantity) -> Decimal:
    return (to_decimal(current_price) - to_decimal(avg_cost)) * to_decimal(quantity)


def present(value: Optional[Decimal]) -> Optional[Decimal]:
    """Round half-up to 2 dp for display; None passes through."""
    if value is None:
        return None
    return to_decimal(value).quantize(PRESENT_SCALE, rounding=ROUND_HALF_UP)
