# services/engine/aggregation.py
from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Iterable, List

from schemas.assets import AggregatedPosition, HoldingSnapshot
from services.symbols import normalize
from utils.common_helpers import PERCENT_SCALE, to_decimal


def group_by_symbol(holdings: Iterable[HoldingSnapshot]) -> Dict[str, List[HoldingSnapshot]]:
    """Lots keyed by canonical symbol, in first-seen order."""
    groups: Dict[str, List[HoldingSnapshot]] = {}
    for h in holdings:
        groups.setdefault(normalize(h.symbol), []).append(h)
    return groups


def total_quantity(lots: Iterable[HoldingSnapshot]) -> int:
    return sum(int(h.quantity or 0) for h in lots)


def aggregate_lots(symbol: str, lots: List[HoldingSnapshot]) -> AggregatedPosition | None:
    """
    Weighted-average cost over one symbol's lots.
    Returns None when there is nothing to average (zero quantity or zero cost).
    """
    if not lots:
        return None

    qty = total_quantity(lots)
    if qty == 0:
        return None

    weighted = sum(
        (to_decimal(h.buy_price) * int(h.quantity or 0) for h in lots),
        Decimal(0),
    )
    if weighted == 0:
        return None

    avg = (weighted / Decimal(qty)).quantize(PERCENT_SCALE, rounding=ROUND_HALF_UP)
    return AggregatedPosition(
        symbol=symbol,
        asset_class=lots[0].asset_class,
        total_quantity=qty,
        weighted_average_cost=avg,
    )


def aggregate(holdings: Iterable[HoldingSnapshot]) -> Dict[str, AggregatedPosition]:
    out: Dict[str, AggregatedPosition] = {}
    for symbol, lots in group_by_symbol(holdings).items():
        if not symbol:
            continue
        pos = aggregate_lots(symbol, lots)
        if pos is not None:
            out[symbol] = pos
    return out
