# services/engine/risk.py
"""
Risk tiers.

Two modes share the LOW/MEDIUM/HIGH vocabulary:
  - magnitude: size of the gain/loss, symmetric (sell risk, ranking)
  - premium:   whether a buy pays more than the holder's own average cost
"""
from __future__ import annotations

from decimal import Decimal
from typing import Optional

from config.settings import RiskThresholds
from schemas.assets import RiskLevel
from utils.common_helpers import to_decimal

DEFAULT_THRESHOLDS = RiskThresholds()


def classify_magnitude(
    percent: Optional[Decimal],
    thresholds: RiskThresholds = DEFAULT_THRESHOLDS,
) -> RiskLevel:
    if percent is None:
        return RiskLevel.LOW
    size = abs(to_decimal(percent))
    if size >= thresholds.high_pct:
        return RiskLevel.HIGH
    if size >= thresholds.medium_pct:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def classify_premium(average_cost: Optional[Decimal], current_price) -> RiskLevel:
    # no prior position: nothing to pay a premium against
    if average_cost is None:
        return RiskLevel.LOW
    if to_decimal(current_price) > to_decimal(average_cost):
        return RiskLevel.MEDIUM
    return RiskLevel.LOW
