# services/engine/order_risk.py
"""
Risk / feasibility of a proposed buy or sell.

Sell:  NO_HOLDINGS and INSUFFICIENT_QUANTITY short-circuit before any price
       lookup; otherwise magnitude-mode on the realized move.
Buy:   premium-mode against the existing average cost, LOW when unheld.

A missing price is never papered over: PriceUnavailable propagates.
"""
from __future__ import annotations

import logging
from decimal import Decimal
from typing import List, Optional

from config.settings import RiskThresholds
from schemas.assets import (
    AssetClass,
    HoldingSnapshot,
    RiskAssessment,
    RiskLevel,
    TradeAction,
)
from services.engine.aggregation import aggregate_lots, total_quantity
from services.engine.ports import HoldingsStore, PriceOracle
from services.engine.profit import monetary_delta, present, profit_percent
from services.engine.risk import classify_magnitude, classify_premium
from services.symbols import is_crypto, normalize

logger = logging.getLogger(__name__)


class OrderRiskEvaluator:
    def __init__(
        self,
        store: HoldingsStore,
        oracle: PriceOracle,
        thresholds: Optional[RiskThresholds] = None,
    ):
        self.store = store
        self.oracle = oracle
        self.thresholds = thresholds or RiskThresholds()

    def _lots(self, canonical: str) -> List[HoldingSnapshot]:
        if not canonical:
            return []
        return [h for h in self.store.find_by_symbol(canonical) if normalize(h.symbol) == canonical]

    @staticmethod
    def _check_quantity(requested_quantity: int) -> int:
        qty = int(requested_quantity)
        if qty < 0:
            raise ValueError("requested quantity must be >= 0")
        return qty

    # -----------------------
    # Sell
    # -----------------------

    async def evaluate_sell(self, symbol: str, requested_quantity: int) -> RiskAssessment:
        requested = self._check_quantity(requested_quantity)
        sym = normalize(symbol)
        lots = self._lots(sym)
        # sold-out lots stay in the store as history
        available = total_quantity(lots)

        if available == 0:
            logger.info("sell_risk symbol=%s level=%s", sym, RiskLevel.NO_HOLDINGS.value)
            return RiskAssessment(
                action=TradeAction.SELL,
                symbol=sym,
                risk_level=RiskLevel.NO_HOLDINGS,
                requested_quantity=requested,
                available_quantity=0,
                recommendation=f"No existing position in {sym or symbol!r} to sell.",
            )

        if requested > available:
            logger.info(
                "sell_risk symbol=%s level=%s requested=%d available=%d",
                sym, RiskLevel.INSUFFICIENT_QUANTITY.value, requested, available,
            )
            return RiskAssessment(
                action=TradeAction.SELL,
                symbol=sym,
                risk_level=RiskLevel.INSUFFICIENT_QUANTITY,
                requested_quantity=requested,
                available_quantity=available,
                recommendation=(
                    f"Insufficient quantity: requested {requested} {sym} but only "
                    f"{available} available (short by {requested - available})."
                ),
            )

        position = aggregate_lots(sym, lots)
        avg = position.weighted_average_cost if position else Decimal(0)
        current = await self.oracle.current_price(sym, lots[0].asset_class)

        pct = present(profit_percent(avg, current))
        impact = present(monetary_delta(avg, current, requested))
        level = classify_magnitude(pct, self.thresholds)

        text = self._sell_text(sym, level, pct, avg)
        if requested >= available:
            text += " This closes your entire position."

        logger.info("sell_risk symbol=%s level=%s pct=%s", sym, level.value, pct)
        return RiskAssessment(
            action=TradeAction.SELL,
            symbol=sym,
            risk_level=level,
            average_buy_price=avg,
            current_price=current,
            percent_difference=pct,
            monetary_impact=impact,
            requested_quantity=requested,
            available_quantity=available,
            recommendation=text,
        )

    def _sell_text(self, sym: str, level: RiskLevel, pct: Decimal, avg: Decimal) -> str:
        direction = "gain" if pct >= 0 else "loss"
        if level == RiskLevel.HIGH:
            return (
                f"High risk: {sym} is {pct:+}% vs your average cost of {avg}. "
                f"Selling now locks in a large {direction}; review carefully before proceeding."
            )
        if level == RiskLevel.MEDIUM:
            return (
                f"Medium risk: {sym} is {pct:+}% vs your average cost of {avg}. "
                f"Consider selling in smaller tranches."
            )
        return (
            f"Low risk: {sym} is within {self.thresholds.medium_pct}% of your average cost. "
            f"Safe to proceed."
        )

    # -----------------------
    # Buy
    # -----------------------

    async def evaluate_buy(
        self,
        symbol: str,
        requested_quantity: int,
        asset_class: Optional[AssetClass] = None,
    ) -> RiskAssessment:
        requested = self._check_quantity(requested_quantity)
        sym = normalize(symbol)
        lots = self._lots(sym)
        position = aggregate_lots(sym, lots) if lots else None

        if position is None:
            cls = asset_class or (lots[0].asset_class if lots else None)
            if cls is None:
                cls = AssetClass.CRYPTO if is_crypto(sym) else AssetClass.STOCK
            current = await self.oracle.current_price(sym, cls)
            logger.info("buy_risk symbol=%s level=%s held=no", sym, RiskLevel.LOW.value)
            return RiskAssessment(
                action=TradeAction.BUY,
                symbol=sym,
                risk_level=RiskLevel.LOW,
                current_price=current,
                requested_quantity=requested,
                available_quantity=total_quantity(lots),
                recommendation=(
                    f"No prior cost basis for {sym}; safe to establish a position at {current}."
                ),
            )

        avg = position.weighted_average_cost
        current = await self.oracle.current_price(sym, position.asset_class)
        pct = present(profit_percent(avg, current))
        level = classify_premium(avg, current)

        if level == RiskLevel.MEDIUM:
            text = (
                f"Medium risk: buying {sym} at {current} is {pct:+}% above your average cost "
                f"of {avg}. You are paying a premium over your existing position."
            )
        else:
            text = (
                f"Low risk: buying {sym} at {current} is at or below your average cost of {avg}; "
                f"this does not raise your cost basis."
            )

        logger.info("buy_risk symbol=%s level=%s pct=%s", sym, level.value, pct)
        return RiskAssessment(
            action=TradeAction.BUY,
            symbol=sym,
            risk_level=level,
            average_buy_price=avg,
            current_price=current,
            percent_difference=pct,
            monetary_impact=present(monetary_delta(avg, current, requested)),
            requested_quantity=requested,
            available_quantity=position.total_quantity,
            recommendation=text,
        )
