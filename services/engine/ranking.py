# services/engine/ranking.py
"""
Top-N recommendations.

1. Held positions in scope, priced concurrently; a position whose price
   can't be fetched is skipped (logged + optional diagnostics list).
2. Dedupe by canonical symbol, first seen wins.
3. Fill short lists from market candidates (stocks, then crypto for ALL),
   skipping anything already present.
4. Stable sort: known % descending, unknown % last. Truncate to n.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional, Set, Tuple

from config.settings import MarketSettings, RiskThresholds
from schemas.assets import (
    AggregatedPosition,
    AssetClass,
    MarketCandidate,
    RankingScope,
    Recommendation,
    RiskLevel,
)
from services.engine.aggregation import aggregate
from services.engine.errors import PriceUnavailable
from services.engine.ports import HoldingsStore, MarketCandidates, PriceOracle
from services.engine.profit import present, profit_percent
from services.engine.risk import classify_magnitude
from services.symbols import normalize

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Performance:
    """Known(value) or Unknown (value None). Known always ranks ahead of Unknown."""

    value: Optional[Decimal]

    def sort_key(self) -> Tuple[int, Decimal]:
        if self.value is None:
            return (1, Decimal(0))
        return (0, -self.value)


def rank(recs: List[Recommendation], n: int) -> List[Recommendation]:
    # sorted() is stable: ties keep portfolio-before-market insertion order
    ordered = sorted(recs, key=lambda r: Performance(r.profit_percent).sort_key())
    return ordered[: max(0, n)]


def dedupe(recs: List[Recommendation]) -> List[Recommendation]:
    seen: Set[str] = set()
    out: List[Recommendation] = []
    for r in recs:
        key = normalize(r.symbol)
        if key in seen:
            continue
        seen.add(key)
        out.append(r)
    return out


class RecommendationRanker:
    def __init__(
        self,
        store: HoldingsStore,
        oracle: PriceOracle,
        market: MarketCandidates,
        thresholds: Optional[RiskThresholds] = None,
        market_settings: Optional[MarketSettings] = None,
    ):
        self.store = store
        self.oracle = oracle
        self.market = market
        self.thresholds = thresholds or RiskThresholds()
        self.market_settings = market_settings or MarketSettings()

    def _holdings_in_scope(self, scope: RankingScope):
        if scope == RankingScope.STOCK:
            return self.store.find_by_asset_class(AssetClass.STOCK)
        if scope == RankingScope.CRYPTO:
            return self.store.find_by_asset_class(AssetClass.CRYPTO)
        return self.store.find_all()

    async def _price_position(
        self,
        pos: AggregatedPosition,
        diagnostics: Optional[List[str]],
    ) -> Optional[Recommendation]:
        try:
            current = await self.oracle.current_price(pos.symbol, pos.asset_class)
        except PriceUnavailable as e:
            logger.warning("ranking_skip symbol=%s reason=%s", pos.symbol, e.reason or "unavailable")
            if diagnostics is not None:
                diagnostics.append(f"{pos.symbol}: {e}")
            return None

        pct = present(profit_percent(pos.weighted_average_cost, current))
        return Recommendation(
            symbol=pos.symbol,
            risk_level=classify_magnitude(pct, self.thresholds),
            average_buy_price=pos.weighted_average_cost,
            current_price=current,
            profit_percent=pct,
            source="PORTFOLIO",
        )

    async def portfolio_recommendations(
        self,
        scope: RankingScope,
        diagnostics: Optional[List[str]] = None,
    ) -> List[Recommendation]:
        positions = [
            p for p in aggregate(self._holdings_in_scope(scope)).values()
            if p.weighted_average_cost != 0
        ]
        if not positions:
            return []
        # gather keeps request order, so output follows aggregation order
        priced = await asyncio.gather(*[self._price_position(p, diagnostics) for p in positions])
        return dedupe([r for r in priced if r is not None])

    def _candidate_rec(self, c: MarketCandidate) -> Recommendation:
        pct = present(c.change_percent)
        return Recommendation(
            symbol=normalize(c.symbol),
            risk_level=classify_magnitude(pct, self.thresholds) if pct is not None else RiskLevel.LOW,
            current_price=c.price,
            profit_percent=pct,
            source="MARKET",
        )

    def _fill(
        self,
        recs: List[Recommendation],
        have: Set[str],
        candidates: List[MarketCandidate],
        n: int,
    ) -> None:
        for c in candidates:
            if len(recs) >= n:
                return
            sym = normalize(c.symbol)
            if not sym or sym in have:
                continue
            have.add(sym)
            recs.append(self._candidate_rec(c))

    async def top_n(
        self,
        scope: RankingScope,
        n: int,
        diagnostics: Optional[List[str]] = None,
    ) -> List[Recommendation]:
        if n <= 0:
            return []

        recs = await self.portfolio_recommendations(scope, diagnostics)
        have = {normalize(r.symbol) for r in recs}

        if len(recs) < n and scope in (RankingScope.STOCK, RankingScope.ALL):
            # ask for enough that skipping held symbols still leaves n
            stocks = await self.market.top_stocks(n + len(have))
            self._fill(recs, have, stocks, n)

        if len(recs) < n and scope in (RankingScope.CRYPTO, RankingScope.ALL):
            limit = max(n + self.market_settings.crypto_feed_padding, self.market_settings.crypto_feed_min_limit)
            coins = await self.market.top_crypto(limit)
            self._fill(recs, have, coins, n)

        return rank(recs, n)
