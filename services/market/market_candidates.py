# services/market/market_candidates.py
"""
Market-wide candidates used to pad short top-N lists.

Stocks: the curated large-cap list, each with its live day change; when a
quote can't be fetched the static performance table stands in (or the
change is left unknown).
Crypto: CoinGecko's market-cap feed, followed by the static coin list for
whatever the feed didn't cover (all of it when the feed is down).
"""
from __future__ import annotations

import asyncio
import logging
from typing import List, Optional

import httpx

from config.settings import MarketSettings
from schemas.assets import MarketCandidate
from services.market.coingecko_service import CoinGeckoClient, CoinGeckoError
from services.market.finnhub_quotes import FinnhubQuoteClient
from services.symbols import normalize

logger = logging.getLogger(__name__)


class LiveMarketCandidates:
    def __init__(
        self,
        stocks: FinnhubQuoteClient,
        crypto: CoinGeckoClient,
        settings: Optional[MarketSettings] = None,
        timeout_s: float = 5.0,
    ):
        self.stocks = stocks
        self.crypto = crypto
        self.settings = settings or MarketSettings()
        self.timeout_s = timeout_s

    async def top_stocks(self, limit: int) -> List[MarketCandidate]:
        symbols = [s.upper() for s in self.settings.top_market_stocks][: max(0, limit)]
        if not symbols:
            return []

        try:
            quotes = await asyncio.wait_for(self.stocks.get_quotes(symbols), timeout=self.timeout_s)
        except (asyncio.TimeoutError, httpx.HTTPError) as e:
            logger.warning("top_stocks quotes unavailable, using static performance: %s", e)
            quotes = {}

        out: List[MarketCandidate] = []
        for sym in symbols:
            q = quotes.get(sym)
            if q is not None and q.day_change_percent is not None:
                out.append(MarketCandidate(symbol=sym, change_percent=q.day_change_percent, price=q.price))
            else:
                out.append(MarketCandidate(
                    symbol=sym,
                    change_percent=self.settings.fallback_performance.get(sym),
                    price=q.price if q is not None else None,
                ))
        return out

    async def top_crypto(self, limit: int) -> List[MarketCandidate]:
        if limit <= 0:
            return []

        try:
            live = await asyncio.wait_for(self.crypto.top_markets(limit), timeout=self.timeout_s)
        except (asyncio.TimeoutError, CoinGeckoError, httpx.HTTPError) as e:
            logger.warning("top_crypto feed unavailable, using static list: %s", e)
            live = []

        out: List[MarketCandidate] = []
        seen = set()
        for c in live:
            sym = normalize(c.symbol)
            if sym in seen:
                continue
            seen.add(sym)
            out.append(c)

        for sym in self.settings.top_market_crypto:
            if len(out) >= limit:
                break
            s = normalize(sym)
            if s in seen:
                continue
            seen.add(s)
            out.append(MarketCandidate(symbol=s))

        return out[:limit]
