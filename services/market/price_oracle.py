# services/market/price_oracle.py
"""
Live prices by asset class: stocks via Finnhub, crypto via CoinGecko.

current_price() either returns a real price or raises PriceUnavailable;
timeouts, HTTP errors and empty payloads all collapse into that one
condition. The static FallbackPrices table is only reachable through
quote_or_fallback(), whose result is labeled so callers can tell.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Literal, Optional

import httpx

from config.settings import FallbackPrices
from schemas.assets import AssetClass
from services.cache.cache_backend import QuoteCache
from services.engine.errors import PriceUnavailable
from services.market.coingecko_service import CoinGeckoClient, CoinGeckoError
from services.market.finnhub_quotes import FinnhubQuoteClient, FinnhubQuoteError
from services.symbols import normalize

logger = logging.getLogger(__name__)

PriceStatus = Literal["live", "fallback"]


@dataclass(frozen=True)
class PriceQuote:
    symbol: str
    price: Decimal
    status: PriceStatus


def _cache_key(symbol: str, asset_class: AssetClass) -> str:
    return f"PRICE:{asset_class.value}:{symbol}"


class MarketPriceOracle:
    def __init__(
        self,
        stocks: FinnhubQuoteClient,
        crypto: CoinGeckoClient,
        fallback: Optional[FallbackPrices] = None,
        timeout_s: float = 5.0,
        cache: Optional[QuoteCache] = None,
    ):
        self.stocks = stocks
        self.crypto = crypto
        self.fallback = fallback
        self.timeout_s = timeout_s
        self.cache = cache

    async def _fetch(self, sym: str, asset_class: AssetClass) -> Decimal:
        if asset_class == AssetClass.CRYPTO:
            return await self.crypto.get_price(sym)
        quote = await self.stocks.get_quote(sym)
        return quote.price

    async def current_price(self, symbol: str, asset_class: AssetClass) -> Decimal:
        sym = normalize(symbol)
        if not sym:
            raise PriceUnavailable(symbol, asset_class.value, "empty symbol")

        key = _cache_key(sym, asset_class)
        if self.cache is not None:
            hit = self.cache.get(key)
            if hit is not None:
                return hit

        try:
            price = await asyncio.wait_for(self._fetch(sym, asset_class), timeout=self.timeout_s)
        except asyncio.TimeoutError as e:
            logger.warning("price_timeout symbol=%s class=%s after=%.1fs", sym, asset_class.value, self.timeout_s)
            raise PriceUnavailable(sym, asset_class.value, "timeout") from e
        except (FinnhubQuoteError, CoinGeckoError) as e:
            logger.warning("price_unavailable symbol=%s class=%s: %s", sym, asset_class.value, e)
            raise PriceUnavailable(sym, asset_class.value, str(e)) from e
        except httpx.HTTPError as e:
            logger.warning("price_transport_error symbol=%s class=%s: %s", sym, asset_class.value, e)
            raise PriceUnavailable(sym, asset_class.value, "transport error") from e

        if self.cache is not None:
            self.cache.set(key, price)
        return price

    def fallback_price(self, symbol: str, asset_class: AssetClass) -> Optional[Decimal]:
        if self.fallback is None:
            return None
        sym = normalize(symbol)
        if asset_class == AssetClass.CRYPTO:
            return self.fallback.crypto.get(sym, self.fallback.crypto_default)
        return self.fallback.stock.get(sym, self.fallback.stock_default)

    async def quote_or_fallback(self, symbol: str, asset_class: AssetClass) -> PriceQuote:
        """Live price when possible, else the configured static price (labeled)."""
        sym = normalize(symbol)
        try:
            return PriceQuote(sym, await self.current_price(sym, asset_class), "live")
        except PriceUnavailable:
            fallback = self.fallback_price(sym, asset_class)
            if fallback is None:
                raise
            logger.info("price_fallback symbol=%s class=%s price=%s", sym, asset_class.value, fallback)
            return PriceQuote(sym, fallback, "fallback")
