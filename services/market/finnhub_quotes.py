# services/market/finnhub_quotes.py
from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

import httpx

from utils.common_helpers import safe_decimal, safe_json_dict

DEFAULT_BASE_URL = "https://finnhub.io/api/v1"


class FinnhubQuoteError(Exception):
    """Domain-level error for Finnhub quote lookups."""


@dataclass(frozen=True)
class StockQuote:
    symbol: str
    price: Decimal
    day_change_percent: Optional[Decimal] = None
    previous_close: Optional[Decimal] = None


def parse_quote(symbol: str, data: Dict[str, Any]) -> StockQuote:
    """
    Finnhub /quote payload:
      {"c": current, "d": change, "dp": change %, "pc": previous close, ...}
    Finnhub answers unknown symbols with zeros rather than an error.
    """
    price = safe_decimal(data.get("c"))
    if price is None or price <= 0:
        raise FinnhubQuoteError(f"Price not available for {symbol}")

    prev = safe_decimal(data.get("pc"))
    change = safe_decimal(data.get("dp"))
    if change is None and prev:
        change = (price - prev) / prev * 100

    return StockQuote(
        symbol=symbol,
        price=price,
        day_change_percent=change,
        previous_close=prev if prev else None,
    )


class FinnhubQuoteClient:
    """
    Async Finnhub quote client.

    Missing API key is reported per call (FinnhubQuoteError) rather than at
    construction, so the app can start and fall back where that's allowed.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 5.0,
        max_concurrency: int = 8,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_concurrency = max(1, int(max_concurrency))

    @asynccontextmanager
    async def _client(self, client: Optional[httpx.AsyncClient] = None):
        if client is not None:
            yield client
            return
        async with httpx.AsyncClient(timeout=self.timeout) as c:
            yield c

    def _auth_params(self, **params: Any) -> Dict[str, Any]:
        if not self.api_key:
            raise FinnhubQuoteError("Missing FINNHUB_API_KEY")
        return {**params, "token": self.api_key}

    async def _fetch(self, c: httpx.AsyncClient, sym: str) -> StockQuote:
        r = await c.get(f"{self.base_url}/quote", params=self._auth_params(symbol=sym))
        try:
            r.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise FinnhubQuoteError(f"Finnhub quote failed: {e.response.status_code}") from e
        data = safe_json_dict(r)
        if not data:
            raise FinnhubQuoteError(f"Empty quote payload for {sym}")
        return parse_quote(sym, data)

    async def get_quote(
        self,
        symbol: str,
        client: Optional[httpx.AsyncClient] = None,
    ) -> StockQuote:
        """One quote. Raises FinnhubQuoteError (or httpx transport errors)."""
        sym = (symbol or "").strip().upper()
        if not sym:
            raise FinnhubQuoteError("Missing symbol")
        async with self._client(client) as c:
            return await self._fetch(c, sym)

    async def get_quotes(
        self,
        symbols: Iterable[str],
        client: Optional[httpx.AsyncClient] = None,
        *,
        max_concurrency: Optional[int] = None,
    ) -> Dict[str, Optional[StockQuote]]:
        """
        Batch quotes keyed by upper-cased symbol, in request order.
        A failed lookup maps to None instead of failing the batch.
        """
        clean: List[str] = []
        for s in symbols:
            sym = (s or "").strip().upper()
            if sym and sym not in clean:
                clean.append(sym)
        if not clean:
            return {}

        sem = asyncio.Semaphore(max(1, int(max_concurrency or self.max_concurrency)))

        async def fetch_one(c: httpx.AsyncClient, sym: str) -> StockQuote:
            async with sem:
                return await self._fetch(c, sym)

        async with self._client(client) as c:
            results = await asyncio.gather(
                *[fetch_one(c, s) for s in clean],
                return_exceptions=True,
            )

        out: Dict[str, Optional[StockQuote]] = {}
        for sym, res in zip(clean, results):
            out[sym] = res if isinstance(res, StockQuote) else None
        return out
