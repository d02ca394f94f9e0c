# services/market/coingecko_service.py
from __future__ import annotations

from contextlib import asynccontextmanager
from decimal import Decimal
from typing import Any, Dict, List, Optional

import httpx

from schemas.assets import MarketCandidate
from services.symbols import coingecko_id
from utils.common_helpers import safe_decimal, safe_json, safe_json_dict

DEFAULT_BASE_URL = "https://api.coingecko.com/api/v3"
MAX_PER_PAGE = 100


class CoinGeckoError(Exception):
    pass


class CoinGeckoClient:
    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        api_key: Optional[str] = None,
        timeout: float = 5.0,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout

    @asynccontextmanager
    async def _client(self, client: Optional[httpx.AsyncClient] = None):
        if client is not None:
            yield client
            return
        async with httpx.AsyncClient(timeout=self.timeout, headers=self._headers()) as c:
            yield c

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.api_key:
            headers["x-cg-demo-api-key"] = self.api_key
        return headers

    async def _get(self, c: httpx.AsyncClient, path: str, params: Dict[str, Any]) -> httpx.Response:
        r = await c.get(f"{self.base_url}{path}", params=params)
        try:
            r.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise CoinGeckoError(f"CoinGecko {path} failed: {e.response.status_code}") from e
        return r

    async def get_price(
        self,
        symbol: str,
        client: Optional[httpx.AsyncClient] = None,
    ) -> Decimal:
        """USD price for a coin symbol or name. Raises CoinGeckoError when missing."""
        if not (symbol or "").strip():
            raise CoinGeckoError("Missing symbol")
        coin = coingecko_id(symbol)

        async with self._client(client) as c:
            r = await self._get(c, "/simple/price", {"ids": coin, "vs_currencies": "usd"})

        data = safe_json_dict(r) or {}
        entry = data.get(coin)
        price = safe_decimal(entry.get("usd")) if isinstance(entry, dict) else None
        if price is None or price <= 0:
            raise CoinGeckoError(f"Price not available for {symbol}")
        return price

    async def top_markets(
        self,
        limit: int,
        client: Optional[httpx.AsyncClient] = None,
    ) -> List[MarketCandidate]:
        """Coins ordered by market cap, with 24h change %."""
        per_page = max(1, min(int(limit), MAX_PER_PAGE))
        params = {
            "vs_currency": "usd",
            "order": "market_cap_desc",
            "per_page": per_page,
            "page": 1,
        }
        async with self._client(client) as c:
            r = await self._get(c, "/coins/markets", params)

        rows = safe_json(r)
        if not isinstance(rows, list):
            raise CoinGeckoError("Unexpected /coins/markets payload")

        out: List[MarketCandidate] = []
        for row in rows:
            if len(out) >= limit:
                break
            if not isinstance(row, dict):
                continue
            sym = row.get("symbol")
            if not isinstance(sym, str) or not sym.strip():
                continue
            out.append(MarketCandidate(
                symbol=sym.strip().upper(),
                price=safe_decimal(row.get("current_price")),
                change_percent=safe_decimal(row.get("price_change_percentage_24h")),
            ))
        return out
