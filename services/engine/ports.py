# services/engine/ports.py
"""Collaborators the engine consumes. Concrete versions live in services/."""
from __future__ import annotations

from decimal import Decimal
from typing import List, Protocol

from schemas.assets import AssetClass, HoldingSnapshot, MarketCandidate


class HoldingsStore(Protocol):
    def find_by_symbol(self, symbol: str) -> List[HoldingSnapshot]:
        """All lots stored under `symbol` or any of its aliases."""

    def find_by_asset_class(self, asset_class: AssetClass) -> List[HoldingSnapshot]:
        ...

    def find_all(self) -> List[HoldingSnapshot]:
        ...


class PriceOracle(Protocol):
    async def current_price(self, symbol: str, asset_class: AssetClass) -> Decimal:
        """Live price, or raise PriceUnavailable. Never returns a made-up zero."""


class MarketCandidates(Protocol):
    async def top_stocks(self, limit: int) -> List[MarketCandidate]:
        """Large caps in ranking order with day change %."""

    async def top_crypto(self, limit: int) -> List[MarketCandidate]:
        """Coins by market cap with 24h change %; static list when the feed is down."""
