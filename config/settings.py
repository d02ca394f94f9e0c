# config/settings.py
"""
Runtime settings for the advisor backend.

Values come from the environment (a local .env is loaded first). Risk
thresholds, the curated market lists and fallback prices live here so the
engine can take them as arguments.
"""
from __future__ import annotations

import json
import os
from decimal import Decimal
from functools import lru_cache
from typing import Dict, List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

load_dotenv()


class RiskThresholds(BaseModel):
    high_pct: Decimal = Decimal("20")
    medium_pct: Decimal = Decimal("5")


class FallbackPrices(BaseModel):
    """Static prices used only where an approximate value is acceptable."""

    stock: Dict[str, Decimal] = Field(default_factory=lambda: {
        "AAPL": Decimal("235.82"),
        "MSFT": Decimal("425.50"),
        "GOOGL": Decimal("185.20"),
        "TSLA": Decimal("420.15"),
    })
    crypto: Dict[str, Decimal] = Field(default_factory=lambda: {
        "BTC": Decimal("67000"),
        "ETH": Decimal("3500"),
        "SOL": Decimal("180"),
        "ADA": Decimal("0.55"),
        "XRP": Decimal("0.62"),
        "DOGE": Decimal("0.15"),
    })
    stock_default: Optional[Decimal] = Decimal("150.00")
    crypto_default: Optional[Decimal] = Decimal("100")


class MarketSettings(BaseModel):
    top_market_stocks: List[str] = Field(default_factory=lambda: [
        "MSFT", "NVDA", "AAPL", "GOOGL", "AMZN", "META", "TSLA", "AVGO",
        "LLY", "JPM", "V", "WMT", "UNH", "MA", "PG",
    ])
    top_market_crypto: List[str] = Field(default_factory=lambda: [
        "BTC", "ETH", "SOL", "BNB", "XRP", "ADA", "AVAX", "DOGE", "DOT", "LINK",
    ])
    # day-change % used when a large-cap quote can't be fetched
    fallback_performance: Dict[str, Decimal] = Field(default_factory=lambda: {
        "NVDA": Decimal("45.2"),
        "MSFT": Decimal("18.7"),
        "TSLA": Decimal("-12.3"),
        "AAPL": Decimal("23.4"),
        "GOOGL": Decimal("15.8"),
        "AMZN": Decimal("12.1"),
        "META": Decimal("28.4"),
        "AVGO": Decimal("35.6"),
    })
    crypto_feed_min_limit: int = 50
    crypto_feed_padding: int = 20


class Settings(BaseModel):
    finnhub_api_key: Optional[str] = None
    finnhub_base_url: str = "https://finnhub.io/api/v1"
    coingecko_base_url: str = "https://api.coingecko.com/api/v3"
    coingecko_api_key: Optional[str] = None

    http_timeout_s: float = 5.0
    max_concurrency: int = 8

    quote_cache_ttl_s: int = 60
    redis_url: Optional[str] = None

    default_top_n: int = 5
    max_top_n: int = 50
    recommendations_rate_limit: str = "30/minute"

    risk: RiskThresholds = Field(default_factory=RiskThresholds)
    market: MarketSettings = Field(default_factory=MarketSettings)
    fallback_prices: FallbackPrices = Field(default_factory=FallbackPrices)


def _env_json(name: str) -> Optional[dict]:
    raw = os.getenv(name)
    if not raw:
        return None
    return json.loads(raw)


def load_settings() -> Settings:
    data: dict = {
        "finnhub_api_key": os.getenv("FINNHUB_API_KEY") or None,
        "coingecko_api_key": os.getenv("COINGECKO_API_KEY") or None,
        "redis_url": os.getenv("UPSTASH_REDIS_URL") or os.getenv("REDIS_URL") or None,
    }
    if os.getenv("FINNHUB_BASE_URL"):
        data["finnhub_base_url"] = os.getenv("FINNHUB_BASE_URL")
    if os.getenv("COINGECKO_BASE_URL"):
        data["coingecko_base_url"] = os.getenv("COINGECKO_BASE_URL")
    if os.getenv("MARKET_HTTP_TIMEOUT_SEC"):
        data["http_timeout_s"] = float(os.getenv("MARKET_HTTP_TIMEOUT_SEC", "5"))
    if os.getenv("MARKET_MAX_CONCURRENCY"):
        data["max_concurrency"] = int(os.getenv("MARKET_MAX_CONCURRENCY", "8"))
    if os.getenv("QUOTE_CACHE_TTL_SEC"):
        data["quote_cache_ttl_s"] = int(os.getenv("QUOTE_CACHE_TTL_SEC", "60"))
    if os.getenv("RECOMMENDATIONS_RATE_LIMIT"):
        data["recommendations_rate_limit"] = os.getenv("RECOMMENDATIONS_RATE_LIMIT")

    # Nested blocks are JSON in the env, e.g.
    #   RISK_THRESHOLDS_JSON='{"high_pct": 25, "medium_pct": 7.5}'
    risk = _env_json("RISK_THRESHOLDS_JSON")
    if risk:
        data["risk"] = risk
    fallback = _env_json("FALLBACK_PRICES_JSON")
    if fallback:
        data["fallback_prices"] = fallback

    return Settings(**data)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()
