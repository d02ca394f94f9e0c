# routers/deps.py
from __future__ import annotations

from functools import lru_cache

from fastapi import Depends
from sqlalchemy.orm import Session

from config.settings import get_settings
from database import get_db
from services.cache.cache_backend import QuoteCache
from services.engine.order_risk import OrderRiskEvaluator
from services.engine.ranking import RecommendationRanker
from services.holdings_store import SqlHoldingsStore
from services.market.coingecko_service import CoinGeckoClient
from services.market.finnhub_quotes import FinnhubQuoteClient
from services.market.market_candidates import LiveMarketCandidates
from services.market.price_oracle import MarketPriceOracle


@lru_cache(maxsize=1)
def _finnhub() -> FinnhubQuoteClient:
    s = get_settings()
    return FinnhubQuoteClient(
        api_key=s.finnhub_api_key,
        base_url=s.finnhub_base_url,
        timeout=s.http_timeout_s,
        max_concurrency=s.max_concurrency,
    )


@lru_cache(maxsize=1)
def _coingecko() -> CoinGeckoClient:
    s = get_settings()
    return CoinGeckoClient(base_url=s.coingecko_base_url, api_key=s.coingecko_api_key, timeout=s.http_timeout_s)


@lru_cache(maxsize=1)
def get_price_oracle() -> MarketPriceOracle:
    s = get_settings()
    return MarketPriceOracle(
        stocks=_finnhub(),
        crypto=_coingecko(),
        fallback=s.fallback_prices,
        timeout_s=s.http_timeout_s,
        cache=QuoteCache.from_url(s.redis_url, ttl_seconds=s.quote_cache_ttl_s),
    )


@lru_cache(maxsize=1)
def get_market_candidates() -> LiveMarketCandidates:
    s = get_settings()
    return LiveMarketCandidates(_finnhub(), _coingecko(), settings=s.market, timeout_s=s.http_timeout_s)


def get_store(db: Session = Depends(get_db)) -> SqlHoldingsStore:
    return SqlHoldingsStore(db)


def get_evaluator(
    store: SqlHoldingsStore = Depends(get_store),
    oracle: MarketPriceOracle = Depends(get_price_oracle),
) -> OrderRiskEvaluator:
    return OrderRiskEvaluator(store, oracle, thresholds=get_settings().risk)


def get_ranker(
    store: SqlHoldingsStore = Depends(get_store),
    oracle: MarketPriceOracle = Depends(get_price_oracle),
    market: LiveMarketCandidates = Depends(get_market_candidates),
) -> RecommendationRanker:
    s = get_settings()
    return RecommendationRanker(store, oracle, market, thresholds=s.risk, market_settings=s.market)
