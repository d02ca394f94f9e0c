import asyncio
import os
import unittest
from decimal import Decimal

os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

from schemas.assets import (
    AssetClass,
    HoldingSnapshot,
    MarketCandidate,
    RankingScope,
    Recommendation,
    RiskLevel,
)
from services.engine.errors import PriceUnavailable
from services.engine.ranking import Performance, RecommendationRanker, dedupe, rank
from services.symbols import normalize


def _lot(symbol, price, qty, cls=AssetClass.STOCK):
    return HoldingSnapshot(symbol=symbol, asset_class=cls, buy_price=price, quantity=qty)


def _cand(symbol, pct=None):
    return MarketCandidate(symbol=symbol, change_percent=None if pct is None else Decimal(str(pct)))


class _FakeStore:
    def __init__(self, holdings=()):
        self.holdings = list(holdings)

    def find_by_symbol(self, symbol):
        return [h for h in self.holdings if normalize(h.symbol) == normalize(symbol)]

    def find_by_asset_class(self, asset_class):
        return [h for h in self.holdings if h.asset_class == asset_class]

    def find_all(self):
        return list(self.holdings)


class _FakeOracle:
    def __init__(self, prices=None):
        self.prices = {k: Decimal(str(v)) for k, v in (prices or {}).items()}
        self.calls = []

    async def current_price(self, symbol, asset_class):
        self.calls.append(symbol)
        if symbol not in self.prices:
            raise PriceUnavailable(symbol, asset_class.value, "no data")
        return self.prices[symbol]


class _FakeMarket:
    def __init__(self, stocks=(), crypto=()):
        self.stocks = list(stocks)
        self.crypto = list(crypto)
        self.stock_limits = []
        self.crypto_limits = []

    async def top_stocks(self, limit):
        self.stock_limits.append(limit)
        return self.stocks[:limit]

    async def top_crypto(self, limit):
        self.crypto_limits.append(limit)
        return self.crypto[:limit]


def _ranker(holdings=(), prices=None, stocks=(), crypto=()):
    market = _FakeMarket(stocks, crypto)
    oracle = _FakeOracle(prices)
    return RecommendationRanker(_FakeStore(holdings), oracle, market), oracle, market


class TestRankingHelpers(unittest.TestCase):
    def test_unknown_performance_sorts_after_any_known(self):
        keys = sorted(
            [Performance(None), Performance(Decimal("-99")), Performance(Decimal("3"))],
            key=Performance.sort_key,
        )
        self.assertEqual([k.value for k in keys], [Decimal("3"), Decimal("-99"), None])

    def test_rank_is_stable_and_truncates(self):
        recs = [
            Recommendation(symbol="A", risk_level=RiskLevel.LOW, profit_percent=Decimal("1.00")),
            Recommendation(symbol="B", risk_level=RiskLevel.LOW, profit_percent=Decimal("1.00"), source="MARKET"),
            Recommendation(symbol="C", risk_level=RiskLevel.LOW, profit_percent=None, source="MARKET"),
            Recommendation(symbol="D", risk_level=RiskLevel.LOW, profit_percent=Decimal("2.00")),
        ]
        self.assertEqual([r.symbol for r in rank(recs, 3)], ["D", "A", "B"])
        self.assertEqual(rank(recs, 0), [])

    def test_dedupe_keeps_first_seen(self):
        recs = [
            Recommendation(symbol="btc-usd", risk_level=RiskLevel.LOW, profit_percent=Decimal("1")),
            Recommendation(symbol="BTC", risk_level=RiskLevel.HIGH, profit_percent=Decimal("50")),
        ]
        out = dedupe(recs)
        self.assertEqual(len(out), 1)
        self.assertEqual(out[0].profit_percent, Decimal("1"))


class TestRecommendationRanker(unittest.TestCase):
    def test_portfolio_of_two_filled_to_five(self):
        ranker, _, market = _ranker(
            holdings=[_lot("AAA", "100", 10), _lot("BBB", "100", 10)],
            prices={"AAA": 110, "BBB": 90},
            stocks=[_cand("AAA", 5), _cand("CCC", 30), _cand("DDD", 1), _cand("EEE"), _cand("HHH", 3)],
            crypto=[_cand("BTC", 2)],
        )
        out = asyncio.run(ranker.top_n(RankingScope.ALL, 5))

        self.assertEqual([r.symbol for r in out], ["CCC", "AAA", "DDD", "BBB", "EEE"])
        self.assertEqual(len({normalize(r.symbol) for r in out}), 5)
        self.assertEqual(out[1].source, "PORTFOLIO")
        self.assertEqual(out[1].profit_percent, Decimal("10.00"))
        self.assertEqual(out[1].risk_level, RiskLevel.MEDIUM)
        self.assertEqual(out[0].source, "MARKET")
        self.assertEqual(out[0].risk_level, RiskLevel.HIGH)
        self.assertIsNone(out[0].average_buy_price)
        self.assertIsNone(out[4].profit_percent)
        self.assertEqual(out[4].risk_level, RiskLevel.LOW)
        # held symbols are over-requested so skips still leave enough
        self.assertEqual(market.stock_limits, [7])
        self.assertEqual(market.crypto_limits, [])

    def test_all_scope_falls_through_to_crypto(self):
        ranker, _, market = _ranker(
            holdings=[_lot("AAA", "100", 1)],
            prices={"AAA": 100},
            stocks=[_cand("CCC", 1)],
            crypto=[_cand("bitcoin", 4), _cand("ETH", -2)],
        )
        out = asyncio.run(ranker.top_n(RankingScope.ALL, 4))
        self.assertEqual([r.symbol for r in out], ["BTC", "CCC", "AAA", "ETH"])
        self.assertEqual(market.crypto_limits, [50])

    def test_crypto_scope_only_reads_crypto(self):
        ranker, _, market = _ranker(
            holdings=[_lot("MSFT", "100", 1), _lot("SOL", "100", 2, AssetClass.CRYPTO)],
            prices={"MSFT": 200, "SOL": 150},
            stocks=[_cand("CCC", 1)],
            crypto=[_cand("SOL", 3), _cand("BTC", 1)],
        )
        out = asyncio.run(ranker.top_n(RankingScope.CRYPTO, 3))

        self.assertEqual([r.symbol for r in out], ["SOL", "BTC"])
        self.assertEqual(out[0].source, "PORTFOLIO")
        self.assertEqual(market.stock_limits, [])

    def test_stock_scope_never_asks_for_crypto(self):
        ranker, _, market = _ranker(stocks=[_cand("CCC", 1)], crypto=[_cand("BTC", 1)])
        out = asyncio.run(ranker.top_n(RankingScope.STOCK, 3))
        self.assertEqual([r.symbol for r in out], ["CCC"])
        self.assertEqual(market.crypto_limits, [])

    def test_unpriceable_position_is_skipped_and_reported(self):
        ranker, _, _ = _ranker(
            holdings=[_lot("AAA", "100", 10), _lot("BBB", "100", 10)],
            prices={"AAA": 120},
        )
        diagnostics = []
        out = asyncio.run(ranker.top_n(RankingScope.STOCK, 5, diagnostics=diagnostics))

        self.assertEqual([r.symbol for r in out], ["AAA"])
        self.assertEqual(len(diagnostics), 1)
        self.assertIn("BBB", diagnostics[0])

    def test_zero_quantity_symbols_are_not_ranked(self):
        ranker, oracle, _ = _ranker(
            holdings=[_lot("ZZZ", "100", 0), _lot("AAA", "100", 1)],
            prices={"ZZZ": 500, "AAA": 100},
        )
        out = asyncio.run(ranker.top_n(RankingScope.ALL, 5))
        self.assertEqual([r.symbol for r in out], ["AAA"])
        self.assertNotIn("ZZZ", oracle.calls)

    def test_ties_keep_portfolio_first(self):
        ranker, _, _ = _ranker(
            holdings=[_lot("AAA", "100", 1)],
            prices={"AAA": 110},
            stocks=[_cand("CCC", 10)],
        )
        out = asyncio.run(ranker.top_n(RankingScope.STOCK, 2))
        self.assertEqual([r.symbol for r in out], ["AAA", "CCC"])

    def test_full_portfolio_skips_market(self):
        ranker, _, market = _ranker(
            holdings=[_lot("AAA", "100", 1), _lot("BBB", "100", 1), _lot("CCC", "100", 1)],
            prices={"AAA": 101, "BBB": 103, "CCC": 102},
        )
        out = asyncio.run(ranker.top_n(RankingScope.ALL, 2))
        self.assertEqual([r.symbol for r in out], ["BBB", "CCC"])
        self.assertEqual(market.stock_limits, [])

    def test_non_positive_n(self):
        ranker, oracle, _ = _ranker(holdings=[_lot("AAA", "100", 1)], prices={"AAA": 1})
        self.assertEqual(asyncio.run(ranker.top_n(RankingScope.ALL, 0)), [])
        self.assertEqual(oracle.calls, [])

    def test_repeat_calls_are_identical(self):
        ranker, _, _ = _ranker(
            holdings=[_lot("AAA", "100", 1)],
            prices={"AAA": 90},
            stocks=[_cand("CCC", 3), _cand("DDD")],
        )
        first = asyncio.run(ranker.top_n(RankingScope.ALL, 3))
        second = asyncio.run(ranker.top_n(RankingScope.ALL, 3))
        self.assertEqual(first, second)


if __name__ == "__main__":
    unittest.main()
