import os
import unittest
from decimal import Decimal
from unittest.mock import patch

os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

from fastapi.testclient import TestClient

from database import get_db
from main import app
from routers.deps import get_evaluator, get_ranker, get_store
from schemas.assets import AssetClass, HoldingSnapshot, MarketCandidate
from services.engine.errors import PriceUnavailable
from services.engine.order_risk import OrderRiskEvaluator
from services.engine.ranking import RecommendationRanker
from services.symbols import normalize


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

    async def current_price(self, symbol, asset_class):
        if symbol not in self.prices:
            raise PriceUnavailable(symbol, asset_class.value, "no data")
        return self.prices[symbol]


class _FakeMarket:
    async def top_stocks(self, limit):
        return [MarketCandidate(symbol="CCC", change_percent=Decimal("3")),
                MarketCandidate(symbol="DDD")][:limit]

    async def top_crypto(self, limit):
        return []


HOLDINGS = [
    HoldingSnapshot(symbol="LOSS", asset_class=AssetClass.STOCK, buy_price="100", quantity=10),
    HoldingSnapshot(symbol="GONE", asset_class=AssetClass.STOCK, buy_price="100", quantity=10),
]
PRICES = {"LOSS": 80, "NEW": 50}


class TestApiRoutes(unittest.TestCase):
    def setUp(self):
        store = _FakeStore(HOLDINGS)
        oracle = _FakeOracle(PRICES)
        app.dependency_overrides[get_db] = lambda: None
        app.dependency_overrides[get_store] = lambda: store
        app.dependency_overrides[get_evaluator] = lambda: OrderRiskEvaluator(store, oracle)
        app.dependency_overrides[get_ranker] = lambda: RecommendationRanker(store, oracle, _FakeMarket())
        self.client = TestClient(app)

    def tearDown(self):
        app.dependency_overrides.clear()

    def test_sell_risk(self):
        r = self.client.post("/api/risk/sell", json={"symbol": "loss", "quantity": 5})
        self.assertEqual(r.status_code, 200)
        body = r.json()
        self.assertEqual(body["risk_level"], "HIGH")
        self.assertEqual(body["symbol"], "LOSS")
        self.assertFalse(body["is_full_sell"])
        self.assertTrue(body["is_high_risk"])
        self.assertEqual(Decimal(body["percent_difference"]), Decimal("-20.00"))

    def test_sell_without_holdings(self):
        r = self.client.post("/api/risk/sell", json={"symbol": "NOP", "quantity": 1})
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json()["risk_level"], "NO_HOLDINGS")

    def test_buy_risk_for_new_symbol(self):
        r = self.client.post("/api/risk/buy", json={"symbol": "NEW", "quantity": 3})
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json()["risk_level"], "LOW")
        self.assertEqual(Decimal(r.json()["current_price"]), Decimal("50"))

    def test_price_unavailable_is_503(self):
        r = self.client.post("/api/risk/sell", json={"symbol": "GONE", "quantity": 1})
        self.assertEqual(r.status_code, 503)
        self.assertEqual(r.json()["detail"]["error"], "price_unavailable")
        self.assertEqual(r.json()["detail"]["symbol"], "GONE")

    def test_negative_quantity_is_422(self):
        r = self.client.post("/api/risk/buy", json={"symbol": "NEW", "quantity": -1})
        self.assertEqual(r.status_code, 422)

    def test_recommendations(self):
        r = self.client.get("/api/recommendations", params={"scope": "stock", "n": 3})
        self.assertEqual(r.status_code, 200)
        body = r.json()
        self.assertEqual([x["symbol"] for x in body], ["CCC", "LOSS", "DDD"])
        self.assertEqual(r.headers["X-Skipped-Positions"], "1")

    def test_recommendations_unknown_scope(self):
        r = self.client.get("/api/recommendations", params={"scope": "bonds"})
        self.assertEqual(r.status_code, 422)

    def test_sell_asset_refuses_terminal_states(self):
        r = self.client.post("/api/assets/sell", json={"symbol": "LOSS", "quantity": 50})
        self.assertEqual(r.status_code, 409)
        self.assertEqual(r.json()["detail"]["risk_level"], "INSUFFICIENT_QUANTITY")

    def test_sell_asset_reduces_lots(self):
        with patch("routers.asset_routes.sell_lots", return_value=5) as sell_mock:
            r = self.client.post("/api/assets/sell", json={"symbol": "loss", "quantity": 5})
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json()["risk_level"], "HIGH")
        sell_mock.assert_called_once_with(None, "LOSS", 5, Decimal("80"))

    def test_sell_asset_conflict_when_lots_drained(self):
        with patch("routers.asset_routes.sell_lots", return_value=0):
            r = self.client.post("/api/assets/sell", json={"symbol": "LOSS", "quantity": 5})
        self.assertEqual(r.status_code, 409)
        detail = r.json()["detail"]
        self.assertEqual(detail["error"], "quantity_changed")
        self.assertEqual((detail["requested_quantity"], detail["sold_quantity"]), (5, 0))

    def test_weekly_report(self):
        r = self.client.get("/api/reports/weekly")
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json()["total_assets"], 2)

    def test_health(self):
        self.assertEqual(self.client.get("/health").json(), {"status": "ok"})


if __name__ == "__main__":
    unittest.main()
