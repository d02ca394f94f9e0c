import os
import unittest
from decimal import Decimal

import redis

os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

from services.cache.cache_backend import QuoteCache


class _Clock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


class _FakeRedis:
    def __init__(self):
        self.store = {}
        self.ttls = {}

    def get(self, key):
        return self.store.get(key)

    def setex(self, key, ttl, value):
        self.store[key] = value
        self.ttls[key] = ttl


class _DownRedis:
    def get(self, key):
        raise redis.ConnectionError("down")

    def setex(self, key, ttl, value):
        raise redis.ConnectionError("down")


class TestQuoteCache(unittest.TestCase):
    def test_local_hit_until_expiry(self):
        clock = _Clock()
        cache = QuoteCache(ttl_seconds=30, clock=clock)
        cache.set("price:stock:aapl", Decimal("231.10"))

        self.assertEqual(cache.get("PRICE:STOCK:AAPL"), Decimal("231.10"))
        clock.now += 31
        self.assertIsNone(cache.get("PRICE:STOCK:AAPL"))

    def test_redis_is_written_and_read_back(self):
        r = _FakeRedis()
        cache = QuoteCache(ttl_seconds=120, redis_client=r)
        cache.set("PRICE:CRYPTO:BTC", Decimal("65000.12345678"))

        self.assertEqual(r.store["assetadvisor:PRICE:CRYPTO:BTC"], "65000.12345678")
        self.assertEqual(r.ttls["assetadvisor:PRICE:CRYPTO:BTC"], 120)

        # a fresh process only has redis
        other = QuoteCache(ttl_seconds=120, redis_client=r)
        self.assertEqual(other.get("PRICE:CRYPTO:BTC"), Decimal("65000.12345678"))

    def test_redis_errors_are_misses(self):
        cache = QuoteCache(redis_client=_DownRedis())
        cache.set("PRICE:STOCK:MSFT", Decimal("1"))
        # still served from L1
        self.assertEqual(cache.get("PRICE:STOCK:MSFT"), Decimal("1"))
        self.assertIsNone(cache.get("PRICE:STOCK:NVDA"))

    def test_blank_key(self):
        cache = QuoteCache()
        cache.set("  ", Decimal("1"))
        self.assertIsNone(cache.get(""))

    def test_from_url_without_url(self):
        cache = QuoteCache.from_url(None, ttl_seconds=10)
        self.assertIsNone(cache.redis)
        self.assertEqual(cache.ttl_seconds, 10)


if __name__ == "__main__":
    unittest.main()
