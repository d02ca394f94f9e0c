# services/cache/cache_backend.py
"""
Two-level TTL cache for market prices.

  L1: in-process dict (short TTL)
  L2: Redis, shared across instances (optional; skipped when not configured)

Prices are stored as strings so Decimal precision survives the round trip.
Cache faults never fail a request: a Redis error is logged and treated as
a miss.
"""
from __future__ import annotations

import logging
import time
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional, Tuple

import redis

logger = logging.getLogger(__name__)

DEFAULT_PREFIX = "assetadvisor:"
LOCAL_TTL_CAP_SEC = 60


def _norm_key(key: str) -> str:
    return (key or "").strip().upper()


class QuoteCache:
    def __init__(
        self,
        ttl_seconds: int = 60,
        redis_client: Optional[Any] = None,
        prefix: str = DEFAULT_PREFIX,
        clock=time.time,
    ):
        self.ttl_seconds = max(1, int(ttl_seconds))
        self.redis = redis_client
        self.prefix = prefix
        self._clock = clock
        # key -> (expires_at_epoch, payload)
        self._local: Dict[str, Tuple[float, str]] = {}

    @classmethod
    def from_url(cls, url: Optional[str], ttl_seconds: int = 60) -> "QuoteCache":
        client = None
        if url:
            try:
                client = redis.Redis.from_url(
                    url,
                    decode_responses=True,
                    socket_timeout=2,
                    socket_connect_timeout=2,
                )
            except (redis.RedisError, ValueError) as e:
                logger.warning("quote_cache redis disabled: %s", e)
                client = None
        return cls(ttl_seconds=ttl_seconds, redis_client=client)

    def _redis_key(self, k: str) -> str:
        return f"{self.prefix}{k}"

    def get(self, key: str) -> Optional[Decimal]:
        k = _norm_key(key)
        if not k:
            return None

        hit = self._local.get(k)
        if hit:
            expires_at, payload = hit
            if self._clock() <= expires_at:
                return Decimal(payload)
            self._local.pop(k, None)

        if self.redis is None:
            return None
        try:
            raw = self.redis.get(self._redis_key(k))
        except redis.RedisError as e:
            logger.warning("quote_cache get failed key=%s: %s", k, e)
            return None
        if raw is None:
            return None
        try:
            value = Decimal(str(raw))
        except InvalidOperation:
            return None
        self._set_local(k, str(value))
        return value

    def _set_local(self, k: str, payload: str) -> None:
        ttl = min(LOCAL_TTL_CAP_SEC, self.ttl_seconds)
        self._local[k] = (self._clock() + ttl, payload)

    def set(self, key: str, value: Decimal) -> None:
        k = _norm_key(key)
        if not k:
            return
        payload = str(value)
        self._set_local(k, payload)

        if self.redis is None:
            return
        try:
            self.redis.setex(self._redis_key(k), self.ttl_seconds, payload)
        except redis.RedisError as e:
            logger.warning("quote_cache set failed key=%s: %s", k, e)
