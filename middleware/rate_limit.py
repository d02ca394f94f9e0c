# middleware/rate_limit.py
"""
slowapi limiter shared by the routers.

    from middleware.rate_limit import limiter

    @router.get("")
    @limiter.limit("30/minute")
    async def endpoint(request: Request): ...

Buckets are per client address (first X-Forwarded-For hop when present).
Storage follows RATE_LIMIT_STORAGE_URI (e.g. a redis:// URL) so limits hold
across workers; the default memory:// keeps them per process.
"""
import logging
import os

from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

logger = logging.getLogger(__name__)

DEFAULT_RATE_LIMIT = os.getenv("RATE_LIMIT_DEFAULT", "120/minute")


def client_key(request: Request) -> str:
    forwarded = request.headers.get("X-Forwarded-For", "")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return get_remote_address(request)


def _storage_uri() -> str:
    uri = os.getenv("RATE_LIMIT_STORAGE_URI") or "memory://"
    logger.debug("rate_limit storage=%s", uri.split("://", 1)[0])
    return uri


limiter = Limiter(
    key_func=client_key,
    default_limits=[DEFAULT_RATE_LIMIT],
    storage_uri=_storage_uri(),
    strategy="fixed-window",
)
