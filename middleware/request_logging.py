"""
Access log middleware: method, path, status, duration.
Query strings are left out; symbols and quantities are not logged here.
"""
import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger(__name__)


def _level_for(status: int) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Tags every response with X-Request-ID and logs one line when it finishes."""

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:12]
        path = request.scope.get("path", "")
        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            logger.exception("request_failed id=%s method=%s path=%s", request_id, request.method, path)
            raise
        duration_ms = (time.perf_counter() - start) * 1000
        response.headers["X-Request-ID"] = request_id
        logger.log(
            _level_for(response.status_code),
            "request_finished id=%s method=%s path=%s status=%s duration_ms=%.1f",
            request_id, request.method, path, response.status_code, duration_ms,
        )
        return response
