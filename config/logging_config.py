"""
Logging setup for the advisor API.

- LOG_LEVEL from env (default INFO).
- LOG_JSON=1 switches to one JSON object per line (container log shippers).
- Engine modules log `event key=value` pairs; holdings amounts stay out of messages.
"""
import json
import logging
import os
import sys
from decimal import Decimal
from typing import Any, Optional

SERVICE_NAME = "asset-advisor"

_RESERVED = set(logging.LogRecord("", 0, "", 0, "", (), None).__dict__) | {"message", "asctime"}


def _json_default(obj: Any):
    if isinstance(obj, Decimal):
        return str(obj)
    if hasattr(obj, "isoformat"):
        return obj.isoformat()
    return repr(obj)


class JsonFormatter(logging.Formatter):
    """Single-line JSON; fields passed via `extra=` are merged in."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "service": SERVICE_NAME,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for k, v in record.__dict__.items():
            if k not in _RESERVED and k not in payload and v is not None:
                payload[k] = v
        if record.exc_info and record.exc_info[0]:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=_json_default)


def _wants_json() -> bool:
    return os.getenv("LOG_JSON", "").lower() in ("1", "true", "yes")


def configure_logging(level: Optional[str] = None) -> None:
    level_name = (level or os.getenv("LOG_LEVEL") or "INFO").upper()
    numeric = getattr(logging, level_name, logging.INFO)

    root = logging.getLogger()
    root.setLevel(numeric)
    # reload-safe
    for h in root.handlers[:]:
        root.removeHandler(h)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(numeric)
    if _wants_json():
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s"))
    root.addHandler(handler)

    for noisy in ("uvicorn.access", "httpx", "httpcore", "slowapi"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
