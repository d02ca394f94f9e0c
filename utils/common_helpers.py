from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional

import httpx

PERCENT_SCALE = Decimal("0.0001")
PRESENT_SCALE = Decimal("0.01")


def to_decimal(x: Any) -> Decimal:
    """Lenient Decimal conversion; None or junk becomes 0."""
    if x is None:
        return Decimal(0)
    if isinstance(x, Decimal):
        return x
    try:
        # str() so floats like 0.1 don't drag binary noise in
        return Decimal(str(x))
    except (InvalidOperation, ValueError):
        return Decimal(0)


def safe_decimal(x: Any) -> Optional[Decimal]:
    if x is None:
        return None
    try:
        d = Decimal(str(x))
    except (InvalidOperation, ValueError):
        return None
    return d if d.is_finite() else None


def safe_json(resp: httpx.Response) -> Optional[Any]:
    try:
        return resp.json()
    except ValueError:
        return None


def safe_json_dict(resp: httpx.Response) -> Optional[Dict[str, Any]]:
    data = safe_json(resp)
    return data if isinstance(data, dict) else None
