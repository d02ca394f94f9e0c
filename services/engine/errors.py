from __future__ import annotations

from typing import Optional


class PriceUnavailable(Exception):
    """No trustworthy current price for a symbol (provider error, timeout, no data)."""

    def __init__(self, symbol: str, asset_class: Optional[str] = None, reason: str = ""):
        self.symbol = symbol
        self.asset_class = asset_class
        self.reason = reason
        msg = f"Price unavailable for {symbol}"
        if reason:
            msg = f"{msg}: {reason}"
        super().__init__(msg)
