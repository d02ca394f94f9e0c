# services/symbols.py
"""
Ticker / coin alias normalization.

Every holding and market candidate is keyed by its canonical symbol, so
"bitcoin", "btc-usd" and "BTC" all land in the same bucket.
"""
from __future__ import annotations

from types import MappingProxyType
from typing import Dict, FrozenSet, Mapping

# canonical -> (coin name, CoinGecko id)
_COINS: Dict[str, tuple[str, str]] = {
    "BTC": ("bitcoin", "bitcoin"),
    "ETH": ("ethereum", "ethereum"),
    "SOL": ("solana", "solana"),
    "ADA": ("cardano", "cardano"),
    "XRP": ("ripple", "ripple"),
    "DOGE": ("dogecoin", "dogecoin"),
    "USDT": ("tether", "tether"),
    "USDC": ("usd-coin", "usd-coin"),
    "MATIC": ("polygon", "matic-network"),
    "DOT": ("polkadot", "polkadot"),
    "LINK": ("chainlink", "chainlink"),
    "AVAX": ("avalanche", "avalanche-2"),
    "UNI": ("uniswap", "uniswap"),
    "LTC": ("litecoin", "litecoin"),
    "BNB": ("binance-coin", "binancecoin"),
}


def _build_aliases() -> Mapping[str, str]:
    table: Dict[str, str] = {}
    for canonical, (name, gecko_id) in _COINS.items():
        low = canonical.lower()
        for alias in (low, name, gecko_id, f"{low}-usd", f"{low}usd", f"{low}-usdt", f"{low}usdt"):
            table[alias] = canonical
    return MappingProxyType(table)


ALIASES: Mapping[str, str] = _build_aliases()
COINGECKO_IDS: Mapping[str, str] = MappingProxyType(
    {canonical: gecko_id for canonical, (_, gecko_id) in _COINS.items()}
)


def normalize(raw_symbol: str | None) -> str:
    key = (raw_symbol or "").strip()
    if not key:
        return ""
    return ALIASES.get(key.lower(), key.upper())


def aliases_of(canonical: str) -> FrozenSet[str]:
    """Every lower-cased spelling that normalizes to `canonical` (itself included)."""
    c = normalize(canonical)
    out = {alias for alias, target in ALIASES.items() if target == c}
    out.add(c.lower())
    return frozenset(out)


def is_crypto(symbol: str) -> bool:
    return normalize(symbol) in COINGECKO_IDS


def coingecko_id(symbol: str) -> str:
    c = normalize(symbol)
    return COINGECKO_IDS.get(c, (symbol or "").strip().lower())
