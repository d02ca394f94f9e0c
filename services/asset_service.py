# services/asset_service.py
from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from models.user_asset import UserAsset
from schemas.assets import AssetClass, HoldingSnapshot
from schemas.dashboard import DashboardAsset
from schemas.requests import AssetCreate
from services.engine.errors import PriceUnavailable
from services.engine.profit import present, profit_percent
from services.holdings_store import SqlHoldingsStore
from services.market.price_oracle import MarketPriceOracle, PriceQuote
from services.symbols import aliases_of, normalize

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


# -----------------------
# Writes
# -----------------------

async def add_asset(db: Session, oracle: MarketPriceOracle, payload: AssetCreate) -> UserAsset:
    """Store a new lot stamped with the current (or labeled fallback) price."""
    symbol = normalize(payload.symbol)
    current: Optional[Decimal] = None
    try:
        current = (await oracle.quote_or_fallback(symbol, payload.asset_type)).price
    except PriceUnavailable:
        logger.warning("add_asset symbol=%s stored without current price", symbol)

    now = _now()
    asset = UserAsset(
        asset_type=payload.asset_type.value,
        symbol=symbol,
        name=payload.name,
        buy_price=payload.buy_price,
        qty=payload.qty,
        current_price=current,
        current_updated=now if current is not None else None,
        last_updated=now,
    )
    db.add(asset)
    db.commit()
    db.refresh(asset)
    return asset


def sell_lots(db: Session, symbol: str, quantity: int, price: Optional[Decimal]) -> int:
    """
    Take `quantity` units out of the symbol's lots, oldest first.
    Lots that reach zero get the selling price/date. All or nothing: when the
    lots can't cover `quantity` nothing is written and 0 is returned.
    """
    rows = db.execute(
        select(UserAsset)
        .where(func.lower(func.trim(UserAsset.symbol)).in_(sorted(aliases_of(symbol))))
        .order_by(UserAsset.id)
        .with_for_update()
    ).scalars().all()

    remaining = max(0, int(quantity))
    sold = 0
    now = _now()
    for row in rows:
        if remaining <= 0:
            break
        available = int(row.qty or 0)
        if available <= 0:
            continue
        take = min(available, remaining)
        row.qty = available - take
        if row.qty == 0:
            row.selling_price = price
            row.selling_date = now
        if price is not None:
            row.current_price = price
            row.current_updated = now
        row.last_updated = now
        remaining -= take
        sold += take

    if remaining > 0:
        db.rollback()
        logger.warning(
            "sell_lots symbol=%s requested=%d short=%d rolled back",
            normalize(symbol), quantity, remaining,
        )
        return 0

    db.commit()
    logger.info("sell_lots symbol=%s requested=%d sold=%d", normalize(symbol), quantity, sold)
    return sold


# -----------------------
# Reads
# -----------------------

def get_all_assets(db: Session) -> List[UserAsset]:
    return list(db.execute(select(UserAsset).order_by(UserAsset.id)).scalars().all())


def get_history(store: SqlHoldingsStore) -> List[HoldingSnapshot]:
    return [h for h in store.find_all() if h.quantity == 0]


async def _price_map(
    oracle: MarketPriceOracle,
    keys: List[Tuple[str, AssetClass]],
) -> Dict[Tuple[str, AssetClass], Optional[PriceQuote]]:
    async def one(sym: str, cls: AssetClass) -> Optional[PriceQuote]:
        try:
            return await oracle.quote_or_fallback(sym, cls)
        except PriceUnavailable:
            return None

    results = await asyncio.gather(*[one(s, c) for s, c in keys])
    return dict(zip(keys, results))


async def get_dashboard(store: SqlHoldingsStore, oracle: MarketPriceOracle) -> List[DashboardAsset]:
    lots = [h for h in store.find_all() if h.quantity > 0]
    keys: List[Tuple[str, AssetClass]] = []
    for h in lots:
        k = (normalize(h.symbol), h.asset_class)
        if k not in keys:
            keys.append(k)
    prices = await _price_map(oracle, keys)

    now = _now()
    out: List[DashboardAsset] = []
    for h in lots:
        quote = prices.get((normalize(h.symbol), h.asset_class))
        if quote is None:
            out.append(DashboardAsset(
                id=h.id,
                type=h.asset_class.value,
                symbol=h.symbol,
                name=h.name,
                buy_price=h.buy_price,
                qty=h.quantity,
                current_price=h.current_price,
                current_date=now,
                price_status="unavailable",
            ))
            continue

        pct = present(profit_percent(h.buy_price, quote.price))
        out.append(DashboardAsset(
            id=h.id,
            type=h.asset_class.value,
            symbol=h.symbol,
            name=h.name,
            buy_price=h.buy_price,
            qty=h.quantity,
            current_price=quote.price,
            current_date=now,
            difference=present((quote.price - h.buy_price) * h.quantity),
            percent=pct,
            status="PROFIT" if pct >= 0 else "LOSS",
            price_status=quote.status,
        ))
    return out
