# services/holdings_store.py
from __future__ import annotations

from typing import List

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from models.user_asset import UserAsset
from schemas.assets import CRYPTO_LABELS, AssetClass, HoldingSnapshot
from services.symbols import aliases_of


def to_snapshot(row: UserAsset) -> HoldingSnapshot:
    return HoldingSnapshot(
        id=row.id,
        symbol=row.symbol,
        asset_class=AssetClass.parse(row.asset_type),
        name=row.name,
        buy_price=row.buy_price,
        quantity=row.qty,
        current_price=row.current_price,
        current_updated=row.current_updated,
        last_updated=row.last_updated,
    )


class SqlHoldingsStore:
    """Read side of user_assets, returned as immutable snapshots in id order."""

    def __init__(self, db: Session):
        self.db = db

    def _rows(self, stmt) -> List[HoldingSnapshot]:
        rows = self.db.execute(stmt.order_by(UserAsset.id)).scalars().all()
        return [to_snapshot(r) for r in rows]

    def find_by_symbol(self, symbol: str) -> List[HoldingSnapshot]:
        spellings = aliases_of(symbol)
        if not spellings or spellings == frozenset({""}):
            return []
        return self._rows(
            select(UserAsset).where(func.lower(func.trim(UserAsset.symbol)).in_(sorted(spellings)))
        )

    def find_by_asset_class(self, asset_class: AssetClass) -> List[HoldingSnapshot]:
        # same split as AssetClass.parse: the crypto labels, and everything else
        label = func.upper(func.trim(UserAsset.asset_type))
        crypto = sorted(CRYPTO_LABELS)
        if asset_class == AssetClass.CRYPTO:
            cond = label.in_(crypto)
        else:
            cond = or_(UserAsset.asset_type.is_(None), label.not_in(crypto))
        return self._rows(select(UserAsset).where(cond))

    def find_all(self) -> List[HoldingSnapshot]:
        return self._rows(select(UserAsset))
