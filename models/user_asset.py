from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from database import Base


class UserAsset(Base):
    """One purchase lot. qty is reduced on sale; a lot at 0 is history."""

    __tablename__ = "user_assets"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    asset_type: Mapped[str] = mapped_column(String(16), index=True)  # STOCK | CRYPTO
    symbol: Mapped[str] = mapped_column(String(32), index=True)
    name: Mapped[str | None] = mapped_column(String(120), nullable=True)

    buy_price: Mapped[Decimal | None] = mapped_column(Numeric(20, 8), nullable=True)
    qty: Mapped[int | None] = mapped_column(Integer, nullable=True)

    current_price: Mapped[Decimal | None] = mapped_column(Numeric(20, 8), nullable=True)
    current_updated: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # set when the lot is sold down to zero
    selling_price: Mapped[Decimal | None] = mapped_column(Numeric(20, 8), nullable=True)
    selling_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    last_updated: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
