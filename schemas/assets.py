from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from utils.common_helpers import to_decimal

# stored asset_type values read as crypto; anything else is a stock
CRYPTO_LABELS = frozenset({"CRYPTO", "CRYPTOCURRENCY"})


class AssetClass(str, Enum):
    STOCK = "STOCK"
    CRYPTO = "CRYPTO"

    @classmethod
    def parse(cls, raw: str | None) -> "AssetClass":
        t = (raw or "").strip().upper()
        if t in CRYPTO_LABELS:
            return cls.CRYPTO
        return cls.STOCK


class RankingScope(str, Enum):
    STOCK = "STOCK"
    CRYPTO = "CRYPTO"
    ALL = "ALL"


class RiskLevel(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    NO_HOLDINGS = "NO_HOLDINGS"
    INSUFFICIENT_QUANTITY = "INSUFFICIENT_QUANTITY"


class TradeAction(str, Enum):
    BUY = "BUY"
    SELL = "SELL"


class HoldingSnapshot(BaseModel):
    """Read-only view of one stored lot."""

    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: Optional[int] = None
    symbol: str
    asset_class: AssetClass = AssetClass.STOCK
    name: Optional[str] = None
    buy_price: Decimal = Field(default=Decimal(0), ge=0)
    quantity: int = Field(default=0, ge=0)
    current_price: Optional[Decimal] = None
    current_updated: Optional[datetime] = None
    last_updated: Optional[datetime] = None

    @field_validator("buy_price", mode="before")
    @classmethod
    def _price_or_zero(cls, v):
        return to_decimal(v)

    @field_validator("quantity", mode="before")
    @classmethod
    def _qty_or_zero(cls, v):
        return 0 if v is None else v


class AggregatedPosition(BaseModel):
    model_config = ConfigDict(frozen=True)

    symbol: str
    asset_class: AssetClass
    total_quantity: int
    weighted_average_cost: Decimal


class Recommendation(BaseModel):
    model_config = ConfigDict(frozen=True)

    symbol: str
    risk_level: RiskLevel
    average_buy_price: Optional[Decimal] = None  # None for market-only candidates
    current_price: Optional[Decimal] = None
    profit_percent: Optional[Decimal] = None
    source: Literal["PORTFOLIO", "MARKET"] = "PORTFOLIO"


class RiskAssessment(BaseModel):
    model_config = ConfigDict(frozen=True)

    action: TradeAction
    symbol: str
    risk_level: RiskLevel
    average_buy_price: Optional[Decimal] = None
    current_price: Optional[Decimal] = None
    percent_difference: Optional[Decimal] = None
    monetary_impact: Optional[Decimal] = None
    requested_quantity: int = Field(ge=0)
    available_quantity: int = Field(ge=0)
    recommendation: str

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_full_sell(self) -> bool:
        return self.requested_quantity >= self.available_quantity

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_high_risk(self) -> bool:
        return self.risk_level == RiskLevel.HIGH


class MarketCandidate(BaseModel):
    """A symbol from a market-wide ranking feed; change_percent None = unknown."""

    model_config = ConfigDict(frozen=True)

    symbol: str
    change_percent: Optional[Decimal] = None
    price: Optional[Decimal] = None
