from datetime import datetime
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict


class AssetOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    asset_type: str
    symbol: str
    name: Optional[str] = None
    buy_price: Optional[Decimal] = None
    qty: Optional[int] = None
    current_price: Optional[Decimal] = None
    current_updated: Optional[datetime] = None
    selling_price: Optional[Decimal] = None
    selling_date: Optional[datetime] = None
    last_updated: Optional[datetime] = None


class DashboardAsset(BaseModel):
    id: Optional[int] = None
    type: str
    symbol: str
    name: Optional[str] = None
    buy_price: Decimal
    qty: int
    current_price: Optional[Decimal] = None
    current_date: datetime
    difference: Optional[Decimal] = None
    percent: Optional[Decimal] = None
    status: Optional[Literal["PROFIT", "LOSS"]] = None
    price_status: Literal["live", "fallback", "unavailable"]


class ReportLine(BaseModel):
    symbol: str
    asset_type: str
    current_value: Decimal
    profit_percent: Decimal


class WeeklyReport(BaseModel):
    generated_at: datetime
    total_assets: int
    total_value: Decimal
    average_profit_percent: Optional[Decimal] = None
    lines: List[ReportLine]
    text: str
