from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from schemas.assets import AssetClass


class AssetCreate(BaseModel):
    asset_type: AssetClass
    symbol: str = Field(min_length=1, max_length=32)
    name: Optional[str] = Field(default=None, max_length=120)
    buy_price: Decimal = Field(ge=0)
    qty: int = Field(ge=0)

    @field_validator("symbol")
    @classmethod
    def _strip_symbol(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("symbol must not be blank")
        return v


class OrderRequest(BaseModel):
    symbol: str = Field(min_length=1, max_length=32)
    quantity: int = Field(ge=0)
    asset_type: Optional[AssetClass] = None  # only consulted for buys of unheld symbols
