"""Balance, history, conversion and price schemas."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel


class AssetResponse(BaseModel):
    symbol: str
    balance: Decimal


class BalanceResponse(BaseModel):
    total_usd: Decimal
    assets: list[AssetResponse]


class BalanceSnapshotResponse(BaseModel):
    coin: str
    balance: Decimal
    price_usd: Decimal
    created_at: datetime

    class Config:
        from_attributes = True


class ConvertRequest(BaseModel):
    user_id: str
    from_coin: str
    to_coin: str
    amount: Decimal


class ConvertResponse(BaseModel):
    success: bool = True
    id: str
    from_coin: str
    to_coin: str
    amount: Decimal
    received: Decimal
    rate: Decimal


class PriceResponse(BaseModel):
    symbol: str
    price: Decimal
    source: str


class PricesResponse(BaseModel):
    prices: dict[str, Decimal]
    sources: dict[str, str]
