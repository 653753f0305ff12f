"""Trade request/response schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field


class TradeOpenRequest(BaseModel):
    # Presence is checked by the trade service so clients get `missing_fields`
    user_id: Optional[str] = Field(None, alias="userId")
    symbol: Optional[str] = None
    direction: Optional[str] = None
    amount: Optional[Decimal] = None
    duration: Optional[float] = None

    class Config:
        populate_by_name = True


class TradeOpenResponse(BaseModel):
    status: str = "pending"
    trade_id: str
    entry_price: Decimal
    symbol: str
    direction: str
    amount: Decimal
    duration: int
    due_at: datetime
    message: str


class TradeResponse(BaseModel):
    id: str
    user_id: str
    symbol: str
    direction: str
    amount: Decimal
    duration: int
    entry_price: Decimal
    result: str
    profit: Decimal
    result_price: Optional[Decimal] = None
    created_at: datetime
    due_at: datetime
    settled_at: Optional[datetime] = None

    class Config:
        from_attributes = True
