"""Deposit and withdrawal schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel


class DepositRequest(BaseModel):
    user_id: Optional[str] = None
    coin: Optional[str] = None
    amount: Optional[Decimal] = None
    address: Optional[str] = None


class WithdrawalRequest(DepositRequest):
    network: Optional[str] = None


class FundingResponse(BaseModel):
    id: str
    user_id: str
    coin: str
    amount: Decimal
    address: str
    network: Optional[str] = None
    status: str
    created_at: datetime
    reviewed_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class FundingStatusRequest(BaseModel):
    status: str  # pending | approved | rejected


class FundingStatusResponse(BaseModel):
    success: bool = True
    id: str
    status: str
    balance_changed: bool
