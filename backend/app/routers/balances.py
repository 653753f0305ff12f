"""Balances router: wallet assets, balance history and conversions."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.database import get_db
from app.errors import TradeError
from app.schemas.balance import (
    BalanceResponse,
    BalanceSnapshotResponse,
    ConvertRequest,
    ConvertResponse,
)
from app.services import coin_service
from app.services.price_service import get_price_oracle

router = APIRouter(prefix="/api", tags=["balances"])


@router.get("/balance/{user_id}", response_model=BalanceResponse)
def get_balance(user_id: str, db: Session = Depends(get_db)):
    """Every wallet coin with its balance, zero-filled."""
    try:
        return coin_service.get_assets(db, user_id)
    except TradeError as e:
        raise HTTPException(status_code=e.status_code, detail=e.as_detail())


@router.get("/balance/{user_id}/history", response_model=list[BalanceSnapshotResponse])
def get_balance_history(
    user_id: str,
    coin: Optional[str] = Query(None),
    limit: int = Query(100, ge=1, le=1000),
    db: Session = Depends(get_db),
):
    return coin_service.get_history(db, user_id, coin=coin.upper() if coin else None, limit=limit)


@router.post("/convert", response_model=ConvertResponse)
def convert(
    req: ConvertRequest,
    db: Session = Depends(get_db),
    oracle=Depends(get_price_oracle),
):
    """Swap USDT for a coin or a coin for USDT."""
    try:
        conversion = coin_service.convert(db, oracle, req.user_id, req.from_coin, req.to_coin, req.amount)
    except TradeError as e:
        raise HTTPException(status_code=e.status_code, detail=e.as_detail())
    return ConvertResponse(
        id=conversion.id,
        from_coin=conversion.from_coin,
        to_coin=conversion.to_coin,
        amount=conversion.amount,
        received=conversion.received,
        rate=conversion.rate,
    )
