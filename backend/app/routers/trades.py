"""Trades router: open timed trades and read their history."""

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from app.config import settings
from app.database import get_db
from app.errors import TradeError
from app.middleware.rate_limit import limiter
from app.schemas.trade import TradeOpenRequest, TradeOpenResponse, TradeResponse
from app.services import trade_service
from app.services.price_service import get_price_oracle
from app.services.settlement_scheduler import get_scheduler

router = APIRouter(prefix="/api/trade", tags=["trades"])


@router.post("", response_model=TradeOpenResponse)
@limiter.limit(settings.TRADE_RATE_LIMIT)
def open_trade(
    request: Request,
    req: TradeOpenRequest,
    db: Session = Depends(get_db),
    oracle=Depends(get_price_oracle),
    scheduler=Depends(get_scheduler),
):
    """Stake an amount on a coin's direction; the result arrives after `duration` seconds."""
    try:
        result = trade_service.open_trade(
            db,
            oracle,
            scheduler,
            user_id=req.user_id,
            symbol=req.symbol,
            direction=req.direction,
            amount=req.amount,
            duration=req.duration,
        )
        return TradeOpenResponse(**result)
    except TradeError as e:
        raise HTTPException(status_code=e.status_code, detail=e.as_detail())


@router.get("/history/{user_id}", response_model=list[TradeResponse])
def trade_history(user_id: str, db: Session = Depends(get_db)):
    """All trades of a user, newest first."""
    return trade_service.get_user_trades(db, user_id)


@router.get("/{trade_id}", response_model=TradeResponse)
def get_trade(trade_id: str, db: Session = Depends(get_db)):
    try:
        return trade_service.get_trade(db, trade_id)
    except TradeError as e:
        raise HTTPException(status_code=e.status_code, detail=e.as_detail())
