"""Funding router: deposit and withdrawal requests plus their admin review."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.database import get_db
from app.errors import TradeError
from app.middleware.auth import require_admin
from app.schemas.funding import (
    DepositRequest,
    FundingResponse,
    FundingStatusRequest,
    FundingStatusResponse,
    WithdrawalRequest,
)
from app.services import funding_service

router = APIRouter(prefix="/api", tags=["funding"])


@router.post("/deposits", response_model=FundingResponse)
def request_deposit(req: DepositRequest, db: Session = Depends(get_db)):
    """File a deposit; the balance is credited once an admin approves it."""
    try:
        return funding_service.create_deposit(db, req.user_id, req.coin, req.amount, req.address)
    except TradeError as e:
        raise HTTPException(status_code=e.status_code, detail=e.as_detail())


@router.get("/deposits/history/{user_id}", response_model=list[FundingResponse])
def deposit_history(user_id: str, db: Session = Depends(get_db)):
    return funding_service.get_user_deposits(db, user_id)


@router.post("/withdrawals", response_model=FundingResponse)
def request_withdrawal(req: WithdrawalRequest, db: Session = Depends(get_db)):
    """File a withdrawal; the balance is debited once an admin approves it."""
    try:
        return funding_service.create_withdrawal(
            db, req.user_id, req.coin, req.amount, req.address, network=req.network
        )
    except TradeError as e:
        raise HTTPException(status_code=e.status_code, detail=e.as_detail())


@router.get("/withdrawals/history/{user_id}", response_model=list[FundingResponse])
def withdrawal_history(user_id: str, db: Session = Depends(get_db)):
    return funding_service.get_user_withdrawals(db, user_id)


@router.post("/admin/deposits/{deposit_id}/status", response_model=FundingStatusResponse)
def review_deposit(
    deposit_id: str,
    req: FundingStatusRequest,
    db: Session = Depends(get_db),
    admin: dict = Depends(require_admin),
):
    try:
        deposit, changed = funding_service.set_deposit_status(db, deposit_id, req.status, actor_id=admin["sub"])
    except TradeError as e:
        raise HTTPException(status_code=e.status_code, detail=e.as_detail())
    return FundingStatusResponse(id=deposit.id, status=deposit.status, balance_changed=changed)


@router.post("/admin/withdrawals/{withdrawal_id}/status", response_model=FundingStatusResponse)
def review_withdrawal(
    withdrawal_id: str,
    req: FundingStatusRequest,
    db: Session = Depends(get_db),
    admin: dict = Depends(require_admin),
):
    try:
        withdrawal, changed = funding_service.set_withdrawal_status(
            db, withdrawal_id, req.status, actor_id=admin["sub"]
        )
    except TradeError as e:
        raise HTTPException(status_code=e.status_code, detail=e.as_detail())
    return FundingStatusResponse(id=withdrawal.id, status=withdrawal.status, balance_changed=changed)
