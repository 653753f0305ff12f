"""Admin router: global and per-user trade outcome modes."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.database import get_db
from app.errors import TradeError
from app.middleware.auth import require_admin
from app.schemas.admin import GlobalModeRequest, GlobalModeResponse, UserModeRequest, UserModeResponse
from app.services import mode_service

router = APIRouter(prefix="/api/admin", tags=["admin"])


@router.post("/trade-mode", response_model=GlobalModeResponse)
def set_trade_mode(
    req: GlobalModeRequest,
    db: Session = Depends(get_db),
    admin: dict = Depends(require_admin),
):
    """Set the global mode: AUTO, ALL_WIN or ALL_LOSE."""
    try:
        mode = mode_service.set_global_mode(db, req.mode, actor_id=admin["sub"])
        return GlobalModeResponse(mode=mode)
    except TradeError as e:
        raise HTTPException(status_code=e.status_code, detail=e.as_detail())


@router.get("/trade-mode", response_model=GlobalModeResponse)
def get_trade_mode(db: Session = Depends(get_db), admin: dict = Depends(require_admin)):
    return GlobalModeResponse(mode=mode_service.get_global_mode(db))


@router.post("/users/{user_id}/trade-mode", response_model=UserModeResponse)
def set_user_trade_mode(
    user_id: str,
    req: UserModeRequest,
    db: Session = Depends(get_db),
    admin: dict = Depends(require_admin),
):
    """Force WIN or LOSE for one user; null or empty clears the override."""
    try:
        mode = mode_service.set_user_override(db, user_id, req.mode, actor_id=admin["sub"])
        return UserModeResponse(user_id=user_id, mode=mode, removed=mode is None)
    except TradeError as e:
        raise HTTPException(status_code=e.status_code, detail=e.as_detail())


@router.get("/users/{user_id}/trade-mode", response_model=UserModeResponse)
def get_user_trade_mode(
    user_id: str,
    db: Session = Depends(get_db),
    admin: dict = Depends(require_admin),
):
    return UserModeResponse(user_id=user_id, mode=mode_service.get_user_override(db, user_id))
