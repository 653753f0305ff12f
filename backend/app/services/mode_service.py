"""Mode service: resolves which outcome bias applies to a user's trades.

Precedence: per-user override (WIN | LOSE), then the global TRADE_MODE
setting (AUTO | ALL_WIN | ALL_LOSE), then AUTO.
"""

import json
import logging
from typing import Optional

from sqlalchemy.orm import Session

from app import errors
from app.models.audit_log import AuditLog
from app.models.setting import Setting, UserTradeMode
from app.services import user_service
from app.trade_math import DEFAULT_MODE, GLOBAL_MODES, USER_MODES

logger = logging.getLogger(__name__)

TRADE_MODE_KEY = "TRADE_MODE"


def get_global_mode(db: Session) -> str:
    value = db.query(Setting.value).filter(Setting.key == TRADE_MODE_KEY).scalar()
    return value or DEFAULT_MODE


def get_user_override(db: Session, user_id: str) -> Optional[str]:
    return db.query(UserTradeMode.mode).filter(UserTradeMode.user_id == user_id).scalar()


def resolve(db: Session, user_id: str) -> str:
    """Effective mode for the user's next settlement."""
    return get_user_override(db, user_id) or get_global_mode(db)


def set_global_mode(db: Session, mode: str, actor_id: Optional[str] = None) -> str:
    """Upsert the global mode. Setting the current value again is a no-op change."""
    if mode not in GLOBAL_MODES:
        raise errors.invalid_mode(mode)

    setting = db.query(Setting).filter(Setting.key == TRADE_MODE_KEY).first()
    old = setting.value if setting else None
    if setting:
        setting.value = mode
    else:
        db.add(Setting(key=TRADE_MODE_KEY, value=mode))

    db.add(AuditLog(
        entity_type="setting",
        entity_id=TRADE_MODE_KEY,
        action="mode_changed",
        actor_id=actor_id,
        old_data=json.dumps({"mode": old}),
        new_data=json.dumps({"mode": mode}),
    ))
    db.commit()
    logger.info("Global trade mode %s -> %s (by %s)", old or DEFAULT_MODE, mode, actor_id)
    return mode


def set_user_override(db: Session, user_id: str, mode: Optional[str], actor_id: Optional[str] = None) -> Optional[str]:
    """Set (WIN | LOSE) or clear (None | "") a user's override."""
    if mode not in USER_MODES and mode not in (None, ""):
        raise errors.invalid_mode(mode)
    if not user_service.get_user(db, user_id):
        raise errors.user_not_found(user_id)

    row = db.query(UserTradeMode).filter(UserTradeMode.user_id == user_id).first()
    old = row.mode if row else None
    if mode:
        if row:
            row.mode = mode
        else:
            db.add(UserTradeMode(user_id=user_id, mode=mode))
        action = "override_set"
    else:
        if row:
            db.delete(row)
        mode = None
        action = "override_cleared"

    db.add(AuditLog(
        entity_type="user_trade_mode",
        entity_id=user_id,
        action=action,
        actor_id=actor_id,
        old_data=json.dumps({"mode": old}),
        new_data=json.dumps({"mode": mode}),
    ))
    db.commit()
    logger.info("Trade mode override for user %s: %s -> %s (by %s)", user_id, old, mode, actor_id)
    return mode
