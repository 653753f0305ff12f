"""User service: account rows and their starting wallets."""

import logging
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from app.config import settings
from app.models.balance import Balance
from app.models.user import User
from app.trade_math import WALLET_COINS

logger = logging.getLogger(__name__)

# Pre-seeded accounts for local demos, created on startup when enabled.
DEMO_ACCOUNTS = [
    {"username": "demo1", "email": "demo1@novachain.local"},
    {"username": "demo2", "email": "demo2@novachain.local"},
]


def get_user(db: Session, user_id: str) -> Optional[User]:
    return db.query(User).filter(User.id == user_id).first()


def create_user(db: Session, username: str, email: str, starting_usdt=0) -> User:
    """Create a user with a zero balance row for every wallet coin."""
    user = User(username=username, email=email)
    db.add(user)
    db.flush()
    for coin in WALLET_COINS:
        opening = Decimal(str(starting_usdt)) if coin == settings.SETTLEMENT_CURRENCY else Decimal("0")
        db.add(Balance(user_id=user.id, coin=coin, balance=opening))
    db.commit()
    db.refresh(user)
    return user


def seed_demo_accounts(db: Session) -> list[User]:
    """Get or create the demo accounts."""
    users = []
    for account in DEMO_ACCOUNTS:
        user = db.query(User).filter(User.email == account["email"]).first()
        if not user:
            user = create_user(db, account["username"], account["email"], settings.DEMO_STARTING_USDT)
            logger.info("Seeded demo account %s (%s)", user.username, user.id)
        users.append(user)
    return users
