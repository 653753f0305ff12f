"""Coin service: the per-user, per-coin balance ledger.

Balance changes are single conditional UPDATE statements so that concurrent
trades of one user never lose an update. Nothing here commits; callers own
the transaction.
"""

import logging
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from app import errors
from app.config import settings
from app.models.balance import Balance, BalanceSnapshot
from app.models.conversion import Conversion
from app.services import user_service
from app.trade_math import SATOSHI, WALLET_COINS, quantize, to_decimal

logger = logging.getLogger(__name__)


def get_balance(db: Session, user_id: str, coin: Optional[str] = None) -> Decimal:
    """Current balance of one coin, zero when the user holds none."""
    coin = coin or settings.SETTLEMENT_CURRENCY
    value = (
        db.query(Balance.balance)
        .filter(Balance.user_id == user_id, Balance.coin == coin)
        .scalar()
    )
    return Decimal(str(value)) if value is not None else Decimal("0")


def get_assets(db: Session, user_id: str) -> dict:
    """Every wallet coin with its balance, zero-filled."""
    if not user_service.get_user(db, user_id):
        raise errors.user_not_found(user_id)
    rows = dict(
        db.query(Balance.coin, Balance.balance).filter(Balance.user_id == user_id).all()
    )
    assets = [
        {"symbol": coin, "balance": Decimal(str(rows.get(coin, 0)))}
        for coin in WALLET_COINS
    ]
    total_usd = assets[0]["balance"]
    return {"total_usd": total_usd, "assets": assets}


def debit(db: Session, user_id: str, amount: Decimal, coin: Optional[str] = None) -> bool:
    """Atomically subtract `amount`; False when the balance cannot cover it."""
    coin = coin or settings.SETTLEMENT_CURRENCY
    updated = (
        db.query(Balance)
        .filter(Balance.user_id == user_id, Balance.coin == coin, Balance.balance >= amount)
        .update({Balance.balance: Balance.balance - amount}, synchronize_session=False)
    )
    return updated == 1


def credit(db: Session, user_id: str, amount: Decimal, coin: Optional[str] = None) -> None:
    """Atomically add `amount`, creating the balance row when missing."""
    coin = coin or settings.SETTLEMENT_CURRENCY
    updated = (
        db.query(Balance)
        .filter(Balance.user_id == user_id, Balance.coin == coin)
        .update({Balance.balance: Balance.balance + amount}, synchronize_session=False)
    )
    if not updated:
        db.add(Balance(user_id=user_id, coin=coin, balance=amount))
        db.flush()


def snapshot(
    db: Session,
    user_id: str,
    coin: Optional[str] = None,
    price_usd: Decimal = Decimal("1"),
) -> Decimal:
    """Append the current balance to the history and return it."""
    coin = coin or settings.SETTLEMENT_CURRENCY
    balance = get_balance(db, user_id, coin)
    db.add(BalanceSnapshot(user_id=user_id, coin=coin, balance=balance, price_usd=price_usd))
    return balance


def get_history(db: Session, user_id: str, coin: Optional[str] = None, limit: int = 100) -> list[BalanceSnapshot]:
    """Balance snapshots for a user, newest first."""
    query = db.query(BalanceSnapshot).filter(BalanceSnapshot.user_id == user_id)
    if coin:
        query = query.filter(BalanceSnapshot.coin == coin)
    return query.order_by(BalanceSnapshot.created_at.desc()).limit(limit).all()


def convert(
    db: Session,
    oracle,
    user_id: str,
    from_coin: str,
    to_coin: str,
    amount: Decimal,
) -> Conversion:
    """Swap USDT for a coin or a coin for USDT at the oracle rate.

    Steps:
    1. Validate the pair, the amount and the source balance
    2. Price the non-USDT leg
    3. Conditional debit of the source coin
    4. Credit the target coin and record the conversion
    All within a single DB transaction.
    """
    base = settings.SETTLEMENT_CURRENCY
    from_coin = (from_coin or "").upper()
    to_coin = (to_coin or "").upper()
    if from_coin not in WALLET_COINS or to_coin not in WALLET_COINS:
        raise errors.invalid_conversion("Invalid coin")
    if from_coin == to_coin:
        raise errors.invalid_conversion("Cannot convert to same coin")
    if base not in (from_coin, to_coin):
        raise errors.invalid_conversion(f"Only {base} to coin or coin to {base} swaps allowed")
    try:
        amount = to_decimal(amount)
    except ValueError:
        raise errors.invalid_number("amount", amount)
    if amount <= 0:
        raise errors.invalid_conversion("Amount must be positive")
    if not user_service.get_user(db, user_id):
        raise errors.user_not_found(user_id)
    if get_balance(db, user_id, from_coin) < amount:
        raise errors.insufficient_balance(from_coin)

    if from_coin == base:
        rate = oracle.get_spot_price(to_coin)
        received = amount / rate
    else:
        rate = oracle.get_spot_price(from_coin)
        received = amount * rate
    received = quantize(received, SATOSHI)

    try:
        if not debit(db, user_id, amount, from_coin):
            raise errors.insufficient_balance(from_coin)
        credit(db, user_id, received, to_coin)
        conversion = Conversion(
            user_id=user_id,
            from_coin=from_coin,
            to_coin=to_coin,
            amount=amount,
            received=received,
            rate=rate,
        )
        db.add(conversion)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(conversion)
    logger.info("Converted %s %s -> %s %s for user %s", amount, from_coin, received, to_coin, user_id)
    return conversion
