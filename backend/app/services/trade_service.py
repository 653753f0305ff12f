"""Trade service: opens timed trades and settles them when they fall due."""

import logging
import random
from datetime import datetime, timezone, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from app import errors
from app.config import settings
from app.models.trade import Trade
from app.services import coin_service, mode_service, user_service
from app.trade_math import (
    SUPPORTED_COINS,
    PENDING,
    WIN,
    clamp_duration,
    decide_result,
    normalize_amount,
    normalize_direction,
    payout_pct,
    profit_for,
    synthesize_settlement_price,
)

logger = logging.getLogger(__name__)

_rng = random.SystemRandom()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def open_trade(
    db: Session,
    oracle,
    scheduler,
    user_id: Optional[str],
    symbol: Optional[str],
    direction: Optional[str],
    amount,
    duration,
) -> dict:
    """Validate a stake, debit it and schedule the settlement.

    Steps:
    1. Reject missing fields, unsupported coins, unknown users, short balances
    2. Fetch the entry price (live, else the fallback table)
    3. Conditionally debit the stake and insert the PENDING trade
    4. Commit, then arm the settlement timer for due_at
    Nothing is written unless every check passes.
    """
    missing = [
        name
        for name, value in (("user_id", user_id), ("direction", direction), ("amount", amount), ("duration", duration))
        if value in (None, "")
    ]
    if missing:
        raise errors.missing_fields(missing)

    symbol = (symbol or "BTC").strip().upper()
    if symbol not in SUPPORTED_COINS:
        raise errors.unsupported_symbol(symbol)

    direction = normalize_direction(direction)
    try:
        amount = normalize_amount(amount)
    except ValueError:
        raise errors.invalid_number("amount", amount)
    try:
        duration = clamp_duration(duration)
    except ValueError:
        raise errors.invalid_number("duration", duration)
    currency = settings.SETTLEMENT_CURRENCY

    user = user_service.get_user(db, user_id)
    if not user:
        raise errors.user_not_found(user_id)
    if coin_service.get_balance(db, user.id, currency) < amount:
        raise errors.insufficient_balance(currency)

    # I/O happens before any write so no transaction spans the oracle call
    entry_price = oracle.get_spot_price(symbol)

    created_at = _utcnow()
    try:
        if not coin_service.debit(db, user.id, amount, currency):
            raise errors.insufficient_balance(currency)
        trade = Trade(
            user_id=user.id,
            symbol=symbol,
            direction=direction,
            amount=amount,
            duration=duration,
            entry_price=entry_price,
            result=PENDING,
            profit=0,
            result_price=None,
            created_at=created_at,
            due_at=created_at + timedelta(seconds=duration),
        )
        db.add(trade)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(trade)

    scheduler.schedule(trade.id, trade.due_at)
    logger.info(
        "Opened trade %s: user=%s %s %s amount=%s duration=%ss entry=%s",
        trade.id, user.id, direction, symbol, amount, duration, entry_price,
    )

    return {
        "status": "pending",
        "trade_id": trade.id,
        "entry_price": trade.entry_price,
        "symbol": symbol,
        "direction": direction,
        "amount": amount,
        "duration": duration,
        "due_at": trade.due_at,
        "message": "Trade started! Wait for countdown...",
    }


def settle_trade(db: Session, trade_id: str, rng: Optional[random.Random] = None) -> Optional[Trade]:
    """Decide and commit the outcome of a PENDING trade.

    Only the scheduler calls this. The PENDING -> WIN|LOSE flip is a
    conditional UPDATE, so a second call (retry, sweep, another worker) finds
    no PENDING row and changes nothing. Persistence errors propagate to the
    caller after rollback.
    """
    rng = rng or _rng
    trade = db.query(Trade).filter(Trade.id == trade_id).first()
    if not trade:
        logger.error("Settlement skipped, trade %s not found", trade_id)
        return None
    if trade.result != PENDING:
        logger.debug("Trade %s already settled as %s", trade_id, trade.result)
        return trade

    try:
        mode = mode_service.resolve(db, trade.user_id)
        pct = payout_pct(trade.duration)
        result = decide_result(mode, rng)
        profit = profit_for(result, trade.amount, pct)
        result_price = synthesize_settlement_price(
            trade.entry_price, trade.direction, result, trade.symbol, rng
        )

        flipped = (
            db.query(Trade)
            .filter(Trade.id == trade_id, Trade.result == PENDING)
            .update(
                {
                    Trade.result: result,
                    Trade.profit: profit,
                    Trade.result_price: result_price,
                    Trade.settled_at: _utcnow(),
                },
                synchronize_session=False,
            )
        )
        if not flipped:
            db.rollback()
            logger.info("Trade %s was settled concurrently, nothing to do", trade_id)
            db.refresh(trade)
            return trade

        if result == WIN:
            coin_service.credit(db, trade.user_id, trade.amount + profit)
        balance = coin_service.snapshot(db, trade.user_id)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(trade)
    logger.info(
        "Settled trade %s: mode=%s result=%s pct=%s profit=%s balance=%s",
        trade_id, mode, result, pct, profit, balance,
    )
    return trade


def get_trade(db: Session, trade_id: str) -> Trade:
    trade = db.query(Trade).filter(Trade.id == trade_id).first()
    if not trade:
        raise errors.trade_not_found(trade_id)
    return trade


def get_user_trades(db: Session, user_id: str, limit: int = 200) -> list[Trade]:
    """All trades for a user, newest first, pending ones included."""
    return (
        db.query(Trade)
        .filter(Trade.user_id == user_id)
        .order_by(Trade.created_at.desc())
        .limit(limit)
        .all()
    )


def get_pending_trades(db: Session) -> list[tuple[str, datetime]]:
    """(trade_id, due_at) of every unsettled trade, earliest due first."""
    return [
        (row.id, row.due_at)
        for row in db.query(Trade.id, Trade.due_at)
        .filter(Trade.result == PENDING)
        .order_by(Trade.due_at.asc())
        .all()
    ]
