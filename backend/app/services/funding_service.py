"""Funding service: deposit and withdrawal requests and their admin review.

A request only moves money when an admin approves it. Approval is a
conditional status flip (anything but approved -> approved) in the same
transaction as the balance change, so approving twice changes the balance
once. Approved is final.
"""

import json
import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from app import errors
from app.models.audit_log import AuditLog
from app.models.funding import Deposit, Withdrawal
from app.services import coin_service, user_service
from app.trade_math import SATOSHI, WALLET_COINS, quantize, to_decimal

logger = logging.getLogger(__name__)

PENDING = "pending"
APPROVED = "approved"
REJECTED = "rejected"
REQUEST_STATUSES = (PENDING, APPROVED, REJECTED)

# Largest amount a Numeric(28, 8) column holds with room to spare
MAX_REQUEST_AMOUNT = Decimal("1e15")


def _validate_request(db: Session, user_id, coin, amount, address):
    missing = [
        name
        for name, value in (("user_id", user_id), ("coin", coin), ("amount", amount), ("address", address))
        if value in (None, "")
    ]
    if missing:
        raise errors.missing_fields(missing)

    coin = str(coin).strip().upper()
    if coin not in WALLET_COINS:
        raise errors.unsupported_symbol(coin)
    try:
        amount = to_decimal(amount)
    except ValueError:
        raise errors.invalid_number("amount", amount)
    if amount <= 0 or amount > MAX_REQUEST_AMOUNT:
        raise errors.invalid_number("amount", amount)
    if not user_service.get_user(db, user_id):
        raise errors.user_not_found(user_id)
    return coin, amount


def create_deposit(db: Session, user_id: str, coin: str, amount, address: str) -> Deposit:
    """File a pending deposit. The balance is untouched until approval."""
    coin, amount = _validate_request(db, user_id, coin, amount, address)
    deposit = Deposit(
        user_id=user_id,
        coin=coin,
        amount=quantize(amount, SATOSHI),
        address=address,
        status=PENDING,
    )
    db.add(deposit)
    db.commit()
    db.refresh(deposit)
    logger.info("Deposit %s requested: user=%s %s %s", deposit.id, user_id, deposit.amount, coin)
    return deposit


def create_withdrawal(
    db: Session,
    user_id: str,
    coin: str,
    amount,
    address: str,
    network: Optional[str] = None,
) -> Withdrawal:
    """File a pending withdrawal. The balance must cover it now and again at approval."""
    coin, amount = _validate_request(db, user_id, coin, amount, address)
    if coin_service.get_balance(db, user_id, coin) < amount:
        raise errors.insufficient_balance(coin)

    withdrawal = Withdrawal(
        user_id=user_id,
        coin=coin,
        amount=quantize(amount, SATOSHI),
        address=address,
        network=network or None,
        status=PENDING,
    )
    db.add(withdrawal)
    db.commit()
    db.refresh(withdrawal)
    logger.info("Withdrawal %s requested: user=%s %s %s", withdrawal.id, user_id, withdrawal.amount, coin)
    return withdrawal


def get_user_deposits(db: Session, user_id: str, limit: int = 100) -> list[Deposit]:
    return (
        db.query(Deposit)
        .filter(Deposit.user_id == user_id)
        .order_by(Deposit.created_at.desc())
        .limit(limit)
        .all()
    )


def get_user_withdrawals(db: Session, user_id: str, limit: int = 100) -> list[Withdrawal]:
    return (
        db.query(Withdrawal)
        .filter(Withdrawal.user_id == user_id)
        .order_by(Withdrawal.created_at.desc())
        .limit(limit)
        .all()
    )


def _review(db: Session, model, kind: str, request_id: str, status: str, actor_id: Optional[str], on_approve):
    """Move a request to `status`; returns (request, balance_changed).

    `on_approve` applies the balance change inside the same transaction and
    returns False to abort the approval.
    """
    if status not in REQUEST_STATUSES:
        raise errors.invalid_status(status)
    request = db.query(model).filter(model.id == request_id).first()
    if not request:
        raise errors.request_not_found(kind, request_id)
    old = request.status

    try:
        flipped = (
            db.query(model)
            .filter(model.id == request_id, model.status != APPROVED)
            .update(
                {model.status: status, model.reviewed_at: datetime.now(timezone.utc)},
                synchronize_session=False,
            )
        )
        if not flipped:
            db.rollback()
            if status == APPROVED:
                db.refresh(request)
                return request, False
            raise errors.request_finalized(kind, request_id)

        changed = False
        if status == APPROVED:
            if not on_approve(request):
                raise errors.insufficient_balance(request.coin)
            changed = True

        db.add(AuditLog(
            entity_type=kind,
            entity_id=request_id,
            action=f"{kind}_{status}",
            actor_id=actor_id,
            old_data=json.dumps({"status": old}),
            new_data=json.dumps({"status": status}),
        ))
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(request)
    logger.info("%s %s: %s -> %s (by %s)", kind.capitalize(), request_id, old, status, actor_id)
    return request, changed


def set_deposit_status(db: Session, deposit_id: str, status: str, actor_id: Optional[str] = None):
    """Approve, reject or reopen a deposit; approval credits the coin."""

    def credit(deposit: Deposit) -> bool:
        coin_service.credit(db, deposit.user_id, deposit.amount, deposit.coin)
        return True

    return _review(db, Deposit, "deposit", deposit_id, status, actor_id, credit)


def set_withdrawal_status(db: Session, withdrawal_id: str, status: str, actor_id: Optional[str] = None):
    """Approve, reject or reopen a withdrawal; approval debits the coin if it still can."""

    def debit(withdrawal: Withdrawal) -> bool:
        return coin_service.debit(db, withdrawal.user_id, withdrawal.amount, withdrawal.coin)

    return _review(db, Withdrawal, "withdrawal", withdrawal_id, status, actor_id, debit)
