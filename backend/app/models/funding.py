"""Deposit and withdrawal requests, settled by an admin review."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, String, Numeric, DateTime, ForeignKey

from app.database import Base


class Deposit(Base):
    __tablename__ = "deposits"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    coin = Column(String(10), nullable=False)
    amount = Column(Numeric(28, 8), nullable=False)
    address = Column(String(255), nullable=False)
    status = Column(String(10), nullable=False, default="pending")  # pending | approved | rejected
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    reviewed_at = Column(DateTime(timezone=True), nullable=True)


class Withdrawal(Base):
    __tablename__ = "withdrawals"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    coin = Column(String(10), nullable=False)
    amount = Column(Numeric(28, 8), nullable=False)
    address = Column(String(255), nullable=False)
    network = Column(String(32), nullable=True)
    status = Column(String(10), nullable=False, default="pending")  # pending | approved | rejected
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    reviewed_at = Column(DateTime(timezone=True), nullable=True)
