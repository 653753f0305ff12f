"""Per-coin balances and the append-only balance history."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, String, Numeric, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship

from app.database import Base


class Balance(Base):
    __tablename__ = "user_balances"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    coin = Column(String(10), nullable=False)
    balance = Column(Numeric(28, 8), nullable=False, default=0)

    __table_args__ = (
        UniqueConstraint("user_id", "coin", name="uq_user_coin"),
    )

    # Relationships
    user = relationship("User", back_populates="balances")


class BalanceSnapshot(Base):
    __tablename__ = "balance_history"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    coin = Column(String(10), nullable=False)
    balance = Column(Numeric(28, 8), nullable=False)
    price_usd = Column(Numeric(28, 8), nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
