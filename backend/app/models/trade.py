"""Trade model: one stake-and-settle cycle, never deleted."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, String, Numeric, Integer, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship

from app.database import Base


class Trade(Base):
    __tablename__ = "trades"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    symbol = Column(String(10), nullable=False)
    direction = Column(String(4), nullable=False)  # BUY | SELL
    amount = Column(Numeric(20, 2), nullable=False)
    duration = Column(Integer, nullable=False)  # seconds
    entry_price = Column(Numeric(28, 8), nullable=False)
    result = Column(String(10), nullable=False, default="PENDING")  # PENDING | WIN | LOSE
    profit = Column(Numeric(20, 2), nullable=False, default=0)
    result_price = Column(Numeric(28, 8), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    due_at = Column(DateTime(timezone=True), nullable=False)
    settled_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("ix_trades_result_due_at", "result", "due_at"),
    )

    # Relationships
    user = relationship("User", back_populates="trades")
