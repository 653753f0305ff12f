"""Conversion model: record of a USDT <-> coin swap."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, String, Numeric, DateTime, ForeignKey

from app.database import Base


class Conversion(Base):
    __tablename__ = "conversions"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    from_coin = Column(String(10), nullable=False)
    to_coin = Column(String(10), nullable=False)
    amount = Column(Numeric(28, 8), nullable=False)
    received = Column(Numeric(28, 8), nullable=False)
    rate = Column(Numeric(28, 8), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
