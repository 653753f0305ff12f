"""Audit log model: immutable record of every admin action."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, String, DateTime, Text

from app.database import Base


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    entity_type = Column(String(50), nullable=False)  # setting | user_trade_mode
    entity_id = Column(String(64), nullable=False)
    action = Column(String(50), nullable=False)  # mode_changed | override_set | override_cleared
    actor_id = Column(String(64), nullable=True)  # token subject, not necessarily a local user
    old_data = Column(Text, nullable=True)   # JSON string
    new_data = Column(Text, nullable=True)   # JSON string
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
