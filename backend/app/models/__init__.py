"""SQLAlchemy ORM models."""

from app.models.user import User
from app.models.balance import Balance, BalanceSnapshot
from app.models.trade import Trade
from app.models.setting import Setting, UserTradeMode
from app.models.conversion import Conversion
from app.models.funding import Deposit, Withdrawal
from app.models.audit_log import AuditLog

__all__ = [
    "User",
    "Balance",
    "BalanceSnapshot",
    "Trade",
    "Setting",
    "UserTradeMode",
    "Conversion",
    "Deposit",
    "Withdrawal",
    "AuditLog",
]
