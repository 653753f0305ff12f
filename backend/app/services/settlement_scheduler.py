"""Settlement scheduler: fires each trade's settlement once it falls due.

Every PENDING trade carries a persisted due_at, so timers are only a
latency optimisation: on startup and on every sweep the scheduler re-arms
whatever is still PENDING in the database. Restarting the process never
strands a trade.
"""

import logging
import threading
from datetime import datetime, timezone
from typing import Callable, Optional

from sqlalchemy.exc import SQLAlchemyError

from app.config import settings
from app.services import trade_service

logger = logging.getLogger(__name__)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def seconds_until(due_at: datetime, now: Optional[datetime] = None) -> float:
    """Delay before due_at, never negative."""
    now = now or datetime.now(timezone.utc)
    return max(0.0, (_as_utc(due_at) - now).total_seconds())


class SettlementScheduler:
    """Single-shot daemon timers keyed by trade id, plus a recovery sweep."""

    def __init__(
        self,
        session_factory: Callable,
        max_attempts: int = settings.SETTLEMENT_MAX_ATTEMPTS,
        retry_delay: float = settings.SETTLEMENT_RETRY_DELAY_SECONDS,
        sweep_interval: float = settings.SETTLEMENT_SWEEP_INTERVAL_SECONDS,
    ):
        self.session_factory = session_factory
        self.max_attempts = max_attempts
        self.retry_delay = retry_delay
        self.sweep_interval = sweep_interval
        self._timers: dict[str, threading.Timer] = {}
        self._lock = threading.Lock()
        self._stop = threading.Event()
        self._sweeper: Optional[threading.Thread] = None

    @property
    def in_flight(self) -> int:
        with self._lock:
            return len(self._timers)

    def schedule(self, trade_id: str, due_at: datetime, attempt: int = 1) -> bool:
        """Arm a timer for the trade. Returns False if one is already armed."""
        delay = seconds_until(due_at)
        return self._arm(trade_id, delay, attempt)

    def _arm(self, trade_id: str, delay: float, attempt: int) -> bool:
        with self._lock:
            if trade_id in self._timers or self._stop.is_set():
                return False
            timer = threading.Timer(delay, self._fire, args=(trade_id, attempt))
            timer.daemon = True
            self._timers[trade_id] = timer
        timer.start()
        logger.debug("Settlement for trade %s armed in %.1fs (attempt %d)", trade_id, delay, attempt)
        return True

    def _fire(self, trade_id: str, attempt: int) -> None:
        with self._lock:
            self._timers.pop(trade_id, None)
        self.run_settlement(trade_id, attempt)

    def run_settlement(self, trade_id: str, attempt: int = 1) -> bool:
        """Settle one trade in its own session. Returns True when it is no longer PENDING."""
        db = self.session_factory()
        try:
            trade_service.settle_trade(db, trade_id)
            return True
        except SQLAlchemyError:
            logger.exception("Settlement of trade %s failed (attempt %d/%d)", trade_id, attempt, self.max_attempts)
        finally:
            db.close()

        if attempt < self.max_attempts:
            self._arm(trade_id, self.retry_delay, attempt + 1)
        else:
            logger.error("Trade %s left PENDING after %d attempts, sweep will retry", trade_id, attempt)
        return False

    def recover_pending(self) -> int:
        """Arm every PENDING trade not already armed. Returns how many were armed."""
        db = self.session_factory()
        try:
            pending = trade_service.get_pending_trades(db)
        except SQLAlchemyError:
            logger.exception("Could not load pending trades")
            return 0
        finally:
            db.close()

        armed = sum(1 for trade_id, due_at in pending if self.schedule(trade_id, due_at))
        if armed:
            logger.info("Recovered %d pending trade(s) for settlement", armed)
        return armed

    def _sweep_loop(self) -> None:
        while not self._stop.wait(self.sweep_interval):
            self.recover_pending()

    def start(self) -> None:
        """Recover pending trades and start the periodic sweep."""
        self._stop.clear()
        self.recover_pending()
        if self.sweep_interval > 0 and self._sweeper is None:
            self._sweeper = threading.Thread(target=self._sweep_loop, name="settlement-sweep", daemon=True)
            self._sweeper.start()

    def shutdown(self) -> None:
        """Cancel armed timers and stop the sweep. Pending trades stay PENDING."""
        self._stop.set()
        with self._lock:
            timers = list(self._timers.values())
            self._timers.clear()
        for timer in timers:
            timer.cancel()
        if self._sweeper is not None:
            self._sweeper.join(timeout=1)
            self._sweeper = None


_scheduler: Optional[SettlementScheduler] = None


def get_scheduler() -> SettlementScheduler:
    """FastAPI dependency returning the process-wide scheduler."""
    global _scheduler
    if _scheduler is None:
        from app.database import SessionLocal

        _scheduler = SettlementScheduler(SessionLocal)
    return _scheduler
