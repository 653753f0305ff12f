"""
Pytest fixtures for the test suite.
"""
import os
import random
import sys

import pytest

# Configure before the app reads its settings
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("SETTLEMENT_ENABLED", "false")
os.environ.setdefault("LOG_LEVEL", "WARNING")

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.database import Base, get_db
from app.main import app as fastapi_app
from app.middleware.auth import create_access_token
from app.services.price_service import FallbackPriceOracle, StaticPriceOracle, get_price_oracle
from app.services.settlement_scheduler import get_scheduler
from app.services.user_service import create_user


class RecordingScheduler:
    """Stands in for the timer scheduler; tests drive settlement explicitly."""

    def __init__(self):
        self.scheduled = []

    def schedule(self, trade_id, due_at, attempt=1):
        self.scheduled.append((trade_id, due_at))
        return True

    @property
    def in_flight(self):
        return len(self.scheduled)


class FixedRandom(random.Random):
    """RNG whose draws are pinned: random() -> `flip`, uniform() -> `drift`."""

    def __init__(self, flip=0.1, drift=0.002):
        super().__init__(0)
        self.flip = flip
        self.drift = drift

    def random(self):
        return self.flip

    def uniform(self, a, b):
        return self.drift


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def oracle():
    """Live oracle that always fails, so every price comes from the fallback table."""
    return FallbackPriceOracle(StaticPriceOracle({}))


@pytest.fixture
def scheduler():
    return RecordingScheduler()


@pytest.fixture
def alice(db):
    """User with 100 USDT."""
    return create_user(db, "alice", "alice@example.com", starting_usdt=100)


@pytest.fixture
def bob(db):
    """User with 5 USDT."""
    return create_user(db, "bob", "bob@example.com", starting_usdt=5)


@pytest.fixture
def client(session_factory, oracle, scheduler):
    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    fastapi_app.dependency_overrides[get_db] = _get_db
    fastapi_app.dependency_overrides[get_price_oracle] = lambda: oracle
    fastapi_app.dependency_overrides[get_scheduler] = lambda: scheduler
    yield TestClient(fastapi_app)
    fastapi_app.dependency_overrides.clear()


@pytest.fixture
def admin_headers():
    token = create_access_token({"sub": "admin-1", "role": "admin"})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def user_headers():
    token = create_access_token({"sub": "user-1", "role": "user"})
    return {"Authorization": f"Bearer {token}"}
