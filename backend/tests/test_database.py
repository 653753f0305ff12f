"""Tests for engine configuration and column types."""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import DateTime

from app import models  # noqa: F401  (registers tables on Base.metadata)
from app.database import Base, _engine_kwargs
from app.services.settlement_scheduler import seconds_until


class TestEngineKwargs:

    def test_sqlite_allows_cross_thread_sessions(self):
        assert _engine_kwargs("sqlite:///./novachain.db") == {"connect_args": {"check_same_thread": False}}

    def test_server_databases_get_a_pool(self):
        kwargs = _engine_kwargs("postgresql+psycopg://u:p@db:5432/novachain")
        assert kwargs["pool_pre_ping"] is True
        assert "connect_args" not in kwargs


class TestTimestamps:
    """Timestamps are stored timezone-aware and read back as UTC."""

    @pytest.mark.parametrize("column", [
        column
        for table in Base.metadata.sorted_tables
        for column in table.columns
        if isinstance(column.type, DateTime)
    ], ids=str)
    def test_datetime_columns_are_timezone_aware(self, column):
        assert column.type.timezone is True

    def test_offset_due_at_compared_in_utc(self):
        now = datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)
        due = datetime(2026, 1, 1, 14, 0, 30, tzinfo=timezone(timedelta(hours=1)))
        assert seconds_until(due, now=now) == 3630.0
