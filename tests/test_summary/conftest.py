"""Shared fixtures for summary tests."""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.summary.config import SummaryConfig
from src.summary.schemas import EntryMetadata, EntryRecord, SourceRecord


@pytest.fixture
def now() -> datetime:
    """Fixed reference time."""
    return datetime(2026, 2, 8, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def config() -> SummaryConfig:
    """Default summary config."""
    return SummaryConfig()


@pytest.fixture
def mock_database() -> AsyncMock:
    """Mock Database instance matching the Database API."""
    db = AsyncMock()
    db.fetch = AsyncMock(return_value=[])
    db.fetchval = AsyncMock(return_value=None)
    db.fetchrow = AsyncMock(return_value=None)
    db.execute = AsyncMock(return_value="INSERT 0 1")

    # transaction() yields db.tx_conn as an async context manager
    db.tx_conn = AsyncMock()
    tx = MagicMock()
    tx.__aenter__ = AsyncMock(return_value=db.tx_conn)
    tx.__aexit__ = AsyncMock(return_value=False)
    db.transaction = MagicMock(return_value=tx)
    return db


@pytest.fixture
def make_entry():
    """Factory for EntryRecord with sensible defaults."""

    def _make(
        created_at: datetime,
        status: str = "completed",
        reject_reason: str = "",
        order: int = 0,
        enriched: bool = False,
        source_id: str = "src_1",
    ) -> EntryRecord:
        return EntryRecord(
            source_id=source_id,
            status=status,
            created_at=created_at,
            reject_reason=reject_reason,
            metadata=EntryMetadata(
                order=order,
                enriched={"model": "gpt", "enrich_id": "e1"} if enriched else None,
            ),
        )

    return _make


@pytest.fixture
def make_source(now):
    """Factory for SourceRecord with sensible defaults."""

    def _make(
        status: str = "processing",
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
        options=None,
        source_id: str = "src_1",
    ) -> SourceRecord:
        return SourceRecord(
            source_id=source_id,
            status=status,
            created_at=created_at or now - timedelta(days=60),
            updated_at=updated_at or now - timedelta(hours=1),
            options=options,
        )

    return _make


@pytest.fixture
def daily_entries(now, make_entry):
    """25 completed entries one day apart, days 0..24, with now at day 25."""
    day0 = now - timedelta(days=25)
    return [make_entry(day0 + timedelta(days=i)) for i in range(25)]
