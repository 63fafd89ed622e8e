"""Database repositories for content sources, entries and source summaries."""

import json
import logging

from src.storage.database import Database
from src.summary.schemas import (
    EntryMetadata,
    EntryRecord,
    SourceRecord,
    SourceSummary,
    SummaryData,
)

logger = logging.getLogger(__name__)

_CREATE_SUMMARY_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS source_summary (
    source_id  TEXT PRIMARY KEY,
    summary    JSONB NOT NULL DEFAULT '{}',
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);
"""

_BULK_UPSERT_SUMMARY_SQL = """
INSERT INTO source_summary (source_id, summary, created_at, updated_at)
SELECT * FROM unnest(
    $1::text[], $2::jsonb[], $3::timestamptz[], $4::timestamptz[]
)
ON CONFLICT (source_id) DO UPDATE SET
    summary = EXCLUDED.summary,
    updated_at = EXCLUDED.updated_at
"""

_ELIGIBLE_ENTRIES_SQL = """
SELECT id, source_id, status, reject_reason, entry_metadata, created_at
FROM content_entry
WHERE source_id = $1 AND reject_reason IS DISTINCT FROM $2
ORDER BY created_at ASC
"""


def _record_to_source(record) -> SourceRecord:
    """Convert an asyncpg Record to a SourceRecord dataclass."""
    return SourceRecord(
        id=str(record["id"]) if record["id"] is not None else None,
        source_id=record["source_id"],
        url=record["url"] or "",
        status=record["status"] or "",
        options=record["options"],
        created_at=record["created_at"],
        updated_at=record["updated_at"],
    )


def _record_to_entry(record) -> EntryRecord:
    """Convert an asyncpg Record to an EntryRecord dataclass."""
    return EntryRecord(
        id=str(record["id"]) if record["id"] is not None else None,
        source_id=record["source_id"],
        status=record["status"] or "",
        reject_reason=record["reject_reason"] or "",
        metadata=EntryMetadata.from_json(record["entry_metadata"]),
        created_at=record["created_at"],
    )


def _upsert_columns(rows: list[SourceSummary]) -> tuple[list, list, list, list]:
    """Split rows into the parallel arrays consumed by unnest."""
    return (
        [r.source_id for r in rows],
        # jsonb values are encoded by the connection's type codec
        [r.summary.to_dict() for r in rows],
        [r.created_at for r in rows],
        [r.updated_at for r in rows],
    )


def _record_to_summary(record) -> SourceSummary:
    """Convert an asyncpg Record to a SourceSummary dataclass."""
    raw = record["summary"]
    if isinstance(raw, str):
        raw = json.loads(raw)
    return SourceSummary(
        source_id=record["source_id"],
        summary=SummaryData.from_dict(raw or {}),
        created_at=record["created_at"],
        updated_at=record["updated_at"],
    )


class ContentSourceRepository:
    """Read access to the content_source table."""

    def __init__(self, database: Database) -> None:
        self._db = database

    async def list_source_ids(self) -> list[str]:
        """Distinct logical source ids, ordered for repeatable batches."""
        rows = await self._db.fetch(
            "SELECT DISTINCT source_id FROM content_source ORDER BY source_id"
        )
        return [r["source_id"] for r in rows]

    async def get_by_source_id(self, source_id: str) -> list[SourceRecord]:
        """All registrations sharing a logical source id."""
        rows = await self._db.fetch(
            """
            SELECT id, source_id, url, status, options, created_at, updated_at
            FROM content_source WHERE source_id = $1
            """,
            source_id,
        )
        return [_record_to_source(r) for r in rows]


class ContentEntryRepository:
    """Read access to the content_entry table."""

    def __init__(self, database: Database) -> None:
        self._db = database

    async def get_eligible(
        self, source_id: str, excluded_reject_reason: str
    ) -> list[EntryRecord]:
        """Entries of a source not rejected for ``excluded_reject_reason``.

        Entries without a reject reason are included. Ordered ascending by
        ``created_at``.
        """
        rows = await self._db.fetch(
            _ELIGIBLE_ENTRIES_SQL, source_id, excluded_reject_reason
        )
        return [_record_to_entry(r) for r in rows]


class SourceSummaryRepository:
    """Write-back store for computed summaries."""

    def __init__(self, database: Database) -> None:
        self._db = database

    async def create_table(self) -> None:
        """Create the source_summary table (idempotent)."""
        await self._db.execute(_CREATE_SUMMARY_TABLE_SQL)
        logger.info("Source summary table ensured")

    async def write_back(self, rows: list[SourceSummary]) -> int:
        """Ensure the table and upsert ``rows`` in a single transaction.

        One statement keyed by source id; on conflict only ``summary`` and
        ``updated_at`` change. Either every row lands or none does.
        Returns the number of rows written.
        """
        async with self._db.transaction() as conn:
            await conn.execute(_CREATE_SUMMARY_TABLE_SQL)
            if rows:
                await conn.execute(_BULK_UPSERT_SUMMARY_SQL, *_upsert_columns(rows))
        logger.info("Wrote %d source summaries", len(rows))
        return len(rows)

    async def get(self, source_id: str) -> SourceSummary | None:
        """Fetch the stored summary of a source."""
        row = await self._db.fetchrow(
            "SELECT * FROM source_summary WHERE source_id = $1", source_id,
        )
        return _record_to_summary(row) if row else None
