"""Data models for per-source summaries.

``SourceRecord`` and ``EntryRecord`` map to rows of the ``content_source``
and ``content_entry`` tables. ``SummaryData`` is the computed output stored
as the ``summary`` jsonb column of ``source_summary``; its JSON keys are
kept stable so existing rows stay readable.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

# Zero value for timestamps that were never observed ("no data", not null).
ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)


def _decode_json_object(value: Any) -> dict[str, Any]:
    """Decode a jsonb column value that may arrive as text, bytes or a dict."""
    if value is None:
        return {}
    if isinstance(value, (bytes, bytearray)):
        value = value.decode("utf-8")
    if isinstance(value, str):
        value = json.loads(value) if value.strip() else {}
    if not isinstance(value, dict):
        raise ValueError(f"Expected a JSON object, got {type(value).__name__}")
    return value


@dataclass
class SourceRecord:
    """One physical registration of a logical source.

    Several records may share a ``source_id`` (e.g. the same feed registered
    by different engines). ``options`` is the raw jsonb blob.
    """

    source_id: str
    status: str
    created_at: datetime
    updated_at: datetime
    options: Any = None
    id: str | None = None
    url: str = ""


@dataclass
class EntryMetadata:
    """Entry metadata in the context of the ingestion system.

    Attributes:
        order: 0 for a first submission, >0 for reposts of the same content.
        enriched: Enrichment marker; present only once LLM enrichment ran.
        submission_id: Submission that produced the entry.
        origin: Initiator of scraping (internal/community/squad).
        post_id: Post id from the API, if the post was created there.
    """

    order: int = 0
    enriched: dict[str, Any] | None = None
    submission_id: str = ""
    origin: str = ""
    post_id: str = ""

    @property
    def is_enriched(self) -> bool:
        return self.enriched is not None

    @classmethod
    def from_json(cls, value: Any) -> EntryMetadata:
        """Parse the ``entry_metadata`` column.

        Raises:
            ValueError: If the value is not a JSON object.
        """
        data = _decode_json_object(value)
        enriched = data.get("enriched")
        return cls(
            order=int(data.get("order") or 0),
            enriched=enriched if isinstance(enriched, dict) else None,
            submission_id=data.get("submission_id") or "",
            origin=data.get("origin") or "",
            post_id=data.get("post_id") or "",
        )


@dataclass
class EntryRecord:
    """One ingested content item for a source."""

    source_id: str
    status: str
    created_at: datetime
    reject_reason: str = ""
    metadata: EntryMetadata = field(default_factory=EntryMetadata)
    id: str | None = None


@dataclass(frozen=True)
class TimeWindow:
    """Open interval ``(start, end)``; both boundary instants are excluded."""

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        if self.start >= self.end:
            raise ValueError(
                f"TimeWindow start {self.start.isoformat()} must precede end {self.end.isoformat()}"
            )

    def contains(self, timestamp: datetime) -> bool:
        return self.start < timestamp < self.end


@dataclass(frozen=True)
class SummaryData:
    """Health summary of one logical source.

    All fields default to their zero value; a source without enough data
    is described by zeros, never by missing fields.

    Attributes:
        source_count: Number of source records sharing the source id.
        enabled: At least one record is processing.
        stalled_processing: A processing record has not been updated recently.
        engagement_check: At least one record configures an engagement threshold.
        added_at: Earliest creation time across records.
        entry_count: Eligible entries (excluding engagement rejects).
        completed_count: Entries with completed status.
        error_count: Entries rejected with a generic error.
        days_since_last_entry: Fractional days since the newest entry.
        avg_entries_per_day: First-submission completed entries per active day.
        activity: Recent vs. historical posting cadence (unbounded above).
        enriched_ratio: Share of recent completed entries that were enriched.
    """

    source_count: int = 0
    enabled: bool = False
    stalled_processing: bool = False
    engagement_check: bool = False
    added_at: datetime = ZERO_TIME
    entry_count: int = 0
    completed_count: int = 0
    error_count: int = 0
    days_since_last_entry: float = 0.0
    avg_entries_per_day: float = 0.0
    activity: float = 0.0
    enriched_ratio: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        """Serialize using the stored ``summary`` column keys."""
        return {
            "source_count": self.source_count,
            "enabled": self.enabled,
            "stalled_processing": self.stalled_processing,
            "engagement_check": self.engagement_check,
            "added_at": self.added_at.isoformat(),
            "entry_count": self.entry_count,
            "completed_count": self.completed_count,
            "error_count": self.error_count,
            "days_since_last_entry": self.days_since_last_entry,
            "avg_entries_day": self.avg_entries_per_day,
            "activity": self.activity,
            "llm_enriched": self.enriched_ratio,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SummaryData:
        """Rebuild a summary from a stored ``summary`` column value."""
        added_at = data.get("added_at")
        return cls(
            source_count=int(data.get("source_count", 0)),
            enabled=bool(data.get("enabled", False)),
            stalled_processing=bool(data.get("stalled_processing", False)),
            engagement_check=bool(data.get("engagement_check", False)),
            added_at=datetime.fromisoformat(added_at) if added_at else ZERO_TIME,
            entry_count=int(data.get("entry_count", 0)),
            completed_count=int(data.get("completed_count", 0)),
            error_count=int(data.get("error_count", 0)),
            days_since_last_entry=float(data.get("days_since_last_entry", 0.0)),
            avg_entries_per_day=float(data.get("avg_entries_day", 0.0)),
            activity=float(data.get("activity", 0.0)),
            enriched_ratio=float(data.get("llm_enriched", 0.0)),
        )


@dataclass
class SourceSummary:
    """A row of the ``source_summary`` table."""

    source_id: str
    summary: SummaryData
    created_at: datetime
    updated_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "source_id": self.source_id,
            "summary": self.summary.to_dict(),
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }


@dataclass(frozen=True)
class SummaryOutcome:
    """Result of summarizing one source.

    Either Ok (``failure`` is None) or a partial failure carrying the
    summary computed before the failure. Both kinds produce a row.
    """

    source_id: str
    summary: SummaryData
    failure: str | None = None

    @classmethod
    def ok(cls, source_id: str, summary: SummaryData) -> SummaryOutcome:
        return cls(source_id=source_id, summary=summary)

    @classmethod
    def partial_failure(
        cls, source_id: str, summary: SummaryData, reason: str
    ) -> SummaryOutcome:
        return cls(source_id=source_id, summary=summary, failure=reason)

    @property
    def is_ok(self) -> bool:
        return self.failure is None

    def to_row(self, now: datetime) -> SourceSummary:
        return SourceSummary(
            source_id=self.source_id,
            summary=self.summary,
            created_at=now,
            updated_at=now,
        )


__all__ = [
    "ZERO_TIME",
    "EntryMetadata",
    "EntryRecord",
    "SourceRecord",
    "SourceSummary",
    "SummaryData",
    "SummaryOutcome",
    "TimeWindow",
]
