"""Per-source health summaries derived from content ingestion records.

Components:
- SummaryConfig: Pydantic settings for thresholds and time windows
- SuccessRatio: Windowed success-ratio accumulator
- ActivityScorer: Recent vs. historical posting cadence
- SourceAggregator: Merges source records and entries into SummaryData
- SourceSummaryJob: Sequential batch driver with per-source degradation
- Repositories: content_source / content_entry reads, source_summary upsert
"""

from src.summary.activity import ActivityScorer
from src.summary.aggregator import (
    InsufficientDataError,
    MalformedOptionsError,
    SourceAggregator,
    parse_engagement_threshold,
)
from src.summary.config import SummaryConfig
from src.summary.job import SourceSummaryJob, SummaryJobResult, run_source_summary
from src.summary.ratio import SuccessRatio
from src.summary.repository import (
    ContentEntryRepository,
    ContentSourceRepository,
    SourceSummaryRepository,
)
from src.summary.schemas import (
    EntryMetadata,
    EntryRecord,
    SourceRecord,
    SourceSummary,
    SummaryData,
    SummaryOutcome,
    TimeWindow,
)

__all__ = [
    "ActivityScorer",
    "ContentEntryRepository",
    "ContentSourceRepository",
    "EntryMetadata",
    "EntryRecord",
    "InsufficientDataError",
    "MalformedOptionsError",
    "SourceAggregator",
    "SourceRecord",
    "SourceSummary",
    "SourceSummaryJob",
    "SourceSummaryRepository",
    "SuccessRatio",
    "SummaryConfig",
    "SummaryData",
    "SummaryJobResult",
    "SummaryOutcome",
    "TimeWindow",
    "parse_engagement_threshold",
    "run_source_summary",
]
