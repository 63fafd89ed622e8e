"""Per-source aggregation of raw records into a SummaryData.

The aggregator is pure: it never touches the database and every input,
including ``now``, is passed in. Source flags (count, enabled, stalled,
engagement check, added_at) come from the source records alone; entry
metrics need the eligible entries of an enabled source.
"""

from __future__ import annotations

import json
import logging
import math
from collections.abc import Sequence
from dataclasses import replace
from datetime import datetime
from typing import Any

from src.summary.activity import ActivityScorer
from src.summary.config import SummaryConfig
from src.summary.ratio import SuccessRatio
from src.summary.schemas import ZERO_TIME, EntryRecord, SourceRecord, SummaryData

logger = logging.getLogger(__name__)


class InsufficientDataError(Exception):
    """An enabled source has no eligible entries.

    Carries the summary computed so far (source flags only) so the caller
    can still emit a row for the source.
    """

    def __init__(self, source_id: str, summary: SummaryData) -> None:
        self.source_id = source_id
        self.summary = summary
        super().__init__(f"no entries found for enabled source {source_id}")


class MalformedOptionsError(ValueError):
    """Source options do not hold a usable ``engagement.threshold``."""


def read_engagement_threshold(options: Any) -> int:
    """Extract ``engagement.threshold`` from a source options blob.

    A missing ``engagement`` object or threshold reads as 0.

    Raises:
        MalformedOptionsError: If the blob is not JSON, not an object, or
            the threshold is not an integer.
    """
    if options is None:
        return 0
    if isinstance(options, (bytes, bytearray)):
        options = options.decode("utf-8", errors="replace")
    if isinstance(options, str):
        if not options.strip():
            return 0
        try:
            options = json.loads(options)
        except json.JSONDecodeError as e:
            raise MalformedOptionsError(f"options are not valid JSON: {e}") from e

    if not isinstance(options, dict):
        raise MalformedOptionsError(
            f"options must be an object, got {type(options).__name__}"
        )

    engagement = options.get("engagement")
    if engagement is None:
        return 0
    if not isinstance(engagement, dict):
        raise MalformedOptionsError("engagement must be an object")

    threshold = engagement.get("threshold")
    if threshold is None:
        return 0
    if isinstance(threshold, bool) or not isinstance(threshold, int):
        raise MalformedOptionsError(f"engagement.threshold must be an integer: {threshold!r}")
    return threshold


def parse_engagement_threshold(options: Any) -> int:
    """Engagement threshold of a source, 0 when absent or unreadable."""
    try:
        return read_engagement_threshold(options)
    except MalformedOptionsError as e:
        logger.debug("Ignoring source options without engagement threshold: %s", e)
        return 0


def _round2(value: float) -> float:
    """Round half away from zero to two decimals."""
    return math.copysign(math.floor(abs(value) * 100 + 0.5) / 100, value)


class SourceAggregator:
    """Build the summary of one logical source.

    Usage:
        aggregator = SourceAggregator(config)
        summary = aggregator.aggregate(source_id, sources, entries, now)

    ``entries`` must be the eligible entries of the source sorted ascending
    by ``created_at``; order is not checked.
    """

    def __init__(
        self,
        config: SummaryConfig | None = None,
        scorer: ActivityScorer | None = None,
    ) -> None:
        self._config = config or SummaryConfig()
        self._scorer = scorer or ActivityScorer(self._config)

    @property
    def config(self) -> SummaryConfig:
        return self._config

    def summarize_sources(
        self,
        sources: Sequence[SourceRecord],
        now: datetime,
    ) -> SummaryData:
        """Compute the flags derived from source records alone."""
        cfg = self._config
        if not sources:
            return SummaryData()

        added_at = min(s.created_at for s in sources)
        enabled = False
        stalled = False
        engagement_check = False

        for src in sources:
            if src.status == cfg.processing_status:
                enabled = True
                if now - src.updated_at > cfg.stalled_threshold:
                    stalled = True

            if parse_engagement_threshold(src.options) > 0:
                engagement_check = True

        return SummaryData(
            source_count=len(sources),
            enabled=enabled,
            stalled_processing=stalled,
            engagement_check=engagement_check,
            added_at=added_at,
        )

    def with_entry_metrics(
        self,
        source_id: str,
        summary: SummaryData,
        entries: Sequence[EntryRecord],
        now: datetime,
    ) -> SummaryData:
        """Fill entry-derived fields of an enabled source's summary.

        Raises:
            InsufficientDataError: If ``entries`` is empty.
        """
        cfg = self._config
        if not entries:
            raise InsufficientDataError(source_id, summary)

        last_created = entries[-1].created_at
        days_since_last = (now - last_created).total_seconds() / 86400

        enrich_start = max(cfg.enrich_start_date, now - cfg.enrich_eval_period)
        enriched = SuccessRatio(enrich_start, now)

        completed_count = 0
        error_count = 0
        # Completed first submissions; reposts (order > 0) are left out
        activity_entries = 0

        for entry in entries:
            if entry.status == cfg.completed_status:
                completed_count += 1
                if entry.metadata.order == 0:
                    activity_entries += 1
                enriched.add(entry.created_at, entry.metadata.is_enriched)

            if entry.reject_reason == cfg.error_reject_reason:
                error_count += 1

        avg_entries_per_day = 0.0
        active_duration = last_created - summary.added_at
        if active_duration.total_seconds() > 0 and summary.added_at != ZERO_TIME:
            active_days = active_duration.total_seconds() / 86400
            avg_entries_per_day = _round2(activity_entries / active_days)

        activity = 0.0
        if activity_entries > 0:
            activity = self._scorer.score(entries, now)

        return replace(
            summary,
            entry_count=len(entries),
            completed_count=completed_count,
            error_count=error_count,
            days_since_last_entry=days_since_last,
            avg_entries_per_day=avg_entries_per_day,
            activity=activity,
            enriched_ratio=enriched.value(),
        )

    def aggregate(
        self,
        source_id: str,
        sources: Sequence[SourceRecord],
        entries: Sequence[EntryRecord],
        now: datetime,
    ) -> SummaryData:
        """Compute the full summary of one logical source.

        Entry metrics are only computed for enabled sources.

        Raises:
            InsufficientDataError: If the source is enabled but has no entries.
        """
        summary = self.summarize_sources(sources, now)
        if not summary.enabled:
            return summary
        return self.with_entry_metrics(source_id, summary, entries, now)
