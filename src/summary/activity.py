"""Posting cadence scoring.

Compares the average interval between entries over a source's whole
history with the average interval inside a recent verification window:

    avg_interval   = (last - first) / (count - 1)
    verify_period  = max(avg_interval * min_entry_count, min_verify_period)
    verify_count   = entries created after (now - verify_period)
    activity       = avg_interval / (verify_period / verify_count)

A score above 1 means the source currently posts faster than it used to,
below 1 slower. The score is not clamped.
"""

from __future__ import annotations

import bisect
import logging
from collections.abc import Sequence
from datetime import datetime

from src.summary.config import SummaryConfig
from src.summary.schemas import EntryRecord

logger = logging.getLogger(__name__)


class ActivityScorer:
    """Score recent posting cadence against a source's history.

    Every edge case (too few entries, dormant source, history shorter than
    a day, nothing in the recent window) scores 0.0.
    """

    def __init__(self, config: SummaryConfig | None = None) -> None:
        self._config = config or SummaryConfig()

    def score(self, entries: Sequence[EntryRecord], now: datetime) -> float:
        """Compute the activity score of ``entries`` as of ``now``.

        Args:
            entries: Entries of one source in any order; not modified.
            now: Reference instant.

        Returns:
            Ratio of historical to recent average posting interval.
        """
        cfg = self._config
        entry_count = len(entries)

        if entry_count < cfg.activity_min_entry_count:
            return 0.0

        ordered = sorted(entries, key=lambda e: e.created_at)
        first_created = ordered[0].created_at
        last_created = ordered[-1].created_at

        if now - last_created > cfg.activity_max_inactive:
            return 0.0

        history = last_created - first_created
        # Everything posted within one day, typically the initial scrape
        if history < cfg.activity_min_history:
            return 0.0

        avg_interval = history / (entry_count - 1)
        verify_period = max(
            avg_interval * cfg.activity_min_entry_count,
            cfg.activity_min_verify_period,
        )
        verify_start = now - verify_period

        created = [e.created_at for e in ordered]
        first_recent = bisect.bisect_right(created, verify_start)
        verify_count = entry_count - first_recent

        if verify_count == 0:
            logger.info(
                "No recent entries for source %s: entries=%d avg_interval_h=%.2f "
                "history_d=%.2f verify_period_d=%.2f",
                ordered[0].source_id,
                entry_count,
                avg_interval.total_seconds() / 3600,
                history.total_seconds() / 86400,
                verify_period.total_seconds() / 86400,
            )
            return 0.0

        verify_interval_avg = verify_period / verify_count
        return avg_interval / verify_interval_avg
