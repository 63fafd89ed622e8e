"""Batch job computing per-source summaries.

Runs as an offline batch process:
1. Lists distinct logical source ids (capped by ``sources_limit``)
2. For each source, sequentially: fetch source records, derive flags,
   fetch eligible entries of enabled sources, compute entry metrics
3. Any per-source failure degrades that source's row to the summary
   computed so far; the batch always yields one row per source id
4. Ensures the table and upserts all rows keyed by source id in one
   transaction

Designed for external cron scheduling: ``15 * * * * sources-summary summarize``
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone

from src.storage.database import Database
from src.summary.aggregator import InsufficientDataError, SourceAggregator
from src.summary.config import SummaryConfig
from src.summary.repository import (
    ContentEntryRepository,
    ContentSourceRepository,
    SourceSummaryRepository,
)
from src.summary.schemas import SummaryData, SummaryOutcome

logger = logging.getLogger(__name__)


@dataclass
class SummaryJobResult:
    """Summary of one batch run."""

    now: datetime
    sources_found: int = 0
    sources_processed: int = 0
    summaries_ok: int = 0
    summaries_degraded: int = 0
    rows_written: int = 0
    dry_run: bool = False
    aborted: bool = False
    outcomes: list[SummaryOutcome] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    elapsed_seconds: float = 0.0


class SourceSummaryJob:
    """Sequentially summarize logical sources and write the rows back.

    Usage:
        job = SourceSummaryJob(source_repo, entry_repo, summary_repo)
        result = await job.run()
    """

    def __init__(
        self,
        source_repo: ContentSourceRepository,
        entry_repo: ContentEntryRepository,
        summary_repo: SourceSummaryRepository,
        config: SummaryConfig | None = None,
        aggregator: SourceAggregator | None = None,
    ) -> None:
        self._config = config or SummaryConfig()
        self._aggregator = aggregator or SourceAggregator(self._config)
        self._sources = source_repo
        self._entries = entry_repo
        self._summaries = summary_repo

    async def summarize_source(self, source_id: str, now: datetime) -> SummaryOutcome:
        """Summarize one source, never raising for data or fetch problems."""
        try:
            sources = await self._sources.get_by_source_id(source_id)
        except Exception as e:
            logger.exception("Failed to fetch source records for %s", source_id)
            return SummaryOutcome.partial_failure(source_id, SummaryData(), f"sources: {e}")

        try:
            summary = self._aggregator.summarize_sources(sources, now)
        except Exception as e:
            logger.exception("Failed to derive flags for %s", source_id)
            return SummaryOutcome.partial_failure(source_id, SummaryData(), f"flags: {e}")

        if not summary.enabled:
            return SummaryOutcome.ok(source_id, summary)

        try:
            entries = await self._entries.get_eligible(
                source_id, self._config.excluded_reject_reason,
            )
        except Exception as e:
            logger.exception("Failed to fetch entries for %s", source_id)
            return SummaryOutcome.partial_failure(source_id, summary, f"entries: {e}")

        try:
            summary = self._aggregator.with_entry_metrics(source_id, summary, entries, now)
        except InsufficientDataError as e:
            logger.warning("Source %s entry data error: %s", source_id, e)
            return SummaryOutcome.partial_failure(source_id, e.summary, str(e))
        except Exception as e:
            logger.exception("Failed to compute entry metrics for %s", source_id)
            return SummaryOutcome.partial_failure(source_id, summary, f"entry_metrics: {e}")

        return SummaryOutcome.ok(source_id, summary)

    async def build_summaries(
        self, source_ids: list[str], now: datetime
    ) -> list[SummaryOutcome]:
        """Summarize ``source_ids`` one at a time, one outcome per id."""
        outcomes: list[SummaryOutcome] = []
        for source_id in source_ids:
            outcomes.append(await self.summarize_source(source_id, now))
        return outcomes

    async def run(
        self,
        now: datetime | None = None,
        limit: int | None = None,
        dry_run: bool = False,
    ) -> SummaryJobResult:
        """
        Run the batch.

        Args:
            now: Reference instant for every source (default: UTC now).
            limit: Overrides ``sources_limit``; must be at least 1.
            dry_run: Compute summaries without writing them.

        Returns:
            SummaryJobResult with counts, outcomes and any errors.

        Raises:
            ValueError: If ``limit`` is less than 1.
        """
        now = now or datetime.now(timezone.utc)
        if limit is None:
            limit = self._config.sources_limit
        if limit < 1:
            raise ValueError(f"limit must be at least 1, got {limit}")
        result = SummaryJobResult(now=now, dry_run=dry_run)
        start_time = time.monotonic()

        try:
            source_ids = await self._sources.list_source_ids()
        except Exception as e:
            logger.exception("Failed to list source ids")
            result.errors.append(f"list_sources: {e}")
            result.aborted = True
            result.elapsed_seconds = time.monotonic() - start_time
            return result

        result.sources_found = len(source_ids)
        if len(source_ids) > limit:
            logger.info(
                "Limiting batch to %d of %d sources", limit, len(source_ids),
            )
        selected = source_ids[:limit]

        result.outcomes = await self.build_summaries(selected, now)
        result.sources_processed = len(result.outcomes)
        for outcome in result.outcomes:
            if outcome.is_ok:
                result.summaries_ok += 1
            else:
                result.summaries_degraded += 1
                result.errors.append(f"{outcome.source_id}: {outcome.failure}")

        if not dry_run:
            rows = [o.to_row(now) for o in result.outcomes]
            try:
                result.rows_written = await self._summaries.write_back(rows)
            except Exception as e:
                logger.exception("Failed to write %d summaries", len(rows))
                result.errors.append(f"write_back: {e}")
                result.aborted = True

        result.elapsed_seconds = time.monotonic() - start_time
        logger.info(
            "Source summary complete: found=%d processed=%d ok=%d degraded=%d "
            "written=%d errors=%d elapsed=%.2fs",
            result.sources_found,
            result.sources_processed,
            result.summaries_ok,
            result.summaries_degraded,
            result.rows_written,
            len(result.errors),
            result.elapsed_seconds,
        )

        return result


async def run_source_summary(
    database: Database,
    now: datetime | None = None,
    config: SummaryConfig | None = None,
    limit: int | None = None,
    dry_run: bool = False,
) -> SummaryJobResult:
    """
    Run the source summary batch against a database.

    Args:
        database: Connected Database instance (caller manages lifecycle).
        now: Reference instant (default: UTC now).
        config: Summary configuration (default: from env).
        limit: Overrides the configured source cap.
        dry_run: Compute without writing.
    """
    job = SourceSummaryJob(
        ContentSourceRepository(database),
        ContentEntryRepository(database),
        SourceSummaryRepository(database),
        config=config,
    )
    return await job.run(now=now, limit=limit, dry_run=dry_run)
