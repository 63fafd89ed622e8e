"""
Command-line interface for sources-summary.

Provides commands to compute per-source summaries, initialize the
summary table, inspect stored summaries and check database health.

Usage:
    sources-summary summarize          # Compute and store summaries
    sources-summary init-db            # Create the source_summary table
    sources-summary show SOURCE_ID     # Print a stored summary
    sources-summary health             # Check database connectivity
"""

import asyncio
import json
import sys
from datetime import datetime, timezone
from typing import Any

import click

from src.observability.logging import bind_context, clear_context, get_logger, setup_logging


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
def main(debug: bool) -> None:
    """Sources Summary - per-source health metrics from ingestion records."""
    setup_logging(level="DEBUG" if debug else None)


@main.command()
@click.option("--limit", default=None, type=click.IntRange(min=1),
              help="Maximum number of sources (default: SUMMARY_SOURCES_LIMIT)")
@click.option("--now", "now_at", default=None,
              type=click.DateTime(formats=["%Y-%m-%d", "%Y-%m-%dT%H:%M:%S"]),
              help="Reference time in UTC (default: current time)")
@click.option("--dry-run", is_flag=True, help="Compute summaries without writing them")
def summarize(limit: int | None, now_at: Any, dry_run: bool) -> None:
    """Compute summaries for every source and upsert them.

    Sources are processed one at a time; a source whose data cannot be
    read still gets a row with the fields computed before the failure.

    Designed for cron scheduling: 15 * * * * sources-summary summarize

    Example:
        sources-summary summarize                         # All sources, now
        sources-summary summarize --limit 10 --dry-run    # Preview only
        sources-summary summarize --now 2026-02-05        # Reproduce a run
    """
    from src.storage.database import Database
    from src.summary.config import SummaryConfig
    from src.summary.job import run_source_summary

    config = SummaryConfig()
    now = now_at.replace(tzinfo=timezone.utc) if now_at else datetime.now(timezone.utc)
    bind_context(run_at=now.isoformat())

    async def run():
        db = Database()
        await db.connect()
        try:
            job = run_source_summary(db, now=now, config=config, limit=limit, dry_run=dry_run)
            if config.batch_timeout_seconds:
                return await asyncio.wait_for(job, timeout=config.batch_timeout_seconds)
            return await job
        finally:
            await db.close()

    try:
        result = asyncio.run(run())
    except asyncio.TimeoutError:
        click.echo(click.style(
            f"Batch timed out after {config.batch_timeout_seconds}s", fg="red",
        ))
        sys.exit(1)
    finally:
        clear_context()

    title = "Source Summary Dry Run" if result.dry_run else "Source Summary Results"
    click.echo(f"\n{title} ({result.now.isoformat()}):")
    click.echo(f"  Sources found:      {result.sources_found}")
    click.echo(f"  Sources processed:  {result.sources_processed}")
    click.echo(f"  Summaries ok:       {result.summaries_ok}")
    click.echo(f"  Summaries degraded: {result.summaries_degraded}")
    click.echo(f"  Rows written:       {result.rows_written}")
    click.echo(f"  Elapsed:            {result.elapsed_seconds:.2f}s")

    if result.dry_run:
        click.echo("\nSummaries:")
        for outcome in result.outcomes:
            s = outcome.summary
            click.echo(
                f"  {outcome.source_id}: enabled={s.enabled} entries={s.entry_count} "
                f"activity={s.activity:.2f} enriched={s.enriched_ratio:.2f}"
            )

    if result.errors:
        click.echo("\nErrors:")
        for err in result.errors:
            click.echo(click.style(f"  - {err}", fg="red"))

    if result.aborted:
        sys.exit(1)


@main.command("init-db")
def init_db() -> None:
    """Create the source_summary table."""
    from src.storage.database import Database
    from src.summary.repository import SourceSummaryRepository

    async def run():
        db = Database()
        await db.connect()
        try:
            await SourceSummaryRepository(db).create_table()
        finally:
            await db.close()

    asyncio.run(run())
    click.echo("Database initialized successfully")


@main.command()
@click.argument("source_id")
def show(source_id: str) -> None:
    """Print the stored summary of SOURCE_ID as JSON."""
    from src.storage.database import Database
    from src.summary.repository import SourceSummaryRepository

    async def run():
        db = Database()
        await db.connect()
        try:
            return await SourceSummaryRepository(db).get(source_id)
        finally:
            await db.close()

    row = asyncio.run(run())
    if row is None:
        click.echo(click.style(f"No summary stored for {source_id}", fg="yellow"))
        sys.exit(1)

    click.echo(json.dumps(row.to_dict(), indent=2))


@main.command()
def health() -> None:
    """Check database connectivity."""
    logger = get_logger(__name__)

    async def check() -> bool:
        from src.storage.database import Database

        db = Database()
        try:
            await db.connect()
            return await db.health_check()
        except Exception as e:
            logger.error("Postgres health check failed", error=str(e))
            return False
        finally:
            await db.close()

    healthy = asyncio.run(check())

    click.echo("\nHealth Check Results:")
    click.echo("-" * 40)
    icon = "✓" if healthy else "✗"
    color = "green" if healthy else "red"
    click.echo(click.style(f"  {icon} postgres: {healthy}", fg=color))
    click.echo("-" * 40)

    if healthy:
        click.echo(click.style("All core services healthy!", fg="green"))
        sys.exit(0)
    click.echo(click.style("Some services are unhealthy", fg="red"))
    sys.exit(1)


if __name__ == "__main__":
    main()
