"""Configuration for the source summary computation.

Every time constant and threshold used by the scorer, the aggregator and
the batch job lives here. All settings can be overridden via ``SUMMARY_*``
environment variables, and tests construct the config directly to pin
thresholds independently of the process environment.
"""

from datetime import datetime, timedelta, timezone

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class SummaryConfig(BaseSettings):
    """Settings for per-source summary computation."""

    model_config = SettingsConfigDict(
        env_prefix="SUMMARY_",
        case_sensitive=False,
        extra="ignore",
    )

    # Batch driver
    sources_limit: int = Field(
        default=100,
        ge=1,
        description="Maximum number of distinct source ids summarized per run",
    )
    batch_timeout_seconds: float | None = Field(
        default=None,
        gt=0,
        description="Timeout for the whole batch (None = no timeout)",
    )

    # Enrichment evaluation window
    enrich_start_date: datetime = Field(
        default=datetime(2023, 9, 29, tzinfo=timezone.utc),
        description="Entries created before this instant never count toward enrichment",
    )
    enrich_eval_days: float = Field(
        default=30.0,
        gt=0,
        description="Length of the trailing enrichment evaluation window",
    )

    # Source flags
    stalled_threshold_hours: float = Field(
        default=24.0,
        gt=0,
        description="A processing source not updated for longer than this is stalled",
    )

    # Activity scoring
    activity_min_entry_count: int = Field(
        default=20,
        ge=2,
        description="Entries required before cadence is evaluated",
    )
    activity_max_inactive_days: float = Field(
        default=30.0,
        gt=0,
        description="Sources silent for longer than this score zero",
    )
    activity_min_history_hours: float = Field(
        default=24.0,
        ge=0,
        description="Minimum first-to-last entry span for a cadence estimate",
    )
    activity_min_verify_days: float = Field(
        default=7.0,
        gt=0,
        description="Lower bound on the recent window used for comparison",
    )

    # Record vocabulary
    processing_status: str = "processing"
    completed_status: str = "completed"
    excluded_reject_reason: str = "low_engagement"
    error_reject_reason: str = "generic_error"

    @property
    def enrich_eval_period(self) -> timedelta:
        return timedelta(days=self.enrich_eval_days)

    @property
    def stalled_threshold(self) -> timedelta:
        return timedelta(hours=self.stalled_threshold_hours)

    @property
    def activity_max_inactive(self) -> timedelta:
        return timedelta(days=self.activity_max_inactive_days)

    @property
    def activity_min_history(self) -> timedelta:
        return timedelta(hours=self.activity_min_history_hours)

    @property
    def activity_min_verify_period(self) -> timedelta:
        return timedelta(days=self.activity_min_verify_days)
