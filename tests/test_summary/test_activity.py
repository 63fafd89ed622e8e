"""Tests for the activity (posting cadence) scorer."""

import random
from datetime import timedelta

import pytest

from src.summary.activity import ActivityScorer
from src.summary.config import SummaryConfig


@pytest.fixture
def scorer(config):
    return ActivityScorer(config)


class TestInsufficientSignal:
    """Edge cases that score zero."""

    def test_five_entries_score_zero(self, scorer, now, make_entry):
        entries = [make_entry(now - timedelta(days=i)) for i in range(5)]
        assert scorer.score(entries, now) == 0.0

    def test_nineteen_entries_score_zero_regardless_of_spacing(self, scorer, now, make_entry):
        entries = [make_entry(now - timedelta(days=i)) for i in range(19)]
        assert scorer.score(entries, now) == 0.0

    def test_empty(self, scorer, now):
        assert scorer.score([], now) == 0.0

    def test_dormant_source(self, scorer, now, make_entry):
        last = now - timedelta(days=31)
        entries = [make_entry(last - timedelta(days=i)) for i in range(25)]
        assert scorer.score(entries, now) == 0.0

    def test_all_entries_within_one_day(self, scorer, now, make_entry):
        start = now - timedelta(days=3)
        entries = [make_entry(start + timedelta(minutes=30 * i)) for i in range(25)]
        assert scorer.score(entries, now) == 0.0

    def test_no_entries_in_verify_window(self, scorer, now, make_entry):
        # Hourly history far back, then one lone entry 29 days ago
        start = now - timedelta(days=29, hours=30)
        entries = [make_entry(start + timedelta(hours=i)) for i in range(24)]
        entries.append(make_entry(now - timedelta(days=29)))
        assert scorer.score(entries, now) == 0.0


class TestCadence:
    """Tests for the interval ratio."""

    def test_daily_cadence_scenario(self, scorer, now, daily_entries):
        # avg 1d, verify period 20d, 19 entries after day 5 -> 19/20
        assert scorer.score(daily_entries, now) == pytest.approx(0.95, abs=1e-9)

    def test_order_insensitive(self, scorer, now, daily_entries):
        shuffled = list(daily_entries)
        random.Random(7).shuffle(shuffled)
        assert scorer.score(shuffled, now) == scorer.score(daily_entries, now)

    def test_input_not_mutated(self, scorer, now, daily_entries):
        reversed_entries = list(reversed(daily_entries))
        snapshot = list(reversed_entries)
        scorer.score(reversed_entries, now)
        assert reversed_entries == snapshot

    def test_recent_burst_exceeds_one(self, scorer, now, make_entry):
        # Sparse history: one entry every 10 days for 200 days
        old = [make_entry(now - timedelta(days=200 - 10 * i)) for i in range(19)]
        # Burst of 30 entries in the last 3 days
        burst = [make_entry(now - timedelta(hours=2 * i + 1)) for i in range(30)]
        score = scorer.score(old + burst, now)
        assert score > 1.0

    def test_slowdown_below_one(self, scorer, now, make_entry):
        # Dense history ending three weeks ago, one entry last week
        start = now - timedelta(days=40)
        dense = [make_entry(start + timedelta(hours=12 * i)) for i in range(40)]
        dense.append(make_entry(now - timedelta(days=6)))
        score = scorer.score(dense, now)
        assert 0.0 < score < 1.0

    def test_verify_period_at_least_one_week(self, now, make_entry):
        # 20 entries every 2 hours ending now: avg interval * 20 < 7 days
        scorer = ActivityScorer(SummaryConfig())
        entries = [make_entry(now - timedelta(hours=2 * i)) for i in range(20)]
        # Span 38h, avg 2h, verify period 7d, all 20 entries inside
        expected = timedelta(hours=2) / (timedelta(days=7) / 20)
        assert scorer.score(entries, now) == pytest.approx(expected)


class TestConfigurable:
    """Thresholds come from SummaryConfig."""

    def test_lower_min_entry_count(self, now, make_entry):
        config = SummaryConfig(activity_min_entry_count=5)
        entries = [make_entry(now - timedelta(days=i + 1)) for i in range(5)]
        assert ActivityScorer(config).score(entries, now) > 0.0

    def test_shorter_inactive_interval(self, now, daily_entries):
        config = SummaryConfig(activity_max_inactive_days=0.5)
        # Last entry is exactly one day before now
        assert ActivityScorer(config).score(daily_entries, now) == 0.0
