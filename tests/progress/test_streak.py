"""Tests for the streak calculator."""

from datetime import date, timedelta

import pytest

from hep_tracker.gateway.records import CompletionRecord
from hep_tracker.progress.streak import MAX_STREAK_DAYS, compute_streak, streak_level

TODAY = date(2024, 3, 5)


def on(*days_ago):
    return [
        CompletionRecord(id=f"c{i}", assignment=["a1"], completed_on=(TODAY - timedelta(days=n)).isoformat())
        for i, n in enumerate(days_ago)
    ]


class TestComputeStreak:
    def test_three_consecutive_days(self):
        assert compute_streak(on(0, 1, 2), TODAY) == 3

    def test_today_missing_is_zero(self):
        """No grace period: yesterday's run does not count until today is done."""
        assert compute_streak(on(1, 2), TODAY) == 0

    def test_future_completion_ignored(self):
        assert compute_streak(on(-1, 0), TODAY) == 1
        assert compute_streak(on(-1), TODAY) == 0

    def test_gap_ends_streak(self):
        assert compute_streak(on(0, 1, 3, 4), TODAY) == 2

    def test_several_completions_per_day_count_once(self):
        assert compute_streak(on(0, 0, 0, 1), TODAY) == 2

    def test_mixed_date_encodings(self):
        completions = [
            CompletionRecord(id="c1", assignment=["a1"], completed_on="2024-03-05T18:00:00.000Z"),
            CompletionRecord(id="c2", assignment=["a1"], completed_on="March 4, 2024"),
            CompletionRecord(id="c3", assignment=["a1"], completed_on="not-a-date"),
        ]
        assert compute_streak(completions, "2024-03-05") == 2

    def test_capped(self):
        assert compute_streak(on(*range(MAX_STREAK_DAYS + 30)), TODAY) == MAX_STREAK_DAYS

    def test_empty(self):
        assert compute_streak([], TODAY) == 0


@pytest.mark.parametrize(
    ("streak", "level"),
    [(0, "low"), (2, "low"), (3, "medium"), (6, "medium"), (7, "high"), (365, "high")],
)
def test_streak_level(streak, level):
    assert streak_level(streak) == level
