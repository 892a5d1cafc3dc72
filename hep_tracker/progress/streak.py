"""Streak calculator.

A streak is the number of consecutive calendar days, counting back from
today, with at least one completion. Today must itself have a completion;
there is no grace period for a day still in progress.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date, timedelta
from typing import Literal

from hep_tracker.gateway.records import CompletionRecord
from hep_tracker.progress.index import completion_days
from hep_tracker.progress.normalize import require_day
from hep_tracker.progress.types import CalendarDay

MAX_STREAK_DAYS = 365

StreakLevel = Literal["high", "medium", "low"]


def compute_streak(completions: Iterable[CompletionRecord], today: date | CalendarDay) -> int:
    """Count consecutive active days ending today.

    Completions dated after today are ignored. The walk is capped at
    MAX_STREAK_DAYS iterations.
    """
    today_key = require_day(today)
    active_days = {day for _completion, day in completion_days(completions) if day <= today_key}

    streak = 0
    current = date.fromisoformat(today_key)
    for _ in range(MAX_STREAK_DAYS):
        if current.isoformat() not in active_days:
            break
        streak += 1
        current -= timedelta(days=1)
    return streak


def streak_level(streak: int) -> StreakLevel:
    """Display tier for a streak: a week or more is high, three days medium."""
    if streak >= 7:
        return "high"
    if streak >= 3:
        return "medium"
    return "low"
