"""Weekly aggregator for the progress bar chart."""

from __future__ import annotations

from collections.abc import Iterable, Sized
from datetime import date, timedelta

from hep_tracker.gateway.records import CompletionRecord
from hep_tracker.progress.index import build_week_index
from hep_tracker.progress.normalize import require_day
from hep_tracker.progress.types import CalendarDay, WeekBucket
from hep_tracker.utils.calendar import week_start as start_of_week

DAYS_PER_WEEK = 7


def aggregate_week(
    completions: Iterable[CompletionRecord],
    week_start: date | CalendarDay,
    first_weekday: int | None = None,
) -> list[WeekBucket]:
    """Bucket completions into the seven days of a displayed week.

    Any day inside the week may be passed; it is moved back to the first
    day of its week. Days without completions are zero-filled, so the
    result always has exactly seven buckets.

    Args:
        completions: Raw completion records (any history length)
        week_start: A day inside the week to display
        first_weekday: 0=Monday ... 6=Sunday (defaults to settings.week_starts_on)
    """
    start = start_of_week(date.fromisoformat(require_day(week_start)), first_weekday)
    end = start + timedelta(days=DAYS_PER_WEEK - 1)
    counts = build_week_index(completions, start, end)

    buckets: list[WeekBucket] = []
    for offset in range(DAYS_PER_WEEK):
        day = start + timedelta(days=offset)
        key = day.isoformat()
        buckets.append(
            WeekBucket(
                day=key,
                completed=counts.get(key, 0),
                weekday=day.strftime("%a"),
                short_date=day.strftime("%d/%m"),
                full_date=day.strftime("%b %d, %Y"),
            )
        )
    return buckets


def daily_goal(assignments: Sized) -> int | None:
    """Goal line for the chart: one completion per assignment per day.

    None when nothing is assigned, in which case no goal line is drawn.
    """
    count = len(assignments)
    return count if count > 0 else None
