"""Week-window helpers for progress views.

The first day of the week is configurable (WEEK_STARTS_ON); the default
is Sunday, matching the en-US locale week the client app displays.
"""

from datetime import date, timedelta

from hep_tracker.config.settings import settings


def week_start(d: date, first_weekday: int | None = None) -> date:
    """Return the first day of the displayed week containing d.

    Args:
        d: Any day inside the week
        first_weekday: 0=Monday ... 6=Sunday (defaults to settings.week_starts_on)
    """
    if first_weekday is None:
        first_weekday = settings.week_starts_on
    return d - timedelta(days=(d.weekday() - first_weekday) % 7)


def week_end(d: date, first_weekday: int | None = None) -> date:
    """Return the last day of the displayed week containing d."""
    return week_start(d, first_weekday) + timedelta(days=6)


def shift_weeks(d: date, weeks: int) -> date:
    """Move d by a whole number of weeks (negative goes back)."""
    return d + timedelta(weeks=weeks)


def week_title(start: date) -> str:
    """Human-readable range, e.g. "Mar 03 - Mar 09, 2024"."""
    end = start + timedelta(days=6)
    return f"{start.strftime('%b %d')} - {end.strftime('%b %d, %Y')}"
