"""Timezone helpers that define "today" for canonical calendar days."""

from datetime import date, datetime
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from hep_tracker.config.settings import settings


def get_local_timezone() -> ZoneInfo:
    """Get the configured local timezone as a ZoneInfo object.

    Returns:
        ZoneInfo for settings.local_timezone, UTC if it cannot be loaded
    """
    try:
        return ZoneInfo(settings.local_timezone or "UTC")
    except (ZoneInfoNotFoundError, ValueError):
        return ZoneInfo("UTC")


def now_local() -> datetime:
    """Current datetime in the local timezone."""
    return datetime.now(get_local_timezone())


def today_local() -> date:
    """Current calendar date in the local timezone."""
    return now_local().date()
