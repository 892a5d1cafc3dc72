"""Identity normalizer.

Canonicalizes the two kinds of loosely-encoded values the record store
returns:
- linked-record fields: bare id, [id] or [{"id": id}]
- date fields: "YYYY-MM-DD", ISO-8601 timestamps or locale date strings

Both functions are total: invalid input yields None and the caller decides
whether to exclude the record. Nothing here raises.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from datetime import date, datetime
from typing import Any

from dateutil import parser as date_parser

from hep_tracker.progress.types import CalendarDay

_DAY_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")

# Two unrelated defaults: a date part missing from the text shows up as a mismatch.
_SENTINEL_DEFAULTS = (datetime(2000, 1, 1), datetime(2001, 2, 2))


def normalize_link_id(raw: Any) -> str | None:
    """Extract the canonical record id from a linked field.

    Args:
        raw: Bare id, list of ids, list of {"id": ...} objects, or an object
            exposing an ``id`` attribute

    Returns:
        The id as a string, or None for empty lists, None and blank values
    """
    value = raw
    if isinstance(value, (list, tuple)):
        if not value:
            return None
        value = value[0]

    if isinstance(value, Mapping):
        value = value.get("id")
    elif value is not None and not isinstance(value, (str, int)):
        value = getattr(value, "id", None)

    # bool is an int subclass and never a valid id
    if value is None or isinstance(value, bool) or not isinstance(value, (str, int)):
        return None

    text = str(value).strip()
    return text or None


def normalize_day(raw: Any) -> CalendarDay | None:
    """Reduce any supported date encoding to a canonical "YYYY-MM-DD".

    Strategies, in order:
    1. Already canonical: returned unchanged (after checking it is a real date)
    2. Strict ISO-8601 (date or datetime, "Z" suffix accepted)
    3. General date parsing (locale strings such as "3/5/2024" or "March 5, 2024");
       text missing the year, month or day (e.g. "10:30", "March 2024") is unparseable

    Time of day and UTC offset are dropped; the calendar date as written is kept.

    Returns:
        Canonical day string, or None if every strategy fails
    """
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, datetime):
        return raw.date().isoformat()
    if isinstance(raw, date):
        return raw.isoformat()
    if not isinstance(raw, str):
        return None

    text = raw.strip()
    if not text:
        return None

    if _DAY_PATTERN.match(text):
        try:
            date.fromisoformat(text)
        except ValueError:
            return None
        return text

    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date().isoformat()
    except ValueError:
        pass

    try:
        first, second = (date_parser.parse(text, default=default).date() for default in _SENTINEL_DEFAULTS)
    except (ValueError, OverflowError, TypeError):
        return None
    # Year, month or day was filled in from the default, not written in the text
    if first != second:
        return None
    return first.isoformat()


def require_day(value: date | str) -> CalendarDay:
    """Canonicalize a caller-supplied target day.

    Unlike normalize_day this is for arguments, not stored records, so an
    unusable value is a programming error.

    Raises:
        ValueError: If the value cannot be read as a calendar day
    """
    day = normalize_day(value)
    if day is None:
        raise ValueError(f"Not a calendar day: {value!r}")
    return day
