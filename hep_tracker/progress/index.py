"""Completion index.

Maps raw completion records onto canonical (assignment, day) keys so that
"is this assignment done on day D" and "which record do I delete when it is
unchecked" are plain dictionary lookups.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Iterator
from datetime import date

from loguru import logger

from hep_tracker.core.errors import SkipReason
from hep_tracker.gateway.records import CompletionRecord
from hep_tracker.progress.normalize import normalize_day, normalize_link_id, require_day
from hep_tracker.progress.types import CalendarDay, CompletionIndex


def completion_days(completions: Iterable[CompletionRecord]) -> Iterator[tuple[CompletionRecord, CalendarDay]]:
    """Yield each completion with its canonical day, skipping unparseable dates."""
    for completion in completions:
        day = normalize_day(completion.completed_on)
        if day is None:
            logger.debug(
                f"Excluding completion {completion.id}: {SkipReason.UNPARSEABLE_DATE} ({completion.completed_on!r})"
            )
            continue
        yield completion, day


def build_index(completions: Iterable[CompletionRecord], day: date | CalendarDay) -> CompletionIndex:
    """Build assignment id -> completion id for one calendar day.

    Completions without a resolvable assignment link are excluded. If two
    completions resolve to the same assignment on the same day, the later
    one in iteration order wins.

    Args:
        completions: Raw completion records
        day: Target calendar day

    Returns:
        Mapping of canonical assignment id to completion record id
    """
    target = require_day(day)
    index: CompletionIndex = {}

    for completion, completed_on in completion_days(completions):
        if completed_on != target:
            continue
        assignment_id = normalize_link_id(completion.assignment)
        if assignment_id is None:
            logger.debug(f"Excluding completion {completion.id}: {SkipReason.MISSING_LINK_IDENTITY}")
            continue
        if assignment_id in index:
            logger.warning(
                f"Duplicate completion for assignment {assignment_id} on {target}: "
                f"{index[assignment_id]} superseded by {completion.id}"
            )
        index[assignment_id] = completion.id

    return index


def build_week_index(
    completions: Iterable[CompletionRecord],
    week_start: date | CalendarDay,
    week_end: date | CalendarDay,
) -> dict[CalendarDay, int]:
    """Count completion records per day inside [week_start, week_end].

    Every record counts, including several for the same assignment. Records
    with unparseable dates are left out.
    """
    start = require_day(week_start)
    end = require_day(week_end)

    counts: Counter[CalendarDay] = Counter()
    for _completion, completed_on in completion_days(completions):
        # canonical days sort lexicographically in date order
        if start <= completed_on <= end:
            counts[completed_on] += 1

    return dict(counts)
