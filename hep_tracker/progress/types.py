"""Value types shared by the completion index, reconciler and aggregators."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

from pydantic import BaseModel

# Canonical calendar day, always "YYYY-MM-DD".
CalendarDay = str

# Per-assignment checkbox state for one target day.
SelectionState = dict[str, bool]

# assignment id -> completion record id, for one target day.
CompletionIndex = dict[str, str]


@dataclass(frozen=True)
class CompletionEdit:
    """A single write needed to make the store match the selection.

    For "create" the target is an assignment id, for "delete" it is the
    completion record id.
    """

    action: Literal["create", "delete"]
    target_id: str
    day: CalendarDay


@dataclass(frozen=True)
class FailedEdit:
    """An edit whose create/delete call failed during commit."""

    edit: CompletionEdit
    error: str


@dataclass
class EditSet:
    """Minimal create/delete edits for one target day."""

    day: CalendarDay
    to_create: list[str] = field(default_factory=list)
    to_delete: list[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.to_create and not self.to_delete

    def edits(self) -> list[CompletionEdit]:
        """Flatten into individual edits, creates first."""
        return [CompletionEdit("create", assignment_id, self.day) for assignment_id in self.to_create] + [
            CompletionEdit("delete", completion_id, self.day) for completion_id in self.to_delete
        ]


class WeekBucket(BaseModel):
    """One bar of the weekly progress chart.

    Attributes:
        day: Canonical calendar day
        completed: Number of completion records on that day
        weekday: Short weekday name (e.g. "Tue")
        short_date: Day and month (e.g. "05/03")
        full_date: Long form used by the chart tooltip (e.g. "Mar 05, 2024")
    """

    day: CalendarDay
    completed: int
    weekday: str
    short_date: str
    full_date: str
