"""Read models returned by the application services and the HTTP API."""

from __future__ import annotations

from pydantic import BaseModel, Field

from hep_tracker.progress.streak import StreakLevel
from hep_tracker.progress.summary import ClientWeekSummary
from hep_tracker.progress.types import WeekBucket


class ChecklistItem(BaseModel):
    """One assigned exercise on a client's daily checklist."""

    assignment_id: str
    exercise_id: str | None = None
    exercise_name: str
    sets: int
    reps: int
    done: bool
    completion_id: str | None = None


class DailyChecklist(BaseModel):
    """A client's assignments for one day and which of them are done.

    read_only is set when the record store could not be reached; items is
    then empty and error carries the user-facing message.
    """

    client_email: str
    day: str
    items: list[ChecklistItem] = Field(default_factory=list)
    completed: int = 0
    total: int = 0
    read_only: bool = False
    error: str | None = None


class WeeklyProgress(BaseModel):
    """Seven-day bar chart data plus goal line and streak."""

    client_email: str
    week_start: str
    week_end: str
    title: str
    previous_week: str
    next_week: str
    buckets: list[WeekBucket]
    daily_goal: int | None = None
    streak: int = 0
    streak_level: StreakLevel = "low"
    read_only: bool = False
    error: str | None = None


class TherapistSummary(BaseModel):
    """Per-client completion counts for one displayed week."""

    week_start: str
    week_end: str
    title: str
    clients: list[ClientWeekSummary] = Field(default_factory=list)
    read_only: bool = False
    error: str | None = None
