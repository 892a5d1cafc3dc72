"""Record shapes returned by the record store.

Linked fields (client, exercise, assignment) and date fields keep the raw
encoding the store delivered. A linked field can be a bare id, a list of
ids or a list of {"id": ...} objects; a date can be "YYYY-MM-DD", a full
ISO-8601 timestamp or a locale date string. Only the identity normalizer
in hep_tracker.progress.normalize interprets them.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

# Field names used by the hosted record store tables.
CLIENT_NAME = "Name"
CLIENT_EMAIL = "Email"
CLIENT_STATUS = "Status"
CLIENT_DATE_JOINED = "Date Joined"

EXERCISE_NAME = "Name"
EXERCISE_DESCRIPTION = "Description"
EXERCISE_CATEGORY = "Category"
EXERCISE_INSTRUCTIONS = "Instructions"

ASSIGNMENT_EXERCISE = "Exercise"
ASSIGNMENT_CLIENT = "Client"
ASSIGNMENT_SETS = "Sets"
ASSIGNMENT_REPS = "Reps"
ASSIGNMENT_CLIENT_EMAIL = "Client Email"

COMPLETION_ASSIGNMENT = "Assignment"
COMPLETION_DATE = "Completion Date"
COMPLETION_NOTES = "Notes"


def _as_int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


@dataclass(frozen=True)
class ClientRecord:
    id: str
    name: str
    email: str
    status: str | None = None
    date_joined: Any = None

    @classmethod
    def from_fields(cls, record_id: str, fields: dict[str, Any]) -> ClientRecord:
        return cls(
            id=record_id,
            name=str(fields.get(CLIENT_NAME) or ""),
            email=str(fields.get(CLIENT_EMAIL) or ""),
            status=fields.get(CLIENT_STATUS),
            date_joined=fields.get(CLIENT_DATE_JOINED),
        )


@dataclass(frozen=True)
class ExerciseRecord:
    id: str
    name: str
    description: str | None = None
    category: str | None = None
    instructions: str | None = None

    @classmethod
    def from_fields(cls, record_id: str, fields: dict[str, Any]) -> ExerciseRecord:
        return cls(
            id=record_id,
            name=str(fields.get(EXERCISE_NAME) or ""),
            description=fields.get(EXERCISE_DESCRIPTION),
            category=fields.get(EXERCISE_CATEGORY),
            instructions=fields.get(EXERCISE_INSTRUCTIONS),
        )


@dataclass(frozen=True)
class AssignmentRecord:
    """A prescribed exercise for one client.

    Attributes:
        id: Assignment record id (always a plain string)
        exercise: Raw linked exercise field
        client: Raw linked client field
        sets: Prescribed sets
        reps: Prescribed reps per set
    """

    id: str
    exercise: Any
    client: Any
    sets: int = 0
    reps: int = 0

    @classmethod
    def from_fields(cls, record_id: str, fields: dict[str, Any]) -> AssignmentRecord:
        return cls(
            id=record_id,
            exercise=fields.get(ASSIGNMENT_EXERCISE),
            client=fields.get(ASSIGNMENT_CLIENT),
            sets=_as_int(fields.get(ASSIGNMENT_SETS)),
            reps=_as_int(fields.get(ASSIGNMENT_REPS)),
        )


@dataclass(frozen=True)
class CompletionRecord:
    """An assignment marked done on one calendar day.

    Attributes:
        id: Completion record id
        assignment: Raw linked assignment field
        completed_on: Raw completion date field
        notes: Free-text notes, if any
    """

    id: str
    assignment: Any
    completed_on: Any
    notes: str | None = None

    @classmethod
    def from_fields(cls, record_id: str, fields: dict[str, Any]) -> CompletionRecord:
        return cls(
            id=record_id,
            assignment=fields.get(COMPLETION_ASSIGNMENT),
            completed_on=fields.get(COMPLETION_DATE),
            notes=fields.get(COMPLETION_NOTES),
        )
