"""Request and response bodies for the HTTP API."""

from __future__ import annotations

from pydantic import BaseModel, Field


class SelectionRequest(BaseModel):
    """Checkbox state for one day, keyed by assignment id."""

    selection: dict[str, bool]


class ExerciseCreateRequest(BaseModel):
    name: str = Field(min_length=1)
    description: str | None = None
    category: str | None = None
    instructions: str | None = None


class AssignmentCreateRequest(BaseModel):
    client_id: str = Field(min_length=1)
    exercise_id: str = Field(min_length=1)
    sets: int = Field(default=3, ge=1)
    reps: int = Field(default=10, ge=1)


class ClientResponse(BaseModel):
    id: str
    name: str
    email: str
    status: str | None = None


class ExerciseResponse(BaseModel):
    id: str
    name: str
    description: str | None = None
    category: str | None = None
    instructions: str | None = None


class AssignmentResponse(BaseModel):
    id: str
    client_id: str | None
    exercise_id: str | None
    sets: int
    reps: int


class FailedEditResponse(BaseModel):
    action: str
    target_id: str
    day: str
    error: str
