"""Physiotherapist endpoints: client summary, exercise library, assignments."""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status
from loguru import logger

from hep_tracker.api.dependencies import get_program_service
from hep_tracker.api.schemas import (
    AssignmentCreateRequest,
    AssignmentResponse,
    ClientResponse,
    ExerciseCreateRequest,
    ExerciseResponse,
)
from hep_tracker.core.errors import GatewayUnavailable
from hep_tracker.gateway.records import ExerciseRecord
from hep_tracker.progress.normalize import normalize_link_id
from hep_tracker.services.program_service import ClientProgramService
from hep_tracker.services.views import TherapistSummary

router = APIRouter(tags=["therapist"])


def _unavailable(e: GatewayUnavailable) -> HTTPException:
    logger.error(f"Record store unavailable: {e}")
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail={"message": "The record store is unavailable. Please try again.", "retryable": True},
    )


def _exercise_response(exercise: ExerciseRecord) -> ExerciseResponse:
    return ExerciseResponse(
        id=exercise.id,
        name=exercise.name,
        description=exercise.description,
        category=exercise.category,
        instructions=exercise.instructions,
    )


@router.get("/therapist/summary", response_model=TherapistSummary)
async def get_summary(
    week_of: date | None = Query(default=None),
    service: ClientProgramService = Depends(get_program_service),
) -> TherapistSummary:
    return await service.therapist_summary(week_of)


@router.get("/therapist/clients", response_model=list[ClientResponse])
async def list_clients(service: ClientProgramService = Depends(get_program_service)) -> list[ClientResponse]:
    try:
        clients = await service.list_clients()
    except GatewayUnavailable as e:
        raise _unavailable(e) from e
    return [ClientResponse(id=c.id, name=c.name, email=c.email, status=c.status) for c in clients]


@router.post("/therapist/assignments", response_model=AssignmentResponse, status_code=status.HTTP_201_CREATED)
async def create_assignment(
    body: AssignmentCreateRequest,
    service: ClientProgramService = Depends(get_program_service),
) -> AssignmentResponse:
    try:
        assignment = await service.assign_exercise(body.client_id, body.exercise_id, body.sets, body.reps)
    except GatewayUnavailable as e:
        logger.warning(f"Assigning {body.exercise_id} to {body.client_id} failed: {e}")
        raise _unavailable(e) from e
    return AssignmentResponse(
        id=assignment.id,
        client_id=normalize_link_id(assignment.client),
        exercise_id=normalize_link_id(assignment.exercise),
        sets=assignment.sets,
        reps=assignment.reps,
    )


@router.get("/exercises", response_model=list[ExerciseResponse])
async def list_exercises(service: ClientProgramService = Depends(get_program_service)) -> list[ExerciseResponse]:
    try:
        exercises = await service.list_exercises()
    except GatewayUnavailable as e:
        raise _unavailable(e) from e
    return [_exercise_response(exercise) for exercise in exercises]


@router.post("/exercises", response_model=ExerciseResponse, status_code=status.HTTP_201_CREATED)
async def create_exercise(
    body: ExerciseCreateRequest,
    service: ClientProgramService = Depends(get_program_service),
) -> ExerciseResponse:
    try:
        exercise = await service.add_exercise(body.name, body.description, body.category, body.instructions)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e
    except GatewayUnavailable as e:
        raise _unavailable(e) from e
    return _exercise_response(exercise)
