"""Client-facing endpoints: daily checklist and weekly progress.

Clients are addressed by email; session authentication happens in front
of this service.
"""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status
from loguru import logger

from hep_tracker.api.dependencies import get_program_service
from hep_tracker.api.schemas import FailedEditResponse, SelectionRequest
from hep_tracker.core.errors import GatewayUnavailable, PartialSaveFailure, UnknownAssignmentError
from hep_tracker.services.program_service import ClientProgramService
from hep_tracker.services.views import DailyChecklist, WeeklyProgress

router = APIRouter(prefix="/clients", tags=["clients"])


def _save_error(e: Exception) -> HTTPException:
    """Translate a failed save into the HTTP error the client app shows."""
    if isinstance(e, PartialSaveFailure):
        failed = [
            FailedEditResponse(
                action=item.edit.action,
                target_id=item.edit.target_id,
                day=item.edit.day,
                error=item.error,
            ).model_dump()
            for item in e.failed
        ]
        return HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={
                "message": "Some changes could not be saved. Please try again.",
                "retryable": True,
                "applied": len(e.applied),
                "failed": failed,
            },
        )
    if isinstance(e, UnknownAssignmentError):
        return HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Unknown assignment: {e.assignment_id}",
        )
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail={"message": "Your exercise records could not be loaded. Nothing was saved.", "retryable": True},
    )


@router.get("/{email}/today", response_model=DailyChecklist)
async def get_today(
    email: str,
    day: date | None = Query(default=None),
    service: ClientProgramService = Depends(get_program_service),
) -> DailyChecklist:
    return await service.daily_checklist(email, day)


@router.put("/{email}/today", response_model=DailyChecklist)
async def save_today(
    email: str,
    body: SelectionRequest,
    day: date | None = Query(default=None),
    service: ClientProgramService = Depends(get_program_service),
) -> DailyChecklist:
    """Save the whole checklist; only changed entries are written."""
    try:
        return await service.save_day(email, body.selection, day)
    except (PartialSaveFailure, UnknownAssignmentError, GatewayUnavailable) as e:
        logger.warning(f"Saving checklist for {email} failed: {e}")
        raise _save_error(e) from e


@router.post("/{email}/assignments/{assignment_id}/toggle", response_model=DailyChecklist)
async def toggle_assignment(
    email: str,
    assignment_id: str,
    day: date | None = Query(default=None),
    service: ClientProgramService = Depends(get_program_service),
) -> DailyChecklist:
    try:
        return await service.toggle_completion(email, assignment_id, day)
    except (PartialSaveFailure, UnknownAssignmentError, GatewayUnavailable) as e:
        logger.warning(f"Toggling {assignment_id} for {email} failed: {e}")
        raise _save_error(e) from e


@router.get("/{email}/progress", response_model=WeeklyProgress)
async def get_progress(
    email: str,
    week_of: date | None = Query(default=None),
    service: ClientProgramService = Depends(get_program_service),
) -> WeeklyProgress:
    return await service.weekly_progress(email, week_of)
