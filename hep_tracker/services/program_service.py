"""Client program service.

Wires the record gateway to the completion core:
1. Load assignments, completions and exercises concurrently
2. Build checklist, weekly progress and streak views from the raw records
3. Save a day's selection through a SelectionSession, then reload

A save never patches the previous view. After every commit, successful or
not, the next view is rebuilt from a fresh load of the store.
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, timedelta

from loguru import logger

from hep_tracker.config.settings import settings
from hep_tracker.core.errors import GatewayUnavailable
from hep_tracker.gateway.base import RecordGateway
from hep_tracker.gateway.records import AssignmentRecord, ClientRecord, CompletionRecord, ExerciseRecord
from hep_tracker.progress.index import build_index
from hep_tracker.progress.normalize import normalize_link_id, require_day
from hep_tracker.progress.notify import CompletionNotifier
from hep_tracker.progress.selection import SelectionSession
from hep_tracker.progress.streak import compute_streak, streak_level
from hep_tracker.progress.summary import ClientWeekSummary, summarize_client
from hep_tracker.progress.weekly import aggregate_week, daily_goal
from hep_tracker.services.views import ChecklistItem, DailyChecklist, TherapistSummary, WeeklyProgress
from hep_tracker.utils.calendar import shift_weeks, week_start, week_title
from hep_tracker.utils.timezone import today_local

UNAVAILABLE_MESSAGE = "Your exercise records could not be loaded right now. Please try again shortly."
UNKNOWN_EXERCISE = "Unknown exercise"


@dataclass(frozen=True)
class ClientProgram:
    """Everything loaded from the store for one client."""

    email: str
    assignments: list[AssignmentRecord]
    completions: list[CompletionRecord]
    exercises: list[ExerciseRecord]


def _as_day(value: date | str | None) -> str:
    return require_day(value) if value is not None else today_local().isoformat()


class ClientProgramService:
    """Client checklist, progress and therapist views over a record gateway.

    Args:
        gateway: Record store
        notifier: Observers told about applied completion edits
        timeout_seconds: Per-call timeout used when committing a selection
        max_attempts: Per-edit attempts used when committing a selection
    """

    def __init__(
        self,
        gateway: RecordGateway,
        notifier: CompletionNotifier | None = None,
        *,
        timeout_seconds: float | None = None,
        max_attempts: int | None = None,
    ):
        self.gateway = gateway
        self.notifier = notifier or CompletionNotifier()
        self.timeout_seconds = timeout_seconds if timeout_seconds is not None else settings.gateway_timeout_seconds
        self.max_attempts = max_attempts if max_attempts is not None else settings.commit_max_attempts

    async def load(self, email: str) -> ClientProgram:
        """Load a client's assignments, completions and the exercise library.

        Raises:
            GatewayUnavailable: If any of the three loads fails
        """
        assignments, completions, exercises = await asyncio.gather(
            self.gateway.list_assignments_for_client(email),
            self.gateway.list_completions_for_client(email),
            self.gateway.list_exercises(),
        )
        logger.debug(
            f"Loaded program for {email}: {len(assignments)} assignment(s), "
            f"{len(completions)} completion(s), {len(exercises)} exercise(s)"
        )
        return ClientProgram(email=email, assignments=assignments, completions=completions, exercises=exercises)

    def _checklist(self, program: ClientProgram, day: str) -> DailyChecklist:
        names = {exercise.id: exercise.name for exercise in program.exercises}
        index = build_index(program.completions, day)

        items: list[ChecklistItem] = []
        for assignment in program.assignments:
            exercise_id = normalize_link_id(assignment.exercise)
            completion_id = index.get(assignment.id)
            items.append(
                ChecklistItem(
                    assignment_id=assignment.id,
                    exercise_id=exercise_id,
                    exercise_name=names.get(exercise_id, UNKNOWN_EXERCISE) if exercise_id else UNKNOWN_EXERCISE,
                    sets=assignment.sets,
                    reps=assignment.reps,
                    done=completion_id is not None,
                    completion_id=completion_id,
                )
            )

        return DailyChecklist(
            client_email=program.email,
            day=day,
            items=items,
            completed=sum(1 for item in items if item.done),
            total=len(items),
        )

    async def daily_checklist(self, email: str, day: date | str | None = None) -> DailyChecklist:
        """Checklist for one day (today by default).

        Falls back to an empty read-only checklist when the store is down.
        """
        target = _as_day(day)
        try:
            program = await self.load(email)
        except GatewayUnavailable as e:
            logger.bind(client=email, day=target).error(f"Could not load checklist: {e}")
            return DailyChecklist(client_email=email, day=target, read_only=True, error=UNAVAILABLE_MESSAGE)
        return self._checklist(program, target)

    async def open_session(self, email: str, day: date | str | None = None) -> SelectionSession:
        """Load the client's records and seed a selection session for one day.

        Raises:
            GatewayUnavailable: If the load fails
        """
        program = await self.load(email)
        session = SelectionSession(
            _as_day(day),
            client_email=email,
            notifier=self.notifier,
            timeout_seconds=self.timeout_seconds,
            max_attempts=self.max_attempts,
        )
        session.seed(program.assignments, program.completions)
        return session

    async def save_day(self, email: str, selection: Mapping[str, bool], day: date | str | None = None) -> DailyChecklist:
        """Persist a day's checkbox state and return the reloaded checklist.

        Only entries that differ from the store produce writes.

        Raises:
            GatewayUnavailable: If the records cannot be loaded before saving
            UnknownAssignmentError: If the selection names an assignment the client does not have
            PartialSaveFailure: If some creates/deletes failed (the rest are kept)
        """
        session = await self.open_session(email, day)
        session.apply(selection)
        await session.commit(self.gateway)
        return await self.daily_checklist(email, session.day)

    async def toggle_completion(self, email: str, assignment_id: str, day: date | str | None = None) -> DailyChecklist:
        """Flip a single assignment for one day and return the reloaded checklist."""
        session = await self.open_session(email, day)
        session.toggle(assignment_id)
        await session.commit(self.gateway)
        return await self.daily_checklist(email, session.day)

    async def weekly_progress(self, email: str, week_of: date | str | None = None) -> WeeklyProgress:
        """Bar chart buckets, goal line and streak for the week containing week_of."""
        today = today_local()
        anchor = date.fromisoformat(require_day(week_of)) if week_of is not None else today
        start = week_start(anchor)
        end = start + timedelta(days=6)
        frame = {
            "client_email": email,
            "week_start": start.isoformat(),
            "week_end": end.isoformat(),
            "title": week_title(start),
            "previous_week": shift_weeks(start, -1).isoformat(),
            "next_week": shift_weeks(start, 1).isoformat(),
        }

        try:
            program = await self.load(email)
        except GatewayUnavailable as e:
            logger.bind(client=email, week_start=start.isoformat()).error(f"Could not load weekly progress: {e}")
            return WeeklyProgress(**frame, buckets=aggregate_week([], start), read_only=True, error=UNAVAILABLE_MESSAGE)

        streak = compute_streak(program.completions, today)
        return WeeklyProgress(
            **frame,
            buckets=aggregate_week(program.completions, start),
            daily_goal=daily_goal(program.assignments),
            streak=streak,
            streak_level=streak_level(streak),
        )

    async def _summarize(self, client: ClientRecord, start: date) -> ClientWeekSummary:
        assignments, completions = await asyncio.gather(
            self.gateway.list_assignments_for_client(client.email),
            self.gateway.list_completions_for_client(client.email),
        )
        return summarize_client(client, assignments, completions, start)

    async def therapist_summary(self, week_of: date | str | None = None) -> TherapistSummary:
        """Assigned and completed counts for every client in one week."""
        anchor = date.fromisoformat(require_day(week_of)) if week_of is not None else today_local()
        start = week_start(anchor)
        end = start + timedelta(days=6)
        frame = {"week_start": start.isoformat(), "week_end": end.isoformat(), "title": week_title(start)}

        try:
            clients = await self.gateway.list_clients()
            summaries = await asyncio.gather(*(self._summarize(client, start) for client in clients))
        except GatewayUnavailable as e:
            logger.error(f"Could not load therapist summary for week of {start}: {e}")
            return TherapistSummary(**frame, read_only=True, error=UNAVAILABLE_MESSAGE)

        return TherapistSummary(**frame, clients=list(summaries))

    async def list_clients(self) -> list[ClientRecord]:
        return await self.gateway.list_clients()

    async def list_exercises(self) -> list[ExerciseRecord]:
        return await self.gateway.list_exercises()

    async def add_exercise(
        self,
        name: str,
        description: str | None = None,
        category: str | None = None,
        instructions: str | None = None,
    ) -> ExerciseRecord:
        if not name.strip():
            raise ValueError("Exercise name is required")
        exercise = await self.gateway.create_exercise(name.strip(), description, category, instructions)
        logger.info(f"Added exercise {exercise.id} ({exercise.name})")
        return exercise

    async def assign_exercise(self, client_id: str, exercise_id: str, sets: int, reps: int) -> AssignmentRecord:
        """Prescribe an exercise to a client.

        Raises:
            ValueError: If ids are missing or sets/reps are below 1
        """
        if not client_id or not exercise_id:
            raise ValueError("Both a client and an exercise are required")
        if sets < 1 or reps < 1:
            raise ValueError("Sets and reps must be at least 1")
        assignment = await self.gateway.create_assignment(client_id, exercise_id, sets, reps)
        logger.info(f"Assigned exercise {exercise_id} to client {client_id}: {sets}x{reps} ({assignment.id})")
        return assignment
