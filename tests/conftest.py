"""Root conftest for all tests.

Provides an in-memory record gateway with failure injection and an
in-memory SQLite gateway, both usable by every test module.
"""

import asyncio
import itertools
from collections.abc import Iterator
from typing import Any

import pytest
from sqlalchemy.orm import sessionmaker

from hep_tracker.core.errors import GatewayUnavailable
from hep_tracker.db.session import create_db_engine, init_db
from hep_tracker.gateway.records import AssignmentRecord, ClientRecord, CompletionRecord, ExerciseRecord
from hep_tracker.gateway.sql import SqlRecordGateway
from hep_tracker.progress.normalize import normalize_link_id

CLIENT_EMAIL = "ana@example.com"
TARGET_DAY = "2024-03-05"


class FakeGateway:
    """Record gateway keeping records in memory, shaped like the hosted store.

    Linked fields are stored as single-element id arrays. Individual calls
    can be made to fail or hang:

    - fail_creates: assignment ids whose create_completion raises
    - fail_deletes: completion ids whose delete_completion raises
    - hang_creates: assignment ids whose create_completion never returns
    - flaky_creates: assignment id -> number of failures before succeeding
    - unavailable: every list call raises GatewayUnavailable
    """

    def __init__(self) -> None:
        self.clients: dict[str, ClientRecord] = {}
        self.exercises: dict[str, ExerciseRecord] = {}
        self.assignments: dict[str, AssignmentRecord] = {}
        self.completions: dict[str, CompletionRecord] = {}
        self.calls: list[tuple[str, str]] = []
        self.fail_creates: set[str] = set()
        self.fail_deletes: set[str] = set()
        self.hang_creates: set[str] = set()
        self.flaky_creates: dict[str, int] = {}
        self.unavailable = False
        self.closed = False
        self._ids = itertools.count(1)

    def _next_id(self, prefix: str) -> str:
        return f"{prefix}{next(self._ids)}"

    def _check_available(self, operation: str) -> None:
        if self.unavailable:
            raise GatewayUnavailable(operation, "connection refused")

    # seeding helpers

    def add_client(self, email: str = CLIENT_EMAIL, name: str = "Ana Lima", client_id: str | None = None) -> ClientRecord:
        client = ClientRecord(id=client_id or self._next_id("recClient"), name=name, email=email, status="Active")
        self.clients[client.id] = client
        return client

    def add_exercise(self, name: str, exercise_id: str | None = None) -> ExerciseRecord:
        exercise = ExerciseRecord(id=exercise_id or self._next_id("recEx"), name=name)
        self.exercises[exercise.id] = exercise
        return exercise

    def add_assignment(
        self, client_id: str, exercise_id: str, assignment_id: str | None = None, sets: int = 3, reps: int = 10
    ) -> AssignmentRecord:
        assignment = AssignmentRecord(
            id=assignment_id or self._next_id("recAsg"),
            exercise=[exercise_id],
            client=[client_id],
            sets=sets,
            reps=reps,
        )
        self.assignments[assignment.id] = assignment
        return assignment

    def add_completion(self, assignment: Any, completed_on: Any, completion_id: str | None = None) -> CompletionRecord:
        completion = CompletionRecord(id=completion_id or self._next_id("recComp"), assignment=assignment, completed_on=completed_on)
        self.completions[completion.id] = completion
        return completion

    def count(self, operation: str) -> int:
        return sum(1 for name, _ in self.calls if name == operation)

    # gateway contract

    async def list_clients(self) -> list[ClientRecord]:
        self._check_available("list_clients")
        return sorted(self.clients.values(), key=lambda c: c.name)

    async def find_client_by_email(self, email: str) -> ClientRecord | None:
        self._check_available("find_client_by_email")
        return next((c for c in self.clients.values() if c.email.lower() == email.lower()), None)

    async def list_exercises(self) -> list[ExerciseRecord]:
        self._check_available("list_exercises")
        return sorted(self.exercises.values(), key=lambda e: e.name)

    async def create_exercise(self, name, description=None, category=None, instructions=None) -> ExerciseRecord:
        self.calls.append(("create_exercise", name))
        exercise = ExerciseRecord(
            id=self._next_id("recEx"), name=name, description=description, category=category, instructions=instructions
        )
        self.exercises[exercise.id] = exercise
        return exercise

    async def list_assignments_for_client(self, email: str) -> list[AssignmentRecord]:
        self._check_available("list_assignments_for_client")
        client = await self.find_client_by_email(email)
        if client is None:
            return []
        return [a for a in self.assignments.values() if normalize_link_id(a.client) == client.id]

    async def create_assignment(self, client_id: str, exercise_id: str, sets: int, reps: int) -> AssignmentRecord:
        self.calls.append(("create_assignment", client_id))
        return self.add_assignment(client_id, exercise_id, sets=sets, reps=reps)

    async def delete_assignment(self, assignment_id: str) -> None:
        self.calls.append(("delete_assignment", assignment_id))
        self.assignments.pop(assignment_id, None)

    async def list_completions_for_client(self, email: str) -> list[CompletionRecord]:
        self._check_available("list_completions_for_client")
        assignment_ids = {a.id for a in await self.list_assignments_for_client(email)}
        return [c for c in self.completions.values() if normalize_link_id(c.assignment) in assignment_ids]

    async def create_completion(self, assignment_id: str, day: str, notes: str | None = None) -> CompletionRecord:
        self.calls.append(("create_completion", assignment_id))
        if assignment_id in self.hang_creates:
            await asyncio.Event().wait()
        if self.flaky_creates.get(assignment_id, 0) > 0:
            self.flaky_creates[assignment_id] -= 1
            raise GatewayUnavailable("create_completion", "HTTP 503: try again", status_code=503)
        if assignment_id in self.fail_creates:
            raise GatewayUnavailable("create_completion", "HTTP 500: server error", status_code=500)
        completion = self.add_completion([assignment_id], day)
        return completion

    async def delete_completion(self, completion_id: str) -> None:
        self.calls.append(("delete_completion", completion_id))
        if completion_id in self.fail_deletes:
            raise GatewayUnavailable("delete_completion", "HTTP 500: server error", status_code=500)
        self.completions.pop(completion_id, None)

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def fake_gateway() -> FakeGateway:
    """Empty in-memory record gateway."""
    return FakeGateway()


@pytest.fixture
def program_gateway() -> FakeGateway:
    """In-memory gateway with one client and three assignments.

    a1 (Bridge) and a2 (Clamshell) are open on TARGET_DAY, a3 (Heel raise)
    is already done via completion comp3.
    """
    gateway = FakeGateway()
    client = gateway.add_client(client_id="recClient1")
    bridge = gateway.add_exercise("Bridge", exercise_id="recEx1")
    clamshell = gateway.add_exercise("Clamshell", exercise_id="recEx2")
    heel_raise = gateway.add_exercise("Heel raise", exercise_id="recEx3")
    gateway.add_assignment(client.id, bridge.id, assignment_id="a1")
    gateway.add_assignment(client.id, clamshell.id, assignment_id="a2", sets=2, reps=15)
    gateway.add_assignment(client.id, heel_raise.id, assignment_id="a3")
    gateway.add_completion(["a3"], TARGET_DAY, completion_id="comp3")
    return gateway


@pytest.fixture
def sql_gateway() -> Iterator[SqlRecordGateway]:
    """SQL record gateway over a fresh in-memory SQLite database."""
    engine = create_db_engine("sqlite:///:memory:")
    init_db(engine)
    session_factory = sessionmaker(autoflush=False, bind=engine, expire_on_commit=False)
    yield SqlRecordGateway(session_factory)
    engine.dispose()
