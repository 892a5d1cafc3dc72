"""Relational record gateway.

Implements the record gateway contract on SQLAlchemy for local development
and tests. Linked fields come back as bare ids, unlike the hosted store's
single-element arrays; the identity normalizer handles both.
"""

from __future__ import annotations

from collections.abc import Generator
from contextlib import contextmanager

from loguru import logger
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from hep_tracker.core.errors import GatewayUnavailable
from hep_tracker.db.models import Assignment, Client, Completion, Exercise
from hep_tracker.db.session import get_session_factory
from hep_tracker.gateway.records import AssignmentRecord, ClientRecord, CompletionRecord, ExerciseRecord
from hep_tracker.progress.normalize import require_day


def _client_record(row: Client) -> ClientRecord:
    return ClientRecord(id=row.id, name=row.name, email=row.email, status=row.status, date_joined=row.date_joined)


def _exercise_record(row: Exercise) -> ExerciseRecord:
    return ExerciseRecord(
        id=row.id,
        name=row.name,
        description=row.description,
        category=row.category,
        instructions=row.instructions,
    )


def _assignment_record(row: Assignment) -> AssignmentRecord:
    return AssignmentRecord(id=row.id, exercise=row.exercise_id, client=row.client_id, sets=row.sets, reps=row.reps)


def _completion_record(row: Completion) -> CompletionRecord:
    return CompletionRecord(id=row.id, assignment=row.assignment_id, completed_on=row.completion_date, notes=row.notes)


class SqlRecordGateway:
    """Record gateway backed by a SQLAlchemy session factory.

    Calls are short, local and run inline on the event loop.
    """

    def __init__(self, session_factory: sessionmaker[Session] | None = None):
        self._session_factory = session_factory or get_session_factory()

    @contextmanager
    def _session(self, operation: str) -> Generator[Session, None, None]:
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"Record store operation {operation} failed: {e}")
            raise GatewayUnavailable(operation, str(e)) from e
        finally:
            session.close()

    @staticmethod
    def _client_id_for_email(session: Session, email: str) -> str | None:
        return session.execute(select(Client.id).where(func.lower(Client.email) == email.lower())).scalar_one_or_none()

    async def list_clients(self) -> list[ClientRecord]:
        with self._session("list_clients") as session:
            rows = session.execute(select(Client).order_by(Client.name)).scalars().all()
            return [_client_record(row) for row in rows]

    async def find_client_by_email(self, email: str) -> ClientRecord | None:
        with self._session("find_client_by_email") as session:
            row = session.execute(select(Client).where(func.lower(Client.email) == email.lower())).scalars().first()
            return _client_record(row) if row else None

    async def create_client(self, name: str, email: str, status: str | None = None, date_joined: str | None = None) -> ClientRecord:
        with self._session("create_client") as session:
            row = Client(
                name=name,
                email=email,
                status=status,
                date_joined=require_day(date_joined) if date_joined else None,
            )
            session.add(row)
            session.flush()
            return _client_record(row)

    async def list_exercises(self) -> list[ExerciseRecord]:
        with self._session("list_exercises") as session:
            rows = session.execute(select(Exercise).order_by(Exercise.name)).scalars().all()
            return [_exercise_record(row) for row in rows]

    async def create_exercise(
        self,
        name: str,
        description: str | None = None,
        category: str | None = None,
        instructions: str | None = None,
    ) -> ExerciseRecord:
        with self._session("create_exercise") as session:
            row = Exercise(name=name, description=description, category=category, instructions=instructions)
            session.add(row)
            session.flush()
            return _exercise_record(row)

    async def list_assignments_for_client(self, email: str) -> list[AssignmentRecord]:
        with self._session("list_assignments_for_client") as session:
            client_id = self._client_id_for_email(session, email)
            if client_id is None:
                return []
            rows = (
                session.execute(
                    select(Assignment).where(Assignment.client_id == client_id).order_by(Assignment.created_at.desc())
                )
                .scalars()
                .all()
            )
            return [_assignment_record(row) for row in rows]

    async def create_assignment(self, client_id: str, exercise_id: str, sets: int, reps: int) -> AssignmentRecord:
        with self._session("create_assignment") as session:
            row = Assignment(client_id=client_id, exercise_id=exercise_id, sets=sets, reps=reps)
            session.add(row)
            session.flush()
            return _assignment_record(row)

    async def delete_assignment(self, assignment_id: str) -> None:
        with self._session("delete_assignment") as session:
            row = session.get(Assignment, assignment_id)
            if row is not None:
                session.delete(row)

    async def list_completions_for_client(self, email: str) -> list[CompletionRecord]:
        with self._session("list_completions_for_client") as session:
            client_id = self._client_id_for_email(session, email)
            if client_id is None:
                return []
            rows = (
                session.execute(
                    select(Completion)
                    .join(Assignment, Completion.assignment_id == Assignment.id)
                    .where(Assignment.client_id == client_id)
                    .order_by(Completion.completion_date.desc())
                )
                .scalars()
                .all()
            )
            return [_completion_record(row) for row in rows]

    async def create_completion(self, assignment_id: str, day: str, notes: str | None = None) -> CompletionRecord:
        with self._session("create_completion") as session:
            row = Completion(assignment_id=assignment_id, completion_date=require_day(day), notes=notes)
            session.add(row)
            session.flush()
            return _completion_record(row)

    async def delete_completion(self, completion_id: str) -> None:
        with self._session("delete_completion") as session:
            row = session.get(Completion, completion_id)
            if row is None:
                logger.info(f"Completion {completion_id} already deleted")
                return
            session.delete(row)

    async def aclose(self) -> None:
        return None
