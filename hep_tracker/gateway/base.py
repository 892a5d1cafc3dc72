"""Record gateway contract.

The record store offers list/filter/create/delete by record id and no
multi-record transactions. Implementations raise GatewayUnavailable for
transport, authentication and server failures.
"""

from __future__ import annotations

from typing import Protocol

from hep_tracker.gateway.records import AssignmentRecord, ClientRecord, CompletionRecord, ExerciseRecord


class RecordGateway(Protocol):
    async def list_clients(self) -> list[ClientRecord]: ...

    async def find_client_by_email(self, email: str) -> ClientRecord | None: ...

    async def list_exercises(self) -> list[ExerciseRecord]: ...

    async def create_exercise(
        self,
        name: str,
        description: str | None = None,
        category: str | None = None,
        instructions: str | None = None,
    ) -> ExerciseRecord: ...

    async def list_assignments_for_client(self, email: str) -> list[AssignmentRecord]: ...

    async def create_assignment(self, client_id: str, exercise_id: str, sets: int, reps: int) -> AssignmentRecord: ...

    async def delete_assignment(self, assignment_id: str) -> None: ...

    async def list_completions_for_client(self, email: str) -> list[CompletionRecord]: ...

    async def create_completion(
        self,
        assignment_id: str,
        day: str,
        notes: str | None = None,
    ) -> CompletionRecord: ...

    async def delete_completion(self, completion_id: str) -> None: ...

    async def aclose(self) -> None: ...
