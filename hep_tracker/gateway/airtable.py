"""Hosted record store gateway (Airtable REST API).

Tables: Clients, Exercises, Assignments, Completions.

- Selects follow the `offset` cursor until every page is read
- Values interpolated into filterByFormula are quote-escaped
- Linked fields are written as single-element id arrays
- Completion dates are always written as "YYYY-MM-DD"
"""

from __future__ import annotations

from typing import Any

import httpx
from loguru import logger

from hep_tracker.config.settings import settings
from hep_tracker.core.errors import GatewayUnavailable
from hep_tracker.gateway import records as f
from hep_tracker.gateway.records import AssignmentRecord, ClientRecord, CompletionRecord, ExerciseRecord
from hep_tracker.progress.normalize import require_day

CLIENTS_TABLE = "Clients"
EXERCISES_TABLE = "Exercises"
ASSIGNMENTS_TABLE = "Assignments"
COMPLETIONS_TABLE = "Completions"

# Airtable answers 422 when a formula names a field the table does not have.
_INVALID_FORMULA_STATUS = 422

RawRecord = tuple[str, dict[str, Any]]


def quote_formula_value(value: str) -> str:
    """Quote a string for use inside filterByFormula."""
    escaped = value.replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"


class AirtableGateway:
    """Thin async client for the hosted record store.

    Args:
        api_key: Personal access token
        base_id: Base identifier (app...)
        api_url: REST root, without the base id
        timeout: Per-request timeout in seconds
        client: Preconfigured client (its base_url must already include the base id)
    """

    def __init__(
        self,
        api_key: str = "",
        base_id: str = "",
        *,
        api_url: str = "https://api.airtable.com/v0",
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ):
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=f"{api_url.rstrip('/')}/{base_id}",
            headers={"Authorization": f"Bearer {api_key}"},
            timeout=timeout,
        )

    @classmethod
    def from_settings(cls) -> AirtableGateway:
        return cls(
            settings.airtable_api_key,
            settings.airtable_base_id,
            api_url=settings.airtable_api_url,
            timeout=settings.gateway_timeout_seconds,
        )

    async def _request(self, operation: str, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        try:
            response = await self._client.request(method, path, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            raise GatewayUnavailable(operation, f"HTTP {status}: {e.response.text[:200]}", status_code=status) from e
        except httpx.RequestError as e:
            raise GatewayUnavailable(operation, str(e) or type(e).__name__) from e

        if not response.content:
            return {}
        return response.json()

    async def _select(
        self,
        operation: str,
        table: str,
        *,
        formula: str | None = None,
        fields: list[str] | None = None,
        sort: tuple[str, str] | None = None,
        max_records: int | None = None,
    ) -> list[RawRecord]:
        params: list[tuple[str, str | int]] = []
        if formula:
            params.append(("filterByFormula", formula))
        for field in fields or []:
            params.append(("fields[]", field))
        if sort:
            params.append(("sort[0][field]", sort[0]))
            params.append(("sort[0][direction]", sort[1]))
        if max_records:
            params.append(("maxRecords", max_records))

        records: list[RawRecord] = []
        offset: str | None = None
        while True:
            page_params = [*params, ("offset", offset)] if offset else params
            payload = await self._request(operation, "GET", f"/{table}", params=page_params)
            records.extend((raw["id"], raw.get("fields") or {}) for raw in payload.get("records", []))
            offset = payload.get("offset")
            if not offset:
                break

        logger.debug(f"{operation}: {len(records)} record(s) from {table}")
        return records

    async def _create(self, operation: str, table: str, fields: dict[str, Any]) -> RawRecord:
        payload = await self._request(operation, "POST", f"/{table}", json={"records": [{"fields": fields}]})
        created = payload.get("records") or []
        if not created:
            raise GatewayUnavailable(operation, "store returned no record")
        return created[0]["id"], created[0].get("fields") or {}

    async def _delete(self, operation: str, table: str, record_id: str) -> None:
        try:
            await self._request(operation, "DELETE", f"/{table}/{record_id}")
        except GatewayUnavailable as e:
            if e.status_code != 404:
                raise
            logger.info(f"{operation}: {record_id} already deleted")

    async def list_clients(self) -> list[ClientRecord]:
        rows = await self._select(
            "list_clients",
            CLIENTS_TABLE,
            fields=[f.CLIENT_NAME, f.CLIENT_EMAIL, f.CLIENT_STATUS, f.CLIENT_DATE_JOINED],
            sort=(f.CLIENT_NAME, "asc"),
        )
        return [ClientRecord.from_fields(record_id, fields) for record_id, fields in rows]

    async def find_client_by_email(self, email: str) -> ClientRecord | None:
        rows = await self._select(
            "find_client_by_email",
            CLIENTS_TABLE,
            formula=f"LOWER({{{f.CLIENT_EMAIL}}}) = LOWER({quote_formula_value(email)})",
            max_records=1,
        )
        if not rows:
            return None
        return ClientRecord.from_fields(*rows[0])

    async def list_exercises(self) -> list[ExerciseRecord]:
        rows = await self._select(
            "list_exercises",
            EXERCISES_TABLE,
            fields=[f.EXERCISE_NAME, f.EXERCISE_DESCRIPTION, f.EXERCISE_CATEGORY, f.EXERCISE_INSTRUCTIONS],
            sort=(f.EXERCISE_NAME, "asc"),
        )
        return [ExerciseRecord.from_fields(record_id, fields) for record_id, fields in rows]

    async def create_exercise(
        self,
        name: str,
        description: str | None = None,
        category: str | None = None,
        instructions: str | None = None,
    ) -> ExerciseRecord:
        fields: dict[str, Any] = {f.EXERCISE_NAME: name}
        if description:
            fields[f.EXERCISE_DESCRIPTION] = description
        if category:
            fields[f.EXERCISE_CATEGORY] = category
        if instructions:
            fields[f.EXERCISE_INSTRUCTIONS] = instructions
        return ExerciseRecord.from_fields(*await self._create("create_exercise", EXERCISES_TABLE, fields))

    async def list_assignments_for_client(self, email: str) -> list[AssignmentRecord]:
        """List a client's assignments, newest first.

        Uses the "Client Email" lookup field when the table has one, and falls
        back to filtering on the linked client record id otherwise.
        """
        fields = [f.ASSIGNMENT_EXERCISE, f.ASSIGNMENT_SETS, f.ASSIGNMENT_REPS, f.ASSIGNMENT_CLIENT]
        sort = ("Assignment ID", "desc")

        try:
            rows = await self._select(
                "list_assignments_for_client",
                ASSIGNMENTS_TABLE,
                formula=f"LOWER({{{f.ASSIGNMENT_CLIENT_EMAIL}}}) = LOWER({quote_formula_value(email)})",
                fields=fields,
                sort=sort,
            )
            if rows:
                return [AssignmentRecord.from_fields(record_id, row) for record_id, row in rows]
        except GatewayUnavailable as e:
            if e.status_code != _INVALID_FORMULA_STATUS:
                raise
            logger.warning(f"Lookup field '{f.ASSIGNMENT_CLIENT_EMAIL}' missing, falling back to client id: {e}")

        client = await self.find_client_by_email(email)
        if client is None:
            return []

        rows = await self._select(
            "list_assignments_for_client",
            ASSIGNMENTS_TABLE,
            formula=f"{{{f.ASSIGNMENT_CLIENT}}} = {quote_formula_value(client.id)}",
            fields=fields,
            sort=sort,
        )
        return [AssignmentRecord.from_fields(record_id, row) for record_id, row in rows]

    async def create_assignment(self, client_id: str, exercise_id: str, sets: int, reps: int) -> AssignmentRecord:
        fields = {
            f.ASSIGNMENT_CLIENT: [client_id],
            f.ASSIGNMENT_EXERCISE: [exercise_id],
            f.ASSIGNMENT_SETS: sets,
            f.ASSIGNMENT_REPS: reps,
        }
        return AssignmentRecord.from_fields(*await self._create("create_assignment", ASSIGNMENTS_TABLE, fields))

    async def delete_assignment(self, assignment_id: str) -> None:
        await self._delete("delete_assignment", ASSIGNMENTS_TABLE, assignment_id)

    async def list_completions_for_client(self, email: str) -> list[CompletionRecord]:
        """List completions linked to any of the client's assignments, newest first."""
        assignments = await self.list_assignments_for_client(email)
        if not assignments:
            return []

        clauses = [f"{{{f.COMPLETION_ASSIGNMENT}}} = {quote_formula_value(a.id)}" for a in assignments]
        formula = clauses[0] if len(clauses) == 1 else f"OR({','.join(clauses)})"

        rows = await self._select(
            "list_completions_for_client",
            COMPLETIONS_TABLE,
            formula=formula,
            fields=[f.COMPLETION_ASSIGNMENT, f.COMPLETION_DATE, f.COMPLETION_NOTES],
            sort=(f.COMPLETION_DATE, "desc"),
        )
        return [CompletionRecord.from_fields(record_id, row) for record_id, row in rows]

    async def create_completion(self, assignment_id: str, day: str, notes: str | None = None) -> CompletionRecord:
        fields: dict[str, Any] = {
            f.COMPLETION_ASSIGNMENT: [assignment_id],
            f.COMPLETION_DATE: require_day(day),
        }
        if notes:
            fields[f.COMPLETION_NOTES] = notes
        return CompletionRecord.from_fields(*await self._create("create_completion", COMPLETIONS_TABLE, fields))

    async def delete_completion(self, completion_id: str) -> None:
        await self._delete("delete_completion", COMPLETIONS_TABLE, completion_id)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
