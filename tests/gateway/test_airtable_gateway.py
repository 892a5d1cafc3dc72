"""Tests for the hosted record store gateway using httpx.MockTransport."""

import json

import httpx
import pytest

from hep_tracker.core.errors import GatewayUnavailable
from hep_tracker.gateway.airtable import AirtableGateway, quote_formula_value
from hep_tracker.progress.index import build_index

BASE_URL = "https://api.airtable.test/v0/appTEST"


def make_gateway(handler) -> AirtableGateway:
    client = httpx.AsyncClient(base_url=BASE_URL, transport=httpx.MockTransport(handler))
    return AirtableGateway(client=client)


def records(*items, offset=None):
    payload = {"records": [{"id": record_id, "fields": fields} for record_id, fields in items]}
    if offset:
        payload["offset"] = offset
    return httpx.Response(200, json=payload)


def table(request: httpx.Request) -> str:
    return request.url.path.split("/")[3]


class TestSelect:
    @pytest.mark.asyncio
    async def test_follows_offset_until_last_page(self):
        seen_offsets = []

        def handler(request):
            assert table(request) == "Exercises"
            assert request.url.params.get_list("fields[]") == ["Name", "Description", "Category", "Instructions"]
            assert request.url.params["sort[0][field]"] == "Name"
            seen_offsets.append(request.url.params.get("offset"))
            if "offset" not in request.url.params:
                return records(("recEx1", {"Name": "Bridge"}), offset="page2")
            return records(("recEx2", {"Name": "Clamshell", "Category": "Hip"}))

        gateway = make_gateway(handler)
        exercises = await gateway.list_exercises()
        await gateway.aclose()

        assert seen_offsets == [None, "page2"]
        assert [e.name for e in exercises] == ["Bridge", "Clamshell"]
        assert exercises[1].category == "Hip"

    @pytest.mark.asyncio
    async def test_find_client_by_email_quotes_value(self):
        def handler(request):
            assert request.url.params["filterByFormula"] == "LOWER({Email}) = LOWER('o\\'neil@example.com')"
            assert request.url.params["maxRecords"] == "1"
            return records(("recClient1", {"Name": "Pat O'Neil", "Email": "o'neil@example.com"}))

        client = await make_gateway(handler).find_client_by_email("o'neil@example.com")
        assert client is not None
        assert client.id == "recClient1"

    @pytest.mark.asyncio
    async def test_find_client_none(self):
        client = await make_gateway(lambda request: records()).find_client_by_email("x@example.com")
        assert client is None


class TestAssignments:
    @pytest.mark.asyncio
    async def test_uses_client_email_lookup(self):
        requests = []

        def handler(request):
            requests.append(request)
            return records(("a1", {"Exercise": ["recEx1"], "Client": ["recClient1"], "Sets": 3, "Reps": 10}))

        assignments = await make_gateway(handler).list_assignments_for_client("ana@example.com")

        assert len(requests) == 1
        assert "{Client Email}" in requests[0].url.params["filterByFormula"]
        assert assignments[0].id == "a1"
        assert assignments[0].exercise == ["recEx1"]
        assert (assignments[0].sets, assignments[0].reps) == (3, 10)

    @pytest.mark.asyncio
    async def test_falls_back_to_client_id_on_invalid_formula(self):
        formulas = []

        def handler(request):
            formula = request.url.params.get("filterByFormula", "")
            formulas.append(formula)
            if "{Client Email}" in formula:
                return httpx.Response(422, json={"error": {"type": "INVALID_FILTER_BY_FORMULA"}})
            if table(request) == "Clients":
                return records(("recClient1", {"Name": "Ana", "Email": "ana@example.com"}))
            return records(("a1", {"Exercise": ["recEx1"], "Client": ["recClient1"], "Sets": "3", "Reps": "x"}))

        assignments = await make_gateway(handler).list_assignments_for_client("ana@example.com")

        assert formulas[-1] == "{Client} = 'recClient1'"
        assert assignments[0].sets == 3
        assert assignments[0].reps == 0

    @pytest.mark.asyncio
    async def test_other_errors_are_not_masked(self):
        def handler(request):
            return httpx.Response(401, json={"error": "AUTHENTICATION_REQUIRED"})

        with pytest.raises(GatewayUnavailable) as exc_info:
            await make_gateway(handler).list_assignments_for_client("ana@example.com")
        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_create_assignment_writes_linked_arrays(self):
        bodies = []

        def handler(request):
            body = json.loads(request.content)
            bodies.append(body)
            return records(("a9", body["records"][0]["fields"]))

        assignment = await make_gateway(handler).create_assignment("recClient1", "recEx1", 2, 12)

        assert bodies[0] == {"records": [{"fields": {"Client": ["recClient1"], "Exercise": ["recEx1"], "Sets": 2, "Reps": 12}}]}
        assert assignment.id == "a9"


class TestCompletions:
    @pytest.mark.asyncio
    async def test_list_filters_by_assignment_ids(self):
        completion_formulas = []

        def handler(request):
            if table(request) == "Assignments":
                return records(("a1", {"Client": ["recClient1"]}), ("a2", {"Client": ["recClient1"]}))
            completion_formulas.append(request.url.params["filterByFormula"])
            return records(
                ("comp1", {"Assignment": ["a1"], "Completion Date": "2024-03-05"}),
                ("comp2", {"Assignment": ["a2"], "Completion Date": "2024-03-05T00:00:00.000Z"}),
            )

        completions = await make_gateway(handler).list_completions_for_client("ana@example.com")

        assert completion_formulas == ["OR({Assignment} = 'a1',{Assignment} = 'a2')"]
        assert build_index(completions, "2024-03-05") == {"a1": "comp1", "a2": "comp2"}

    @pytest.mark.asyncio
    async def test_no_assignments_skips_completion_query(self):
        def handler(request):
            assert table(request) in {"Assignments", "Clients"}
            return records()

        assert await make_gateway(handler).list_completions_for_client("ana@example.com") == []

    @pytest.mark.asyncio
    async def test_create_completion_writes_canonical_day(self):
        bodies = []

        def handler(request):
            body = json.loads(request.content)
            bodies.append(body)
            return records(("comp1", body["records"][0]["fields"]))

        created = await make_gateway(handler).create_completion("a1", "2024-03-05T10:00:00Z")

        assert bodies[0]["records"][0]["fields"] == {"Assignment": ["a1"], "Completion Date": "2024-03-05"}
        assert created.id == "comp1"
        assert created.completed_on == "2024-03-05"

    @pytest.mark.asyncio
    async def test_delete_already_gone_is_success(self):
        def handler(request):
            assert request.method == "DELETE"
            assert request.url.path.endswith("/Completions/comp1")
            return httpx.Response(404, json={"error": "NOT_FOUND"})

        await make_gateway(handler).delete_completion("comp1")

    @pytest.mark.asyncio
    async def test_delete_server_error_raises(self):
        gateway = make_gateway(lambda request: httpx.Response(500, text="oops"))
        with pytest.raises(GatewayUnavailable) as exc_info:
            await gateway.delete_completion("comp1")
        assert exc_info.value.operation == "delete_completion"
        assert exc_info.value.status_code == 500


@pytest.mark.asyncio
async def test_transport_error_becomes_gateway_unavailable():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(GatewayUnavailable) as exc_info:
        await make_gateway(handler).list_clients()
    assert exc_info.value.status_code is None
    assert "connection refused" in str(exc_info.value)


def test_quote_formula_value():
    assert quote_formula_value("plain") == "'plain'"
    assert quote_formula_value("it's") == "'it\\'s'"
    assert quote_formula_value("a\\b") == "'a\\\\b'"
