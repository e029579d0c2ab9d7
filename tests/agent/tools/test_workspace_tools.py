import httpx
import pytest

from propbot.agent.tools.workspace import (
    IDENTIFY_FIRST,
    GetDataTablesTool,
    ListWorkspaceOutcomesTool,
    LookupWorkspaceUserTool,
    QueryWorkspaceDataTool,
    format_data_summary,
    select_outcome,
)
from propbot.integrations.workspace import WorkspaceClient

OUTCOMES = [
    {"id": "o1", "title": "Retail Leasing", "description": "lease comps for storefronts"},
    {"id": "o2", "title": "Sales Pipeline", "description": "deals and revenue by quarter"},
]
RECORDS = [
    {"id": "r1", "deal": "Deal A", "amount": 100, "owner_id": "u1", "created_at": "2026-01-01"},
    {"id": "r2", "deal": "Deal B", "amount": 250, "owner_id": "u2", "created_at": "2026-01-02"},
]


def _workspace(seen: list[httpx.Request], overrides: dict | None = None) -> WorkspaceClient:
    routes = {
        "/outcomes/org-1": {"data": {"outcomes": OUTCOMES}},
        "/data-tables/org-1/o2": {"data": {"dataTables": [{"id": "t1", "displayTableName": "Deals"}]}},
        "/data-tables/org-1/o1": {"data": {"dataTables": []}},
        "/table-data/org-1/t1": {"data": {"data": RECORDS}},
        "/user/by-phone/+13125550100": {
            "data": {
                "user": {"id": 42, "fullName": "Dana Smith", "email": "dana@example.com"},
                "primaryOrganizationId": "org-1",
            }
        },
        **(overrides or {}),
    }

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        body = routes.get(request.url.path)
        if body is None:
            return httpx.Response(404, json={"error": "not found"})
        if isinstance(body, int):
            return httpx.Response(body)
        return httpx.Response(200, json=body)

    return WorkspaceClient(
        api_key="ws-key",
        base_url="https://workspace.test",
        transport=httpx.MockTransport(handler),
    )


def test_select_outcome_prefers_word_overlap():
    assert select_outcome("how much revenue did my deals make", OUTCOMES)["id"] == "o2"
    assert select_outcome("storefront lease comps", OUTCOMES)["id"] == "o1"


def test_select_outcome_defaults_to_first():
    assert select_outcome("hello", OUTCOMES)["id"] == "o1"


def test_format_data_summary_skips_ids_and_timestamps():
    summary = format_data_summary([{"table_name": "Deals", "records": RECORDS}], "Sales Pipeline", sample_size=1)

    assert summary.splitlines() == [
        'Data from "Sales Pipeline":',
        "Deals: 2 records",
        "  - deal: Deal A, amount: 100",
        "  ... and 1 more records",
    ]


@pytest.mark.asyncio
async def test_query_workspace_data_summarizes_best_outcome(user_context):
    seen: list[httpx.Request] = []
    tool = QueryWorkspaceDataTool(_workspace(seen))

    result = await tool.execute(user_context=user_context, query="revenue from deals")

    assert result["success"] is True
    assert result["outcome"] == "Sales Pipeline"
    assert result["message"] == 'Found 2 records across 1 tables in "Sales Pipeline".'
    assert "deal: Deal B, amount: 250" in result["data"]
    assert [r.url.path for r in seen] == ["/outcomes/org-1", "/data-tables/org-1/o2", "/table-data/org-1/t1"]
    headers = seen[0].headers
    assert headers["X-API-Key"] == "ws-key"
    assert headers["X-User-Id"] == "user-1"
    assert headers["X-Organization-Id"] == "org-1"


@pytest.mark.asyncio
async def test_query_workspace_data_requires_identified_user():
    seen: list[httpx.Request] = []
    result = await QueryWorkspaceDataTool(_workspace(seen)).execute(user_context=None, query="revenue")

    assert result == IDENTIFY_FIRST
    assert seen == []


@pytest.mark.asyncio
async def test_query_workspace_data_outcome_without_tables(user_context):
    result = await QueryWorkspaceDataTool(_workspace([])).execute(user_context=user_context, query="lease comps")

    assert result["success"] is True
    assert "doesn't have any data tables" in result["message"]


@pytest.mark.asyncio
async def test_query_workspace_data_reports_api_error(user_context):
    tool = QueryWorkspaceDataTool(_workspace([], overrides={"/outcomes/org-1": 500}))

    result = await tool.execute(user_context=user_context, query="revenue")

    assert result["error"] == "Failed to get outcomes: API Error: Internal Server Error"


@pytest.mark.asyncio
async def test_query_workspace_data_empty_workspace(user_context):
    tool = QueryWorkspaceDataTool(_workspace([], overrides={"/outcomes/org-1": {"data": {"outcomes": []}}}))

    result = await tool.execute(user_context=user_context, query="revenue")

    assert result["success"] is True
    assert "No outcomes found" in result["message"]


@pytest.mark.asyncio
async def test_list_outcomes_and_tables(user_context):
    client = _workspace([])

    outcomes = await ListWorkspaceOutcomesTool(client).execute(user_context=user_context)
    tables = await GetDataTablesTool(client).execute(user_context=user_context, outcome_id="o2")

    assert [o["title"] for o in outcomes["outcomes"]] == ["Retail Leasing", "Sales Pipeline"]
    assert tables["tables"] == [{"id": "t1", "name": "Deals"}]


@pytest.mark.asyncio
async def test_lookup_user_by_phone():
    seen: list[httpx.Request] = []
    client = _workspace(seen)

    context = await client.lookup("+13125550100")
    tool_result = await LookupWorkspaceUserTool(client).execute(phone_number="+13125550100")

    assert context.identity_id == "42"
    assert context.organization_id == "org-1"
    assert context.display_name == "Dana Smith"
    assert context.email == "dana@example.com"
    assert tool_result["user_id"] == "42"
    assert "%2B13125550100" in str(seen[0].url)


@pytest.mark.asyncio
async def test_lookup_unknown_phone_returns_none():
    assert await _workspace([]).lookup("+15550000000") is None


@pytest.mark.asyncio
async def test_lookup_skipped_when_not_configured():
    client = WorkspaceClient(api_key="", base_url="")
    assert client.configured is False
    assert await client.lookup("+13125550100") is None


@pytest.mark.asyncio
async def test_lookup_transport_error_is_not_fatal():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    client = WorkspaceClient(api_key="k", base_url="https://workspace.test", transport=httpx.MockTransport(handler))

    assert await client.lookup("+13125550100") is None
