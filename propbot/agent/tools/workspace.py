"""Workspace tools: user lookup, outcomes, data tables and smart data query."""

from __future__ import annotations

import re
from typing import Any

from loguru import logger

from propbot.agent.tools.base import Tool
from propbot.integrations.workspace import WorkspaceClient
from propbot.memory.conversation import UserContext

IDENTIFY_FIRST = {
    "error": "User context required",
    "message": "I couldn't match this number to a workspace account. Please contact support to link your phone.",
}

_WORD_RE = re.compile(r"[a-z0-9]+")
_STOP_WORDS = {
    "the", "and", "for", "with", "what", "show", "tell", "give", "about", "from",
    "that", "this", "have", "are", "was", "how", "many", "much", "me", "my", "our",
}


def _outcomes_from(response: dict[str, Any]) -> list[dict[str, Any]]:
    data = response.get("data")
    if isinstance(data, dict) and isinstance(data.get("outcomes"), list):
        return data["outcomes"]
    if isinstance(data, list):
        return data
    if isinstance(response.get("outcomes"), list):
        return response["outcomes"]
    return []


def _tables_from(response: dict[str, Any]) -> list[dict[str, Any]]:
    data = response.get("data")
    if isinstance(data, dict) and isinstance(data.get("dataTables"), list):
        return data["dataTables"]
    if isinstance(response.get("tables"), list):
        return response["tables"]
    if isinstance(data, list):
        return data
    return []


def _records_from(response: dict[str, Any]) -> list[dict[str, Any]]:
    data = response.get("data")
    if isinstance(data, dict) and isinstance(data.get("data"), list):
        return data["data"]
    if isinstance(data, list):
        return data
    return []


def _tokens(text: str) -> set[str]:
    return {w for w in _WORD_RE.findall((text or "").lower()) if len(w) > 2 and w not in _STOP_WORDS}


def select_outcome(query: str, outcomes: list[dict[str, Any]]) -> dict[str, Any]:
    """Pick the outcome whose title and description share the most words with ``query``."""
    wanted = _tokens(query)

    def score(outcome: dict[str, Any]) -> int:
        text = f"{outcome.get('title') or outcome.get('name') or ''} {outcome.get('description') or ''}"
        return len(wanted & _tokens(text))

    best = max(outcomes, key=score)
    return best if score(best) > 0 else outcomes[0]


def _table_name(table: dict[str, Any]) -> str:
    return table.get("displayTableName") or table.get("name") or str(table.get("id", ""))


def format_data_summary(tables: list[dict[str, Any]], outcome_title: str, sample_size: int = 3) -> str:
    """Compact text summary of table records, skipping id and timestamp fields."""
    lines = [f'Data from "{outcome_title}":']
    for table in tables:
        records = table["records"]
        lines.append(f"{table['table_name']}: {len(records)} records")
        for record in records[:sample_size]:
            fields = [
                (key, value)
                for key, value in record.items()
                if key != "id" and "_id" not in key.lower() and not key.endswith("_at")
            ][:6]
            if fields:
                lines.append("  - " + ", ".join(f"{k}: {v}" for k, v in fields))
        if len(records) > sample_size:
            lines.append(f"  ... and {len(records) - sample_size} more records")
    return "\n".join(lines)


class _WorkspaceTool(Tool):
    def __init__(self, client: WorkspaceClient):
        self.client = client


class LookupWorkspaceUserTool(_WorkspaceTool):
    name = "lookup_workspace_user"
    description = "Identify a workspace user by phone number (format +1234567890)."
    parameters = {
        "type": "object",
        "properties": {"phone_number": {"type": "string", "description": "Phone number in E.164 format"}},
        "required": ["phone_number"],
    }

    async def execute(self, user_context: Any = None, phone_number: str = "", **kwargs: Any) -> dict[str, Any]:
        context = await self.client.lookup_user_by_phone(phone_number)
        if context is None:
            return {"success": False, "message": "No user found for this phone number"}
        return {
            "success": True,
            "user_id": context.identity_id,
            "organization_id": context.organization_id,
            "name": context.display_name,
            "message": "User successfully identified",
        }


class ListWorkspaceOutcomesTool(_WorkspaceTool):
    name = "list_workspace_outcomes"
    description = "List the user's projects (outcomes) in their workspace."
    parameters = {
        "type": "object",
        "properties": {"limit": {"type": "integer", "description": "Maximum number of outcomes"}},
    }

    async def execute(self, user_context: UserContext | None = None, limit: int = 50, **kwargs: Any) -> dict[str, Any]:
        if user_context is None:
            return dict(IDENTIFY_FIRST)
        response = await self.client.get_outcomes(user_context, limit=limit)
        if response.get("error"):
            return response
        outcomes = _outcomes_from(response)
        return {
            "success": True,
            "outcomes": [
                {"id": o.get("id"), "title": o.get("title") or o.get("name"), "status": o.get("status")}
                for o in outcomes
            ],
            "message": f"You have {len(outcomes)} projects in your workspace.",
        }


class QueryWorkspaceDataTool(_WorkspaceTool):
    name = "query_workspace_data"
    description = (
        "Answer questions about the user's OWN workspace data (projects, outcomes, tables, "
        "metrics). Finds the most relevant project and returns a summary of its table records. "
        "Pass the user's question as the query."
    )
    parameters = {
        "type": "object",
        "properties": {
            "query": {"type": "string", "description": "The user's question, verbatim"},
            "category": {"type": "string", "description": "Data category to focus on"},
        },
        "required": ["query"],
    }

    def __init__(self, client: WorkspaceClient, max_tables: int = 3, page_size: int = 100):
        super().__init__(client)
        self.max_tables = max_tables
        self.page_size = page_size

    async def execute(self, user_context: UserContext | None = None, query: str = "", **kwargs: Any) -> dict[str, Any]:
        if user_context is None:
            return dict(IDENTIFY_FIRST)

        response = await self.client.get_outcomes(user_context)
        if response.get("error"):
            return {"error": f"Failed to get outcomes: {response['error']}", "message": "I couldn't reach your workspace right now."}

        outcomes = _outcomes_from(response)
        if not outcomes:
            return {"success": True, "message": "No outcomes found in your workspace. You don't have any project data yet."}

        outcome = select_outcome(" ".join(filter(None, [query, kwargs.get("category")])), outcomes)
        title = outcome.get("title") or outcome.get("name") or "Untitled"
        logger.info(f"Workspace query matched outcome {outcome.get('id')} ({title})")

        tables_response = await self.client.get_data_tables(user_context, outcome.get("id"))
        if tables_response.get("error"):
            return {"error": f"Failed to get data tables: {tables_response['error']}", "message": "I couldn't load that project's data."}

        tables = _tables_from(tables_response)
        base = {"success": True, "outcome": title, "outcome_id": outcome.get("id")}
        if not tables:
            return {**base, "message": f'The outcome "{title}" doesn\'t have any data tables yet.'}

        gathered = []
        for table in tables[: self.max_tables]:
            records_response = await self.client.get_table_data(user_context, table.get("id"), self.page_size, 0)
            if records_response.get("error"):
                logger.warning(f"Skipping table {table.get('id')}: {records_response['error']}")
                continue
            records = _records_from(records_response)
            if records:
                gathered.append({"table_id": table.get("id"), "table_name": _table_name(table), "records": records})

        table_refs = [{"id": t.get("id"), "name": _table_name(t)} for t in tables]
        if not gathered:
            return {**base, "tables": table_refs, "message": f"Found {len(tables)} tables but no data records."}

        total = sum(len(t["records"]) for t in gathered)
        return {
            **base,
            "tables": table_refs,
            "data": format_data_summary(gathered, title),
            "message": f'Found {total} records across {len(gathered)} tables in "{title}".',
        }


class GetDataTablesTool(_WorkspaceTool):
    name = "get_data_tables"
    description = "List the data tables of a specific workspace project (outcome)."
    parameters = {
        "type": "object",
        "properties": {"outcome_id": {"type": "string", "description": "Outcome/project ID"}},
        "required": ["outcome_id"],
    }

    async def execute(self, user_context: UserContext | None = None, outcome_id: str = "", **kwargs: Any) -> dict[str, Any]:
        if user_context is None:
            return dict(IDENTIFY_FIRST)
        response = await self.client.get_data_tables(user_context, outcome_id)
        if response.get("error"):
            return response
        tables = _tables_from(response)
        return {
            "success": True,
            "tables": [{"id": t.get("id"), "name": _table_name(t)} for t in tables],
            "message": f"That project has {len(tables)} data tables.",
        }


class GetTableDataTool(_WorkspaceTool):
    name = "get_table_data"
    description = "Fetch records from a specific workspace data table."
    parameters = {
        "type": "object",
        "properties": {
            "table_id": {"type": "string", "description": "Data table ID"},
            "limit": {"type": "integer", "description": "Number of records"},
            "offset": {"type": "integer", "description": "Pagination offset"},
        },
        "required": ["table_id"],
    }

    async def execute(
        self,
        user_context: UserContext | None = None,
        table_id: str = "",
        limit: int = 20,
        offset: int = 0,
        **kwargs: Any,
    ) -> dict[str, Any]:
        if user_context is None:
            return dict(IDENTIFY_FIRST)
        response = await self.client.get_table_data(user_context, table_id, limit, offset)
        if response.get("error"):
            return response
        records = _records_from(response)
        return {"success": True, "records": records, "message": f"Retrieved {len(records)} records."}


class GetChatHistoryTool(_WorkspaceTool):
    name = "get_chat_history"
    description = "Fetch workspace chat history for a project, or the list of conversations."
    parameters = {
        "type": "object",
        "properties": {"outcome_id": {"type": "string", "description": "Optional outcome/project ID"}},
    }

    async def execute(self, user_context: UserContext | None = None, outcome_id: str | None = None, **kwargs: Any) -> dict[str, Any]:
        if user_context is None:
            return dict(IDENTIFY_FIRST)
        response = await self.client.get_chat_history(user_context, outcome_id)
        if response.get("error"):
            return response
        return {"success": True, "history": response.get("data", response), "message": "Here is your recent workspace chat history."}


def workspace_tools(client: WorkspaceClient) -> list[Tool]:
    return [
        LookupWorkspaceUserTool(client),
        ListWorkspaceOutcomesTool(client),
        QueryWorkspaceDataTool(client),
        GetDataTablesTool(client),
        GetTableDataTool(client),
        GetChatHistoryTool(client),
    ]
