"""Web search tool backed by Tavily."""

from __future__ import annotations

from typing import Any

from propbot.agent.tools.base import Tool
from propbot.integrations.tavily import TavilyClient
from propbot.memory.ttl_cache import TTLCache


class WebSearchTool(Tool):
    """Search the web for current information."""

    name = "web_search"
    description = (
        "Search the web for current information: market trends, news, general facts. "
        "Pass the key terms of the user's question as the query."
    )
    parameters = {
        "type": "object",
        "properties": {
            "query": {"type": "string", "description": "Search query"},
            "max_results": {"type": "integer", "description": "Results (1-10)", "minimum": 1, "maximum": 10},
        },
        "required": ["query"],
    }

    def __init__(self, client: TavilyClient, cache_ttl_seconds: int = 300):
        self.client = client
        self.cache_ttl = cache_ttl_seconds
        self._cache = TTLCache(default_ttl_seconds=cache_ttl_seconds)

    async def execute(self, user_context: Any = None, query: str = "", max_results: int | None = None, **kwargs: Any) -> dict[str, Any]:
        n = min(max(max_results or self.client.max_results, 1), 10)

        cache_key = f"{query.lower()}:{n}"
        cached = self._cache.get(cache_key)
        if cached:
            return cached

        result = await self.client.search(query, n)
        if result.get("error"):
            return {**result, "message": "I couldn't search the web right now. Please try again."}

        count = len(result.get("results") or [])
        payload = {**result, "message": result.get("answer") or f"Found {count} web results."}
        self._cache.set(cache_key, payload, self.cache_ttl)
        return payload
