"""Tavily web search client."""

from __future__ import annotations

from typing import Any

from loguru import logger

from propbot.integrations.base import ProviderClient, json_or_error

NOT_CONFIGURED = "Web search is not available right now. Please contact support."


class TavilyClient(ProviderClient):
    """Async client for Tavily's search endpoint."""

    name = "tavily"

    def __init__(
        self,
        api_key: str = "",
        base_url: str = "https://api.tavily.com",
        max_results: int = 5,
        **kwargs: Any,
    ) -> None:
        super().__init__(api_key=api_key, base_url=base_url, **kwargs)
        self.max_results = max_results

    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.api_key}", "Content-Type": "application/json"}

    async def search(self, query: str, max_results: int | None = None) -> dict[str, Any]:
        """
        Search the web.

        Returns:
            ``{"query", "results": [{title, snippet, link, score}], "answer"}``
            or ``{"error": ...}``.
        """
        if not self.configured:
            return {"error": NOT_CONFIGURED}

        payload = {
            "query": query,
            "max_results": max_results or self.max_results,
            "include_answer": True,
            "include_images": False,
            "search_depth": "basic",
            "topic": "general",
        }
        response = await self._send("POST", "/search", json=payload, label="Tavily web search")
        if response.status_code >= 400:
            logger.warning(f"Web search failed: {response.status_code}")
            return {"error": f"Search failed: {response.reason_phrase or response.status_code}"}

        data = json_or_error(response, "Tavily")
        if not isinstance(data, dict) or data.get("error"):
            return data if isinstance(data, dict) else {"error": "Search failed: unexpected response"}

        results = [
            {
                "title": item.get("title", ""),
                "snippet": item.get("content", ""),
                "link": item.get("url", ""),
                "score": item.get("score"),
            }
            for item in data.get("results") or []
        ]
        logger.info(f"Web search completed: {len(results)} results")
        return {
            "query": data.get("query", query),
            "results": results,
            "answer": data.get("answer"),
            "response_time": data.get("response_time"),
        }
