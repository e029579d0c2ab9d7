"""ATTOM property tools and the multi-provider smart property search."""

from __future__ import annotations

from abc import abstractmethod
from typing import Any, Awaitable, Callable

from loguru import logger

from propbot.agent.tools.base import Tool
from propbot.integrations.attom import AttomClient, build_attom_params
from propbot.search.property import MultiProviderSearch, SearchHints

_ADDRESS_SCHEMA = {
    "type": "object",
    "properties": {
        "address": {"type": "string", "description": "Complete street address, e.g. 123 Main St, Chicago, IL"},
        "city": {"type": "string", "description": "City name"},
        "state": {"type": "string", "description": "State abbreviation (e.g. IL, CA)"},
        "zip_code": {"type": "string", "description": "ZIP code"},
    },
    "required": ["address"],
}

_ADDRESS_ONLY_NOTE = " Only use when an explicit street address is provided, never for company names."


class _AttomTool(Tool):
    """An ATTOM endpoint exposed as a tool taking address parts."""

    parameters = _ADDRESS_SCHEMA
    summary_label = "property data"

    def __init__(self, client: AttomClient):
        self.client = client

    @abstractmethod
    def _endpoint(self) -> Callable[[dict[str, Any]], Awaitable[dict[str, Any]]]:
        """The client coroutine this tool calls."""

    async def execute(
        self,
        user_context: Any = None,
        address: str = "",
        city: str | None = None,
        state: str | None = None,
        zip_code: str | None = None,
        **kwargs: Any,
    ) -> dict[str, Any]:
        params = build_attom_params(address, city, state, zip_code)
        logger.info(f"{self.name}: {params.get('address1', '')}")
        result = await self._endpoint()(params)
        if result.get("error"):
            return {**result, "message": result.get("message") or f"I couldn't find {self.summary_label} for that address."}
        return {**result, "message": f"Found {self.summary_label} for that address."}


class PropertyDetailTool(_AttomTool):
    name = "property_detail"
    description = "Detailed property information (commercial or residential) from ATTOM." + _ADDRESS_ONLY_NOTE
    summary_label = "property details"

    def _endpoint(self):
        return self.client.property_detail


class PropertyAssessmentTool(_AttomTool):
    name = "property_assessment"
    description = "Property tax assessment information from ATTOM." + _ADDRESS_ONLY_NOTE
    summary_label = "assessment data"

    def _endpoint(self):
        return self.client.assessment


class PropertyValuationTool(_AttomTool):
    name = "property_valuation"
    description = "Automated valuation (AVM) for a property from ATTOM." + _ADDRESS_ONLY_NOTE
    summary_label = "a valuation"

    def _endpoint(self):
        return self.client.valuation


class PropertySalesHistoryTool(_AttomTool):
    name = "property_sales_history"
    description = "Sales history for a property from ATTOM." + _ADDRESS_ONLY_NOTE
    summary_label = "sales history"

    def _endpoint(self):
        return self.client.sales_history


class PropertyMarketTrendsTool(_AttomTool):
    name = "property_market_trends"
    description = "Local sales trends for the market area around an address, from ATTOM."
    summary_label = "market trends"

    def _endpoint(self):
        return self.client.market_trends


class SmartPropertySearchTool(Tool):
    name = "smart_property_search"
    description = (
        "Go-to property search when the user gives a street address. Tries ATTOM first, then "
        "RentCast for residential rentals, then web search." + _ADDRESS_ONLY_NOTE
    )
    parameters = {
        "type": "object",
        "properties": {
            "query": {"type": "string", "description": "Natural language property question"},
            "address": {"type": "string", "description": "Property street address"},
            "city": {"type": "string", "description": "City name"},
            "state": {"type": "string", "description": "State abbreviation"},
            "zip_code": {"type": "string", "description": "ZIP code"},
        },
    }

    def __init__(self, search: MultiProviderSearch):
        self.search = search

    async def execute(
        self,
        user_context: Any = None,
        query: str = "",
        address: str | None = None,
        city: str | None = None,
        state: str | None = None,
        zip_code: str | None = None,
        **kwargs: Any,
    ) -> dict[str, Any]:
        query = query or address or " ".join(p for p in (city, state, zip_code) if p)
        if not query:
            return {"error": "missing query", "message": "Please include the property address you want me to look up."}
        hints = SearchHints(address=address, city=city, state=state, zip_code=zip_code)
        result = await self.search.search(query, hints)
        return result.to_payload()


def property_tools(client: AttomClient, search: MultiProviderSearch) -> list[Tool]:
    return [
        PropertyDetailTool(client),
        PropertyAssessmentTool(client),
        PropertyValuationTool(client),
        PropertySalesHistoryTool(client),
        PropertyMarketTrendsTool(client),
        SmartPropertySearchTool(search),
    ]
