"""RentCast residential tools."""

from __future__ import annotations

from typing import Any

from propbot.agent.tools.base import Tool
from propbot.integrations.rentcast import RentCastClient
from propbot.integrations.tavily import TavilyClient


class _RentalTool(Tool):
    def __init__(self, client: RentCastClient, web: TavilyClient | None = None):
        self.client = client
        self.web = web

    async def _web_fallback(self, query: str) -> dict[str, Any]:
        """Answer from web search when RentCast is not configured."""
        if self.web is None:
            return {"error": "rental data unavailable", "message": "Rental data isn't available right now."}
        result = await self.web.search(query)
        if result.get("error"):
            return {**result, "message": "Rental data isn't available right now."}
        return {**result, "message": f"Found {len(result.get('results') or [])} web results."}


class RentalPropertyDetailsTool(_RentalTool):
    name = "rental_property_details"
    description = "Residential property details (beds, baths, size, owner) from RentCast. Residential only."
    parameters = {
        "type": "object",
        "properties": {"address": {"type": "string", "description": "Complete residential address"}},
        "required": ["address"],
    }

    async def execute(self, user_context: Any = None, address: str = "", **kwargs: Any) -> dict[str, Any]:
        if not self.client.configured:
            return await self._web_fallback(f"{address} property details rental information")
        result = await self.client.get_property_details(address)
        if result.get("error"):
            return {**result, "message": result["error"]}
        return {"success": True, "property": result, "message": "Found residential property details."}


class RentEstimateTool(_RentalTool):
    name = "rent_estimate"
    description = "Long-term monthly rent estimate for a residential address from RentCast."
    parameters = {
        "type": "object",
        "properties": {
            "address": {"type": "string", "description": "Complete residential address"},
            "property_type": {"type": "string", "description": "Apartment, Single Family, Condo, ..."},
            "bedrooms": {"type": "number", "description": "Number of bedrooms"},
            "bathrooms": {"type": "number", "description": "Number of bathrooms"},
            "square_feet": {"type": "number", "description": "Square footage"},
        },
        "required": ["address"],
    }

    async def execute(
        self,
        user_context: Any = None,
        address: str = "",
        property_type: str | None = None,
        bedrooms: float | None = None,
        bathrooms: float | None = None,
        square_feet: float | None = None,
        **kwargs: Any,
    ) -> dict[str, Any]:
        if not self.client.configured:
            return await self._web_fallback(f"{address} rent estimate rental price")
        options = {
            "propertyType": property_type,
            "bedrooms": bedrooms,
            "bathrooms": bathrooms,
            "squareFootage": square_feet,
        }
        result = await self.client.get_rent_estimate(address, options)
        if result.get("error"):
            return {**result, "message": result["error"]}
        return {**result, "success": True, "message": f"Estimated rent is about ${result['rent']}/month."}


def rental_tools(client: RentCastClient, web: TavilyClient | None = None) -> list[Tool]:
    return [RentalPropertyDetailsTool(client, web), RentEstimateTool(client, web)]
