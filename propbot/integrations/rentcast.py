"""RentCast residential property and rent estimate client."""

from __future__ import annotations

from typing import Any

from loguru import logger

from propbot.integrations.base import ProviderClient, clean_params, json_or_error

NOT_CONFIGURED = "Rental data service is not available right now. Please contact support."


class RentCastClient(ProviderClient):
    """Async client for the RentCast API."""

    name = "rentcast"

    def __init__(self, api_key: str = "", base_url: str = "https://api.rentcast.io/v1", **kwargs: Any) -> None:
        super().__init__(api_key=api_key, base_url=base_url, **kwargs)

    def _headers(self) -> dict[str, str]:
        return {"Accept": "application/json", "X-Api-Key": self.api_key}

    async def get_property_details(self, address: str) -> dict[str, Any]:
        """Return the first property record matching ``address``."""
        if not self.configured:
            return {"error": NOT_CONFIGURED}

        response = await self._send(
            "GET", "/properties", params={"address": address}, label="RentCast property details"
        )
        if response.status_code >= 400:
            return {"error": f"RentCast API failed: {response.reason_phrase or response.status_code}"}

        data = json_or_error(response, "RentCast")
        if isinstance(data, list) and data:
            return data[0]
        if isinstance(data, dict) and data.get("error"):
            return data
        return {"error": "I couldn't find that property. Please check the address and try again."}

    async def get_rent_estimate(self, address: str, options: dict[str, Any] | None = None) -> dict[str, Any]:
        """Long-term rent estimate, optionally refined by property type, bedrooms and so on."""
        if not self.configured:
            return {"error": NOT_CONFIGURED}

        params = clean_params({"address": address, **(options or {})})
        response = await self._send("GET", "/avm/rent/long-term", params=params, label="RentCast rent estimate")
        if response.status_code >= 400:
            return {"error": f"RentCast API failed: {response.reason_phrase or response.status_code}"}

        data = json_or_error(response, "RentCast")
        if isinstance(data, dict) and data.get("rent"):
            logger.info(f"RentCast rent estimate: ${data['rent']}/month")
            return data
        return {
            "error": (
                "I couldn't get a rent estimate for that property. It may not be a residential "
                "rental or the address needs to be more specific."
            )
        }
