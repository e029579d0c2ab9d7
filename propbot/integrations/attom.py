"""ATTOM property data API client (commercial and residential)."""

from __future__ import annotations

from typing import Any

from loguru import logger

from propbot.integrations.base import ProviderClient, clean_params, json_or_error

NOT_CONFIGURED = "Property data service is not available right now. Please contact support."

# Parameter names ATTOM expects in lowercase form.
_PARAM_ALIASES = {
    "zip_code": "postalcode",
    "zipCode": "postalcode",
    "postal_code": "postalcode",
    "attom_id": "attomid",
    "property_type": "propertytype",
    "geo_id_v4": "geoidv4",
}


def split_address(address: str) -> tuple[str, str]:
    """Split ``"123 Main St, Chicago, IL"`` into ATTOM's ``address1``/``address2``."""
    street, _, rest = address.partition(",")
    return street.strip(), rest.strip()


def build_attom_params(
    address: str | None = None,
    city: str | None = None,
    state: str | None = None,
    zip_code: str | None = None,
    **extra: Any,
) -> dict[str, Any]:
    """Build ATTOM query parameters from loose address parts."""
    params: dict[str, Any] = {}
    if address:
        street, locality = split_address(address)
        if not locality:
            locality = " ".join(p for p in (city, state, zip_code) if p)
        params["address1"] = street
        if locality:
            params["address2"] = locality
    else:
        if zip_code:
            params["postalcode"] = zip_code
        if city and state:
            params["address2"] = f"{city}, {state}"
    for key, value in extra.items():
        params[_PARAM_ALIASES.get(key, key.lower())] = value
    return clean_params(params)


class AttomClient(ProviderClient):
    """Async client for the ATTOM property API."""

    name = "attom"

    def __init__(
        self,
        api_key: str = "",
        base_url: str = "https://api.gateway.attomdata.com/propertyapi/v1.0.0",
        **kwargs: Any,
    ) -> None:
        super().__init__(api_key=api_key, base_url=base_url, **kwargs)

    def _headers(self) -> dict[str, str]:
        return {"Accept": "application/json", "apikey": self.api_key}

    async def call(self, endpoint: str, params: dict[str, Any]) -> dict[str, Any]:
        """
        Call an ATTOM endpoint.

        ATTOM reports its own status inside the body: ``status.code`` 0 is
        success and 400 means no matching property.
        """
        if not self.configured:
            return {"error": NOT_CONFIGURED}

        logger.info(f"ATTOM API call: {endpoint}")
        response = await self._send("GET", endpoint, params=params, label=f"ATTOM API {endpoint}")
        if response.status_code >= 400:
            logger.warning(f"ATTOM API HTTP error: {response.status_code}")
            return {"error": f"ATTOM API failed: {response.reason_phrase or response.status_code}"}

        data = json_or_error(response, "ATTOM")
        status = (data.get("status") or {}) if isinstance(data, dict) else {}
        code = status.get("code")
        if code == 0:
            logger.info(f"ATTOM API success: {status.get('total', 0)} results")
            return data
        if code == 400:
            return {
                "error": (
                    "No property data found for the provided address. The property may not be "
                    "in the ATTOM database or the address format needs adjustment."
                ),
                "no_results": True,
                "details": status.get("msg"),
            }
        return {"error": f"ATTOM API: {status.get('msg') or 'Unknown error'}"}

    async def property_snapshot(self, params: dict[str, Any]) -> dict[str, Any]:
        return await self.call("/property/snapshot", params)

    async def property_detail(self, params: dict[str, Any]) -> dict[str, Any]:
        """Property detail, trying the snapshot endpoint first."""
        result = await self.property_snapshot(params)
        if result.get("error"):
            logger.info("ATTOM snapshot empty, trying detail endpoint")
            result = await self.call("/property/detail", params)
        return result

    async def assessment(self, params: dict[str, Any]) -> dict[str, Any]:
        return await self.call("/assessment/detail", params)

    async def valuation(self, params: dict[str, Any]) -> dict[str, Any]:
        return await self.call("/attomavm/detail", params)

    async def sales_history(self, params: dict[str, Any]) -> dict[str, Any]:
        return await self.call("/saleshistory/snapshot", params)

    async def market_trends(self, params: dict[str, Any]) -> dict[str, Any]:
        return await self.call("/salestrend/snapshot", params)
