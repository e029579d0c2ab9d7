import httpx
import pytest

from propbot.agent.tools.rental import RentalPropertyDetailsTool, RentEstimateTool
from propbot.integrations.rentcast import RentCastClient
from propbot.integrations.tavily import TavilyClient


def _rentcast(routes: dict, seen: list[httpx.Request], api_key: str = "rc-key") -> RentCastClient:
    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        body = routes.get(request.url.path.removeprefix("/v1"))
        if body is None:
            return httpx.Response(404, json={"message": "not found"})
        return httpx.Response(200, json=body)

    return RentCastClient(api_key=api_key, base_url="https://rentcast.test/v1", transport=httpx.MockTransport(handler))


def _tavily(seen: list[httpx.Request]) -> TavilyClient:
    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={
            "query": "q",
            "results": [{"title": "Rent report", "content": "Average rent $1,900", "url": "https://rent.test", "score": 0.8}],
            "answer": None,
        })

    return TavilyClient(api_key="tv-key", base_url="https://tavily.test", transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_rent_estimate_sends_options():
    seen: list[httpx.Request] = []
    client = _rentcast({"/avm/rent/long-term": {"rent": 2100, "rentRangeLow": 1900, "rentRangeHigh": 2300}}, seen)

    result = await RentEstimateTool(client).execute(address="12 Oak Ave, Austin, TX", bedrooms=2)

    assert result["success"] is True
    assert result["message"] == "Estimated rent is about $2100/month."
    params = seen[0].url.params
    assert params["address"] == "12 Oak Ave, Austin, TX"
    assert params["bedrooms"] == "2"
    assert "bathrooms" not in params
    assert seen[0].headers["X-Api-Key"] == "rc-key"


@pytest.mark.asyncio
async def test_rent_estimate_without_rent_value():
    client = _rentcast({"/avm/rent/long-term": {"rent": None}}, [])

    result = await RentEstimateTool(client).execute(address="12 Oak Ave, Austin, TX")

    assert "couldn't get a rent estimate" in result["error"]
    assert result["message"] == result["error"]


@pytest.mark.asyncio
async def test_property_details_returns_first_match():
    records = [{"formattedAddress": "12 Oak Ave, Austin, TX 78701", "bedrooms": 3}, {"formattedAddress": "other"}]
    client = _rentcast({"/properties": records}, [])

    result = await RentalPropertyDetailsTool(client).execute(address="12 Oak Ave, Austin, TX")

    assert result["success"] is True
    assert result["property"]["bedrooms"] == 3


@pytest.mark.asyncio
async def test_property_details_no_match():
    client = _rentcast({"/properties": []}, [])

    result = await RentalPropertyDetailsTool(client).execute(address="1 Nowhere Rd")

    assert "couldn't find that property" in result["error"]


@pytest.mark.asyncio
async def test_unconfigured_rentcast_falls_back_to_web():
    rentcast_seen: list[httpx.Request] = []
    web_seen: list[httpx.Request] = []
    client = _rentcast({}, rentcast_seen, api_key="")

    result = await RentEstimateTool(client, _tavily(web_seen)).execute(address="12 Oak Ave, Austin, TX")

    assert rentcast_seen == []
    assert result["message"] == "Found 1 web results."
    assert "rent estimate" in web_seen[0].content.decode()


@pytest.mark.asyncio
async def test_unconfigured_rentcast_without_web():
    client = _rentcast({}, [], api_key="")

    result = await RentalPropertyDetailsTool(client).execute(address="12 Oak Ave")

    assert result["error"] == "rental data unavailable"
