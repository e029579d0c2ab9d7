import asyncio
import json

import httpx
import pytest

from propbot.core.errors import ProviderTimeoutError, TransientProviderError
from propbot.integrations.base import ProviderClient, clean_params, json_or_error
from propbot.integrations.rentcast import NOT_CONFIGURED as RENTCAST_NOT_CONFIGURED
from propbot.integrations.rentcast import RentCastClient
from propbot.integrations.tavily import TavilyClient


def test_clean_params_drops_empty_values():
    assert clean_params({"a": 1, "b": None, "c": "", "d": 0}) == {"a": 1, "d": 0}


def test_json_or_error():
    assert json_or_error(httpx.Response(200, json={"ok": True}), "X") == {"ok": True}
    bad = json_or_error(httpx.Response(200, text="not json"), "X")
    assert bad["error"] == "X returned an unreadable response"
    assert bad["raw"] == "not json"


@pytest.mark.asyncio
async def test_slow_provider_times_out():
    async def handler(request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(1)
        return httpx.Response(200, json={})

    client = ProviderClient(base_url="https://slow.test", timeout=0.05, transport=httpx.MockTransport(handler))

    with pytest.raises(ProviderTimeoutError) as exc:
        await client._send("GET", "/thing")
    assert isinstance(exc.value, TransientProviderError)
    assert exc.value.timeout == 0.05


@pytest.mark.asyncio
async def test_transport_error_becomes_transient():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    client = ProviderClient(base_url="https://down.test", transport=httpx.MockTransport(handler))

    with pytest.raises(TransientProviderError, match="refused"):
        await client._send("GET", "/thing")


@pytest.mark.asyncio
async def test_absolute_url_is_used_as_is():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(204)

    client = ProviderClient(base_url="https://base.test/", transport=httpx.MockTransport(handler))
    await client._send("GET", "https://other.test/x")
    await client._send("GET", "/y")

    assert [str(r.url) for r in seen] == ["https://other.test/x", "https://base.test/y"]


@pytest.mark.asyncio
async def test_tavily_request_shape():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"results": [], "answer": None})

    client = TavilyClient(api_key="tv-key", base_url="https://tavily.test", max_results=3, transport=httpx.MockTransport(handler))
    result = await client.search("austin office market")

    body = json.loads(seen[0].content)
    assert seen[0].method == "POST"
    assert seen[0].url.path == "/search"
    assert seen[0].headers["Authorization"] == "Bearer tv-key"
    assert body["query"] == "austin office market"
    assert body["max_results"] == 3
    assert body["search_depth"] == "basic"
    assert result == {"query": "austin office market", "results": [], "answer": None, "response_time": None}


@pytest.mark.asyncio
async def test_tavily_error_body():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"error": "quota exceeded"})

    client = TavilyClient(api_key="tv-key", base_url="https://tavily.test", transport=httpx.MockTransport(handler))

    assert await client.search("anything") == {"error": "quota exceeded"}


@pytest.mark.asyncio
async def test_rentcast_http_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(429)

    client = RentCastClient(api_key="rc", base_url="https://rentcast.test", transport=httpx.MockTransport(handler))

    result = await client.get_rent_estimate("12 Oak Ave")

    assert result == {"error": "RentCast API failed: Too Many Requests"}


@pytest.mark.asyncio
async def test_rentcast_not_configured():
    assert await RentCastClient(api_key="").get_property_details("12 Oak Ave") == {"error": RENTCAST_NOT_CONFIGURED}
