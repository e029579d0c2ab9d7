"""Shared plumbing for provider HTTP clients."""

from __future__ import annotations

from typing import Any

import httpx
from loguru import logger

from propbot.core.errors import TransientProviderError
from propbot.core.timeout import DEFAULT_TIMEOUT, with_timeout


class ProviderClient:
    """
    Base for the async provider clients.

    Every request runs in a short-lived ``httpx.AsyncClient`` and is bounded
    by ``with_timeout``. Timeouts surface as ``ProviderTimeoutError`` and
    transport failures as ``TransientProviderError``; HTTP error statuses are
    returned to the caller as the response for it to interpret.
    """

    name = "provider"

    def __init__(
        self,
        api_key: str = "",
        base_url: str = "",
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = (api_key or "").strip()
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def _headers(self) -> dict[str, str]:
        return {"Accept": "application/json"}

    async def _send(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        label: str | None = None,
    ) -> httpx.Response:
        url = path if path.startswith("http") else f"{self.base_url}{path}"
        merged = {**self._headers(), **(headers or {})}
        label = label or f"{self.name} {method} {path}"

        async def _call() -> httpx.Response:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                return await client.request(method, url, params=params, json=json, headers=merged)

        try:
            return await with_timeout(_call(), self.timeout, label)
        except httpx.TimeoutException as e:
            raise TransientProviderError(self.name, f"{label} timed out: {e}") from e
        except httpx.TransportError as e:
            logger.warning(f"{label} transport error: {e}")
            raise TransientProviderError(self.name, f"{label} failed: {e}") from e


def json_or_error(response: httpx.Response, provider: str) -> Any:
    """Decode a JSON body, or describe why it could not be decoded."""
    try:
        return response.json()
    except ValueError:
        return {"error": f"{provider} returned an unreadable response", "raw": response.text[:200]}


def clean_params(params: dict[str, Any]) -> dict[str, Any]:
    """Drop empty values so they are not sent as query parameters."""
    return {k: v for k, v in params.items() if v not in (None, "")}
