"""Business workspace API client: users, outcomes and data tables."""

from __future__ import annotations

from datetime import datetime
from typing import Any
from urllib.parse import quote

from loguru import logger

from propbot.core.errors import TransientProviderError
from propbot.integrations.base import ProviderClient, json_or_error
from propbot.memory.conversation import UserContext
from propbot.utils.pii import mask_phone_number

NEEDS_ACCOUNT = "I need to identify your account first. Please contact support if this continues."


class WorkspaceClient(ProviderClient):
    """
    Async client for the workspace API.

    Also serves as the identity resolution collaborator: ``lookup`` maps a
    sender phone number to a ``UserContext``.
    """

    name = "workspace"

    def __init__(self, api_key: str = "", base_url: str = "", default_user_id: str = "", **kwargs: Any) -> None:
        super().__init__(api_key=api_key, base_url=base_url, **kwargs)
        self.default_user_id = default_user_id

    @property
    def configured(self) -> bool:
        return bool(self.api_key and self.base_url)

    def _headers(self) -> dict[str, str]:
        return {"X-API-Key": self.api_key, "Content-Type": "application/json"}

    async def _get(self, path: str, context: UserContext | None) -> dict[str, Any]:
        headers: dict[str, str] = {}
        user_id = context.identity_id if context else self.default_user_id
        if user_id:
            headers["X-User-Id"] = user_id
        if context and context.organization_id:
            headers["X-Organization-Id"] = context.organization_id

        response = await self._send("GET", path, headers=headers, label=f"Workspace API GET {path}")
        if response.status_code >= 400:
            logger.warning(f"Workspace API error: {response.status_code} {path}")
            return {"error": f"API Error: {response.reason_phrase or response.status_code}"}
        data = json_or_error(response, "Workspace API")
        return data if isinstance(data, dict) else {"data": data}

    async def lookup(self, sender_id: str) -> UserContext | None:
        """Resolve a phone number to a workspace user, or None."""
        return await self.lookup_user_by_phone(sender_id)

    async def lookup_user_by_phone(self, phone_number: str) -> UserContext | None:
        if not self.configured or not phone_number:
            return None

        path = f"/user/by-phone/{quote(phone_number, safe='')}"
        try:
            response = await self._send("GET", path, label="User lookup by phone")
        except TransientProviderError as e:
            logger.warning(f"User lookup failed for {mask_phone_number(phone_number)}: {e}")
            return None

        if response.status_code >= 400:
            logger.info(f"No workspace user for {mask_phone_number(phone_number)} ({response.status_code})")
            return None

        data = json_or_error(response, "Workspace API")
        body = (data.get("data") or {}) if isinstance(data, dict) else {}
        user = body.get("user") if isinstance(body, dict) else None
        if not user:
            return None
        return UserContext(
            identity_id=str(user.get("id", "")),
            organization_id=str(body.get("primaryOrganizationId") or ""),
            display_name=user.get("fullName") or "",
            resolved_at=datetime.now(),
            phone_number=phone_number,
            email=user.get("email"),
        )

    async def get_outcomes(self, context: UserContext, limit: int = 50, offset: int = 0) -> dict[str, Any]:
        if not context.organization_id:
            return {"error": NEEDS_ACCOUNT}
        return await self._get(f"/outcomes/{context.organization_id}?limit={limit}&offset={offset}", context)

    async def get_data_tables(self, context: UserContext, outcome_id: str | None) -> dict[str, Any]:
        if not context.organization_id:
            return {"error": NEEDS_ACCOUNT}
        if not outcome_id:
            return {"error": "I need to know which project you're asking about. Please be more specific."}
        return await self._get(f"/data-tables/{context.organization_id}/{outcome_id}", context)

    async def get_table_data(
        self,
        context: UserContext,
        table_id: str | None,
        limit: int = 100,
        offset: int = 0,
    ) -> dict[str, Any]:
        if not context.organization_id:
            return {"error": NEEDS_ACCOUNT}
        if not table_id:
            return {"error": "I need to know which specific data you want. Please be more specific."}
        return await self._get(
            f"/table-data/{context.organization_id}/{table_id}?limit={limit}&offset={offset}", context
        )

    async def get_chat_history(self, context: UserContext, outcome_id: str | None = None) -> dict[str, Any]:
        if not context.organization_id:
            return {"error": NEEDS_ACCOUNT}
        if outcome_id:
            path = f"/outcomes/{context.organization_id}/chat/history/{outcome_id}"
        else:
            path = f"/outcomes/{context.organization_id}/chat/list"
        return await self._get(path, context)
