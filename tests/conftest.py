"""Shared fixtures: scripted reasoning provider, recording sender, user context."""

from datetime import datetime

import pytest

from propbot.memory.conversation import UserContext
from propbot.providers.base import LLMProvider, ReasoningRequest, ReasoningResponse


class ScriptedProvider(LLMProvider):
    """Returns queued responses in order and records every request."""

    def __init__(self, responses=None, default_text: str = "Done."):
        super().__init__()
        self.responses = list(responses or [])
        self.default_text = default_text
        self.requests: list[ReasoningRequest] = []

    def get_default_model(self) -> str:
        return "test/model"

    async def reason(self, request: ReasoningRequest) -> ReasoningResponse:
        self.requests.append(request)
        if self.responses:
            item = self.responses.pop(0)
            if isinstance(item, Exception):
                raise item
            return item
        return ReasoningResponse(output_text=self.default_text)


class RecordingSender:
    """Channel stand-in that keeps every sent message."""

    def __init__(self):
        self.sent: list[tuple[str, str]] = []

    async def send(self, recipient: str, text: str) -> int:
        self.sent.append((recipient, text))
        return 1

    def is_allowed(self, sender_id: str) -> bool:
        return True

    def texts(self) -> list[str]:
        return [text for _, text in self.sent]


@pytest.fixture
def scripted_provider():
    def _make(*responses, default_text: str = "Done."):
        return ScriptedProvider(list(responses), default_text=default_text)
    return _make


@pytest.fixture
def sender():
    return RecordingSender()


@pytest.fixture
def user_context():
    return UserContext(
        identity_id="user-1",
        organization_id="org-1",
        display_name="Dana Smith",
        resolved_at=datetime(2026, 1, 1),
        phone_number="+13125550100",
    )
