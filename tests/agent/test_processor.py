from typing import Any

import pytest

from propbot.agent.loop import AgentLoop
from propbot.agent.processor import DEFAULT_INTERIM, ERROR_REPLY, MessageProcessor, interim_message
from propbot.agent.router import IntentRouter, RoutingDecision
from propbot.agent.specialists import BUSINESS_TOOLS, GENERAL_TOOLS, PROPERTY_TOOLS, build_specialists
from propbot.agent.tools.base import Tool
from propbot.agent.tools.registry import ToolRegistry
from propbot.bus.events import InboundMessage
from propbot.config.schema import Config
from propbot.memory import ConversationStore, IdempotencyGuard
from propbot.providers.base import ReasoningResponse, ToolInvocation

PHONE = "+13125550100"


class _StubTool(Tool):
    parameters = {"type": "object", "properties": {"query": {"type": "string"}}}

    def __init__(self, name: str):
        self.name = name
        self.description = name
        self.calls: list[dict[str, Any]] = []

    async def execute(self, user_context: Any = None, **kwargs: Any) -> dict[str, Any]:
        self.calls.append(kwargs)
        return {"success": True, "message": f"{self.name} done"}


class _Resolver:
    def __init__(self, context=None, error: Exception | None = None):
        self.context = context
        self.error = error
        self.lookups: list[str] = []

    async def lookup(self, sender_id: str):
        self.lookups.append(sender_id)
        if self.error:
            raise self.error
        return self.context


def _build(provider, resolver=None, interim=True):
    registry = ToolRegistry()
    for name in {*BUSINESS_TOOLS, *PROPERTY_TOOLS, *GENERAL_TOOLS}:
        registry.register(_StubTool(name))
    processor = MessageProcessor(
        guard=IdempotencyGuard(),
        store=ConversationStore(),
        router=IntentRouter(provider),
        loop=AgentLoop(provider, registry),
        specialists=build_specialists(registry, Config()),
        identity_resolver=resolver,
        interim_enabled=interim,
    )
    return processor, registry


def _inbound(body: str, sid: str | None = "SM1") -> InboundMessage:
    return InboundMessage(sender_id=PHONE, recipient_id="+15550001111", body=body, delivery_id=sid)


@pytest.mark.parametrize("text,fragment", [
    ("show my sales", "workspace"),
    ("details on this property", "property"),
    ("office market trends", "market"),
    ("run a report", "Analyzing"),
])
def test_interim_message_rules(text, fragment):
    assert fragment in interim_message(text)


def test_interim_message_default():
    assert interim_message("hello there") == DEFAULT_INTERIM


@pytest.mark.asyncio
async def test_full_cycle_sends_interim_then_answer(scripted_provider, sender):
    provider = scripted_provider(
        ReasoningResponse(output_text="GENERAL_AGENT"),
        ReasoningResponse(output_text="Hi! How can I help?"),
    )
    processor, _ = _build(provider)

    reply = await processor.process(_inbound("hello there"), sender)

    assert reply == "Hi! How can I help?"
    assert sender.texts() == [DEFAULT_INTERIM, "Hi! How can I help?"]
    turns = processor.store.recent_turns(PHONE)
    assert [t.role for t in turns] == ["user", "assistant"]
    assert turns[1].metadata == {"specialist": "GENERAL", "user_identified": False}


@pytest.mark.asyncio
async def test_my_data_routes_to_business_without_property_tools(scripted_provider, sender, user_context):
    provider = scripted_provider(
        ReasoningResponse(output_text="BUSINESS_AGENT"),
        ReasoningResponse(tool_calls=[ToolInvocation(id="c1", name="query_workspace_data", raw_arguments="{}")]),
        ReasoningResponse(output_text="Your data shows 12 active deals."),
    )
    processor, registry = _build(provider, resolver=_Resolver(user_context))

    reply = await processor.process(_inbound("my data"), sender)

    assert reply == "Your data shows 12 active deals."
    offered = {tool["function"]["name"] for tool in provider.requests[1].tools}
    assert offered == set(BUSINESS_TOOLS)
    assert not offered & set(PROPERTY_TOOLS)
    assert registry.get("query_workspace_data").calls == [{"query": "data"}]
    assert provider.requests[2].tools is None
    assert "Dana Smith" in provider.requests[1].instructions


@pytest.mark.asyncio
async def test_duplicate_delivery_is_processed_once(scripted_provider, sender):
    provider = scripted_provider(default_text="GENERAL_AGENT")
    processor, _ = _build(provider, interim=False)

    first = await processor.process(_inbound("hello", sid="SMdup"), sender)
    second = await processor.process(_inbound("hello", sid="SMdup"), sender)

    assert first is not None
    assert second is None
    assert len(sender.sent) == 1
    assert len(processor.store.recent_turns(PHONE)) == 2


@pytest.mark.asyncio
async def test_identity_resolved_once_and_cached(scripted_provider, sender, user_context):
    provider = scripted_provider(default_text="GENERAL_AGENT")
    resolver = _Resolver(user_context)
    processor, _ = _build(provider, resolver=resolver, interim=False)

    await processor.process(_inbound("hello", sid="SM1"), sender)
    await processor.process(_inbound("again", sid="SM2"), sender)

    assert resolver.lookups == [PHONE]
    assert processor.store.get_context(PHONE) == user_context
    assert processor.store.recent_turns(PHONE)[-1].metadata["user_identified"] is True


@pytest.mark.asyncio
async def test_identity_lookup_failure_is_not_fatal(scripted_provider, sender):
    provider = scripted_provider(
        ReasoningResponse(output_text="GENERAL_AGENT"),
        ReasoningResponse(output_text="Sure."),
    )
    processor, _ = _build(provider, resolver=_Resolver(error=RuntimeError("workspace down")), interim=False)

    reply = await processor.process(_inbound("hello"), sender)

    assert reply == "Sure."
    assert "not been identified" in provider.requests[1].instructions


@pytest.mark.asyncio
async def test_router_sees_previous_turns(scripted_provider, sender):
    provider = scripted_provider(default_text="REAL_ESTATE_AGENT")
    processor, _ = _build(provider, interim=False)

    await processor.process(_inbound("123 Main St, Dallas TX", sid="SM1"), sender)
    await processor.process(_inbound("what is it worth?", sid="SM2"), sender)

    router_request = provider.requests[2]
    assert 'Previous message: "123 Main St, Dallas TX"' in router_request.conversation_text
    assert "Previous agent: REAL_ESTATE_AGENT" in router_request.conversation_text


@pytest.mark.asyncio
async def test_pipeline_failure_sends_single_error_reply(scripted_provider, sender):
    provider = scripted_provider(
        ReasoningResponse(output_text="GENERAL_AGENT"),
        RuntimeError("model unavailable"),
    )
    processor, _ = _build(provider, interim=False)

    reply = await processor.process(_inbound("hello"), sender)

    assert reply == ERROR_REPLY
    assert sender.texts() == [ERROR_REPLY]


@pytest.mark.asyncio
async def test_send_failure_after_final_does_not_send_error(scripted_provider):
    class _FlakySender:
        def __init__(self):
            self.attempts: list[str] = []

        async def send(self, recipient: str, text: str) -> int:
            self.attempts.append(text)
            raise ConnectionError("twilio down")

    provider = scripted_provider(
        ReasoningResponse(output_text="GENERAL_AGENT"),
        ReasoningResponse(output_text="Answer."),
    )
    processor, _ = _build(provider, interim=False)
    flaky = _FlakySender()

    reply = await processor.process(_inbound("hello"), flaky)

    assert reply is None
    assert flaky.attempts == ["Answer."]


@pytest.mark.asyncio
async def test_submit_serializes_messages_per_sender(scripted_provider, sender):
    provider = scripted_provider(default_text="GENERAL_AGENT")
    processor, _ = _build(provider, interim=False)

    await processor.submit(_inbound("first", sid="SM1"), sender)
    await processor.submit(_inbound("second", sid="SM2"), sender)
    await processor.mailbox.join()

    user_turns = [t.text for t in processor.store.recent_turns(PHONE) if t.role == "user"]
    assert user_turns == ["first", "second"]
    assert len(sender.sent) == 2


@pytest.mark.asyncio
async def test_unknown_decision_falls_back_to_general(scripted_provider, sender):
    provider = scripted_provider(
        ReasoningResponse(output_text="WEATHER_AGENT"),
        ReasoningResponse(output_text="ok"),
    )
    processor, _ = _build(provider, interim=False)

    await processor.process(_inbound("hello"), sender)

    offered = {tool["function"]["name"] for tool in provider.requests[1].tools}
    assert offered == set(GENERAL_TOOLS)
    assert processor.store.recent_turns(PHONE)[-1].metadata["specialist"] == RoutingDecision.GENERAL.value
