"""Orchestrates one inbound SMS from deduplication to the final reply."""

import re
from typing import Protocol

from loguru import logger

from propbot.agent.loop import AgentLoop
from propbot.agent.router import IntentRouter, RoutingDecision
from propbot.agent.specialists import Specialist
from propbot.bus.events import InboundMessage
from propbot.bus.queue import IdentityMailbox
from propbot.memory.conversation import ConversationStore, Turn, UserContext
from propbot.memory.idempotency import IdempotencyGuard
from propbot.utils.pii import mask_phone_number

ERROR_REPLY = "Sorry, I encountered an error processing your message. Please try again."

_INTERIM_RULES = [
    (re.compile(r"\b(?:my|workspace)\b", re.IGNORECASE),
     "🔍 Accessing your workspace data. This usually takes 5-10 seconds."),
    (re.compile(r"\b(?:property|address|building)\b", re.IGNORECASE),
     "🔍 Looking up property information. This typically takes 5-10 seconds."),
    (re.compile(r"\b(?:trends?|market|news)\b", re.IGNORECASE),
     "🔍 Researching current market information. This usually takes 10-15 seconds."),
    (re.compile(r"\b(?:data|analysis|report)\b", re.IGNORECASE),
     "🔍 Analyzing the requested data. This typically takes 5-15 seconds."),
]
DEFAULT_INTERIM = "🔍 Processing your request. This typically takes 5-15 seconds."


def interim_message(text: str) -> str:
    """Pick an acknowledgement for ``text`` without calling a model."""
    for pattern, message in _INTERIM_RULES:
        if pattern.search(text or ""):
            return message
    return DEFAULT_INTERIM


class Sender(Protocol):
    async def send(self, recipient: str, text: str) -> int: ...


class IdentityResolver(Protocol):
    async def lookup(self, sender_id: str) -> UserContext | None: ...


class MessageProcessor:
    """
    Runs the full cycle for an inbound message.

    Deduplicate, remember the turn, resolve who is texting, acknowledge,
    route, run the specialist, remember and send the answer. Whatever
    fails along the way, the sender receives exactly one final message.
    """

    def __init__(
        self,
        guard: IdempotencyGuard,
        store: ConversationStore,
        router: IntentRouter,
        loop: AgentLoop,
        specialists: dict[RoutingDecision, Specialist],
        identity_resolver: IdentityResolver | None = None,
        mailbox: IdentityMailbox | None = None,
        history_window: int = 10,
        context_turns: int = 6,
        interim_enabled: bool = True,
    ):
        self.guard = guard
        self.store = store
        self.router = router
        self.loop = loop
        self.specialists = specialists
        self.identity_resolver = identity_resolver
        self.mailbox = mailbox or IdentityMailbox()
        self.history_window = history_window
        self.context_turns = context_turns
        self.interim_enabled = interim_enabled

    async def submit(self, inbound: InboundMessage, sender: Sender) -> None:
        """Queue ``inbound`` behind earlier messages from the same sender."""
        await self.mailbox.enqueue(inbound.identity, lambda: self.process(inbound, sender))

    async def _resolve_identity(self, identity: str) -> UserContext | None:
        if self.identity_resolver is None:
            return None
        try:
            context = await self.identity_resolver.lookup(identity)
        except Exception as e:
            logger.warning(f"Identity lookup failed for {mask_phone_number(identity)}: {e}")
            return None
        if context is None:
            logger.info(f"No workspace user for {mask_phone_number(identity)}")
            return None
        self.store.set_context(identity, context)
        logger.info(f"Identified {mask_phone_number(identity)} as user {context.identity_id}")
        return context

    async def process(self, inbound: InboundMessage, sender: Sender) -> str | None:
        """
        Process one inbound message.

        Returns:
            The final reply that was sent, or None for a duplicate delivery.
        """
        if not self.guard.claim(inbound.delivery_id):
            return None

        identity = inbound.identity
        masked = mask_phone_number(identity)
        final_sent = False
        logger.info(f"Processing SMS from {masked} ({len(inbound.body)} chars)")

        try:
            self.store.append(identity, Turn.user(inbound.body))

            context = self.store.get_context(identity)
            if context is None:
                context = await self._resolve_identity(identity)

            history = self.store.recent_turns(identity, self.history_window)

            if self.interim_enabled:
                await sender.send(identity, interim_message(inbound.body))

            decision = await self.router.classify(inbound.body, history[:-1])
            specialist = self.specialists.get(decision) or self.specialists[RoutingDecision.GENERAL]
            logger.info(f"Routing {masked} to {specialist.name}")

            result = await self.loop.run(specialist, history[-self.context_turns:], context)

            self.store.append(
                identity,
                Turn.assistant(
                    result.text,
                    specialist=decision.value,
                    user_identified=context is not None,
                ),
            )
            final_sent = True
            await sender.send(identity, result.text)
            logger.info(
                f"Replied to {masked} via {specialist.name} "
                f"({result.iterations} iterations, {len(result.outcomes)} tool outcomes)"
            )
            return result.text
        except Exception:
            logger.exception(f"SMS processing failed for {masked}")
            if final_sent:
                return None
            await sender.send(identity, ERROR_REPLY)
            return ERROR_REPLY
