"""
Intent router that picks the specialist for an inbound message.

One cheap, tool-less reasoning call classifies the message into
BUSINESS / PROPERTY / GENERAL. Whatever the model says is normalized here;
anything unrecognized becomes GENERAL.
"""

import logging
import re
from enum import Enum
from typing import Sequence

from propbot.agent.extraction import extract_raw_text
from propbot.agent.prompts import ROUTER_PROMPT
from propbot.core.errors import RoutingAmbiguity
from propbot.memory.conversation import Turn
from propbot.providers.base import LLMProvider, ReasoningRequest

logger = logging.getLogger(__name__)


class RoutingDecision(str, Enum):
    BUSINESS = "BUSINESS"
    PROPERTY = "PROPERTY"
    GENERAL = "GENERAL"


_ALIASES: dict[str, RoutingDecision] = {
    "BUSINESS_AGENT": RoutingDecision.BUSINESS,
    "BUSINESS": RoutingDecision.BUSINESS,
    "REAL_ESTATE_AGENT": RoutingDecision.PROPERTY,
    "REAL_ESTATE": RoutingDecision.PROPERTY,
    "PROPERTY_AGENT": RoutingDecision.PROPERTY,
    "PROPERTY": RoutingDecision.PROPERTY,
    "GENERAL_AGENT": RoutingDecision.GENERAL,
    "GENERAL": RoutingDecision.GENERAL,
}
# Longest aliases first so REAL_ESTATE_AGENT wins over REAL_ESTATE.
_ALIAS_RE = re.compile(
    r"(?<![A-Z0-9_])("
    + "|".join(alias.replace("_", r"[_\s\-]+") for alias in sorted(_ALIASES, key=len, reverse=True))
    + r")(?![A-Z0-9_])"
)

_AGENT_NAMES = {
    RoutingDecision.BUSINESS.value: "BUSINESS_AGENT",
    RoutingDecision.PROPERTY.value: "REAL_ESTATE_AGENT",
    RoutingDecision.GENERAL.value: "GENERAL_AGENT",
}


def _canonical(text: str) -> str:
    return re.sub(r"[\s\-]+", "_", text).strip("_.:!\"'")


def normalize_decision(raw: str | None) -> RoutingDecision:
    """Map free-form classifier output onto a RoutingDecision."""
    if not raw:
        return RoutingDecision.GENERAL

    upper = raw.strip().upper()
    cleaned = _canonical(upper)
    if cleaned in _ALIASES:
        return _ALIASES[cleaned]

    match = _ALIAS_RE.search(upper)
    if match:
        return _ALIASES[_canonical(match.group(1))]
    return RoutingDecision.GENERAL


def _context_block(recent_context: Sequence[Turn]) -> str:
    previous_message = ""
    previous_specialist = ""
    for turn in reversed(recent_context):
        if not previous_message and turn.role == "user":
            previous_message = turn.text
        if not previous_specialist and turn.role == "assistant":
            previous_specialist = str(turn.metadata.get("specialist") or "")
        if previous_message and previous_specialist:
            break

    lines = []
    if previous_message:
        lines.append(f'Previous message: "{previous_message[:300]}"')
    if previous_specialist:
        lines.append(f"Previous agent: {_AGENT_NAMES.get(previous_specialist, previous_specialist)}")
    return "\n".join(lines)


class IntentRouter:
    """
    Classifies a message into one of three specialists.

    Never raises: provider errors and unrecognized output both fall back to
    GENERAL.
    """

    def __init__(self, provider: LLMProvider, model: str | None = None):
        self.provider = provider
        self.model = model or provider.get_default_model()

    async def classify(self, message: str, recent_context: Sequence[Turn] = ()) -> RoutingDecision:
        """
        Classify ``message``.

        Args:
            message: The inbound text.
            recent_context: Turns preceding the message, oldest first.

        Returns:
            The normalized routing decision.
        """
        if not message or not message.strip():
            return RoutingDecision.GENERAL

        context = _context_block(recent_context)
        conversation_text = f"{context}\nCurrent message: \"{message[:1000]}\"" if context else message[:1000]

        request = ReasoningRequest(
            instructions=ROUTER_PROMPT,
            conversation_text=conversation_text,
            tools=None,
            effort="low",
            verbosity="low",
            model=self.model,
            max_tokens=16,
        )
        try:
            response = await self.provider.reason(request)
        except Exception as e:
            logger.warning(f"Routing failed: {e}. Defaulting to GENERAL.")
            return RoutingDecision.GENERAL

        raw = extract_raw_text(response)
        decision = normalize_decision(raw)
        if raw and decision is RoutingDecision.GENERAL and "GENERAL" not in raw.upper():
            logger.info(f"{RoutingAmbiguity.__name__}: unrecognized routing output {raw[:40]!r}, using GENERAL")
        logger.debug(f"Routed message to {decision.value}")
        return decision
