"""Turn a reasoning response into the plain text sent to the user."""

from typing import Any, TYPE_CHECKING

from loguru import logger

if TYPE_CHECKING:
    from propbot.agent.loop import ToolOutcome
    from propbot.providers.base import ReasoningResponse

MESSAGE_CEILING = 500

FOUND_DATA_MESSAGE = (
    "I found the data you requested. Please be more specific about which aspects "
    "you'd like me to analyze."
)
LOOKUP_FAILED_MESSAGE = "I wasn't able to retrieve that information right now. Please try again."
NO_RESPONSE_MESSAGE = "I apologize, but I couldn't generate a response. Please try again."

_TEXT_PART_TYPES = ("output_text", "text")


def _part_text(part: Any) -> str | None:
    if isinstance(part, str):
        return part
    if isinstance(part, dict) and part.get("type") in _TEXT_PART_TYPES:
        text = part.get("text")
        return text if isinstance(text, str) else None
    return None


def extract_raw_text(response: "ReasoningResponse | None") -> str:
    """
    Return model-authored text only, or an empty string.

    Prefers the flattened ``output_text`` and falls back to assistant message
    items in ``output``, joining their text parts with newlines.
    """
    if response is None:
        return ""

    flattened = (response.output_text or "").strip()
    if flattened:
        return flattened

    segments: list[str] = []
    for item in response.output or []:
        if not isinstance(item, dict) or item.get("type") != "message":
            continue
        if item.get("role", "assistant") != "assistant":
            continue
        content = item.get("content")
        parts = content if isinstance(content, list) else [content]
        for part in parts:
            text = _part_text(part)
            if text and text.strip():
                segments.append(text.strip())
    return "\n".join(segments)


def summarize_outcome(outcome: "ToolOutcome") -> str:
    """Short user-facing line for a tool result. Never the raw payload."""
    payload = outcome.payload
    if isinstance(payload, str) and len(payload) < MESSAGE_CEILING:
        return payload
    if isinstance(payload, dict):
        message = payload.get("message")
        if isinstance(message, str) and message.strip() and len(message) < MESSAGE_CEILING:
            return message.strip()
        if payload.get("error"):
            return LOOKUP_FAILED_MESSAGE
    return FOUND_DATA_MESSAGE


def extract_response_text(
    response: "ReasoningResponse | None",
    last_outcome: "ToolOutcome | None" = None,
) -> str:
    """
    Final text for the channel, never empty.

    Order: flattened text, assistant message items, a summary of the most
    recent tool outcome, then a generic apology.
    """
    text = extract_raw_text(response)
    if text:
        return text

    if last_outcome is not None:
        logger.warning(f"No model text; summarizing last outcome from {last_outcome.tool_name}")
        return summarize_outcome(last_outcome)

    logger.warning("No model text and no tool outcome; sending apology")
    return NO_RESPONSE_MESSAGE
