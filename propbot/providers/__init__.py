"""LLM provider abstraction module."""

from propbot.providers.base import LLMProvider, ReasoningRequest, ReasoningResponse, ToolInvocation
from propbot.providers.litellm_provider import LiteLLMProvider

__all__ = ["LLMProvider", "LiteLLMProvider", "ReasoningRequest", "ReasoningResponse", "ToolInvocation"]
