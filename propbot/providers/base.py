"""Base LLM provider interface."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any


@dataclass
class ToolInvocation:
    """A tool call requested by the model. Arguments are kept as the raw string."""
    id: str
    name: str
    raw_arguments: str = ""


@dataclass
class ReasoningRequest:
    """One reasoning call: instructions, conversation text and an optional tool catalog."""
    instructions: str
    conversation_text: str
    tools: list[dict[str, Any]] | None = None
    effort: str = "medium"
    verbosity: str = "low"
    model: str | None = None
    max_tokens: int = 2048


@dataclass
class ReasoningResponse:
    """Response from an LLM provider."""
    output_text: str | None = None
    output: list[dict[str, Any]] = field(default_factory=list)
    tool_calls: list[ToolInvocation] = field(default_factory=list)
    finish_reason: str = "stop"
    usage: dict[str, int] = field(default_factory=dict)

    @property
    def has_tool_calls(self) -> bool:
        """Check if response contains tool calls."""
        return len(self.tool_calls) > 0


class LLMProvider(ABC):
    """
    Abstract base class for reasoning providers.

    Implementations turn a ``ReasoningRequest`` into whatever the backing API
    expects and normalize the reply into a ``ReasoningResponse``.
    """

    def __init__(self, api_key: str | None = None, api_base: str | None = None):
        self.api_key = api_key
        self.api_base = api_base

    @abstractmethod
    async def reason(self, request: ReasoningRequest) -> ReasoningResponse:
        """
        Send a reasoning request.

        Args:
            request: Instructions, conversation text, tools and effort settings.

        Returns:
            ReasoningResponse with text output and/or tool calls.
        """
        pass

    @abstractmethod
    def get_default_model(self) -> str:
        """Get the default model for this provider."""
        pass
