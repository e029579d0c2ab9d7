"""Tool registry for dynamic tool management."""

from typing import Any, Iterable

from loguru import logger

from propbot.agent.tools.base import Tool
from propbot.core.errors import ToolRegistryError


class ToolRegistry:
    """
    Registry of agent tools keyed by name.

    Dispatch goes through the name to handler map, so new tools are added by
    registering them rather than by touching the agent loop.
    """

    def __init__(self):
        self._tools: dict[str, Tool] = {}

    def register(self, tool: Tool) -> None:
        """Register a tool. Names must be unique."""
        if not tool.name:
            raise ToolRegistryError(f"{type(tool).__name__} has no name")
        if tool.name in self._tools:
            raise ToolRegistryError(f"Tool '{tool.name}' is already registered")
        self._tools[tool.name] = tool

    def unregister(self, name: str) -> None:
        """Unregister a tool by name."""
        self._tools.pop(name, None)

    def get(self, name: str) -> Tool | None:
        """Get a tool by name."""
        return self._tools.get(name)

    def has(self, name: str) -> bool:
        """Check if a tool is registered."""
        return name in self._tools

    def require(self, names: Iterable[str]) -> None:
        """Fail fast when a catalog names a tool that has no handler."""
        missing = [name for name in names if name not in self._tools]
        if missing:
            raise ToolRegistryError(f"No handler registered for: {', '.join(missing)}")

    def get_definitions(self, names: Iterable[str] | None = None) -> list[dict[str, Any]]:
        """Get tool definitions in OpenAI format, optionally limited to ``names``."""
        if names is None:
            return [tool.to_schema() for tool in self._tools.values()]
        return [self._tools[name].to_schema() for name in names if name in self._tools]

    async def execute(self, name: str, params: dict[str, Any], user_context: Any = None) -> dict[str, Any]:
        """
        Execute a tool by name.

        Unknown tools and invalid parameters produce an error payload.
        Exceptions raised by the tool propagate to the caller.
        """
        tool = self._tools.get(name)
        if not tool:
            return {"error": f"Unknown tool: {name}", "message": "The requested tool is not available."}

        params = {k: v for k, v in params.items() if k != "user_context"}
        errors = tool.validate_params(params)
        if errors:
            logger.warning(f"Invalid parameters for {name}: {errors}")
            return {
                "error": f"Invalid parameters for tool '{name}': " + "; ".join(errors),
                "message": "I need a bit more detail to look that up.",
            }

        return await tool.execute(user_context=user_context, **params)

    @property
    def tool_names(self) -> list[str]:
        """Get list of registered tool names."""
        return list(self._tools.keys())

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: str) -> bool:
        return name in self._tools
