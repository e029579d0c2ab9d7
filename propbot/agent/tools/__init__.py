"""Agent tools module."""

from propbot.agent.tools.base import Tool, ToolDescriptor
from propbot.agent.tools.property import property_tools
from propbot.agent.tools.registry import ToolRegistry
from propbot.agent.tools.rental import rental_tools
from propbot.agent.tools.web_search import WebSearchTool
from propbot.agent.tools.workspace import workspace_tools

__all__ = [
    "Tool",
    "ToolDescriptor",
    "ToolRegistry",
    "WebSearchTool",
    "property_tools",
    "rental_tools",
    "workspace_tools",
]
