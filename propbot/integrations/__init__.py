"""HTTP clients for the external data providers."""

from propbot.integrations.attom import AttomClient
from propbot.integrations.rentcast import RentCastClient
from propbot.integrations.tavily import TavilyClient
from propbot.integrations.workspace import WorkspaceClient

__all__ = ["AttomClient", "RentCastClient", "TavilyClient", "WorkspaceClient"]
