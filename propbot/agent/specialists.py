"""The three specialists a message can be routed to."""

from dataclasses import dataclass, field

from propbot.agent.loop import LoopPolicy
from propbot.agent.prompts import BUSINESS_INSTRUCTIONS, GENERAL_INSTRUCTIONS, PROPERTY_INSTRUCTIONS
from propbot.agent.router import RoutingDecision
from propbot.agent.tools.registry import ToolRegistry
from propbot.config.schema import Config

BUSINESS_TOOLS = (
    "query_workspace_data",
    "list_workspace_outcomes",
    "get_data_tables",
    "get_table_data",
    "get_chat_history",
    "lookup_workspace_user",
)
PROPERTY_TOOLS = (
    "smart_property_search",
    "property_detail",
    "property_assessment",
    "property_valuation",
    "property_sales_history",
    "property_market_trends",
    "rental_property_details",
    "rent_estimate",
)
GENERAL_TOOLS = ("web_search",)


@dataclass
class Specialist:
    decision: RoutingDecision
    name: str
    instructions: str
    tool_names: tuple[str, ...]
    policy: LoopPolicy = field(default_factory=LoopPolicy)
    effort: str = "medium"
    verbosity: str = "low"
    model: str | None = None


def build_specialists(registry: ToolRegistry, config: Config) -> dict[RoutingDecision, Specialist]:
    """
    Build the specialists and check every catalog against the registry.

    Raises:
        ToolRegistryError: a catalog names a tool with no registered handler.
    """
    agent = config.agent
    common = dict(
        effort=agent.reasoning_effort,
        verbosity=agent.verbosity,
        model=config.providers.llm.model,
    )

    specialists = {
        RoutingDecision.BUSINESS: Specialist(
            decision=RoutingDecision.BUSINESS,
            name="BusinessAgent",
            instructions=BUSINESS_INSTRUCTIONS,
            tool_names=BUSINESS_TOOLS,
            policy=LoopPolicy(
                primary_tool="query_workspace_data",
                iteration_threshold=2,
                max_iterations=agent.max_iterations,
                failure_ceiling=agent.failure_ceiling,
                abort_on_tool_error=True,
                apology="I apologize, but I encountered an error processing your request. Please try again.",
            ),
            **common,
        ),
        RoutingDecision.PROPERTY: Specialist(
            decision=RoutingDecision.PROPERTY,
            name="RealEstateAgent",
            instructions=PROPERTY_INSTRUCTIONS,
            tool_names=PROPERTY_TOOLS,
            policy=LoopPolicy(
                primary_tool="smart_property_search",
                iteration_threshold=2,
                max_iterations=agent.max_iterations,
                failure_ceiling=agent.failure_ceiling,
                abort_on_tool_error=True,
                apology="I apologize, but I encountered an error processing your property request. Please try again.",
            ),
            **common,
        ),
        RoutingDecision.GENERAL: Specialist(
            decision=RoutingDecision.GENERAL,
            name="GeneralAgent",
            instructions=GENERAL_INSTRUCTIONS,
            tool_names=GENERAL_TOOLS,
            policy=LoopPolicy(
                primary_tool=None,
                iteration_threshold=3,
                max_iterations=agent.max_iterations,
                failure_ceiling=agent.failure_ceiling,
                abort_on_tool_error=False,
                apology="Sorry, I couldn't complete that search. Please try again.",
            ),
            **common,
        ),
    }

    for specialist in specialists.values():
        registry.require(specialist.tool_names)
    return specialists
