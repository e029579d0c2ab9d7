from typing import Any

import pytest

from propbot.agent.router import RoutingDecision
from propbot.agent.specialists import (
    BUSINESS_TOOLS,
    GENERAL_TOOLS,
    PROPERTY_TOOLS,
    build_specialists,
)
from propbot.agent.tools.base import Tool
from propbot.agent.tools.registry import ToolRegistry
from propbot.config.schema import Config
from propbot.core.errors import ToolRegistryError


class _NamedTool(Tool):
    def __init__(self, name: str):
        self.name = name
        self.description = name

    async def execute(self, user_context: Any = None, **kwargs: Any) -> dict[str, Any]:
        return {"success": True}


def _full_registry() -> ToolRegistry:
    registry = ToolRegistry()
    for name in {*BUSINESS_TOOLS, *PROPERTY_TOOLS, *GENERAL_TOOLS}:
        registry.register(_NamedTool(name))
    return registry


def test_one_specialist_per_decision():
    specialists = build_specialists(_full_registry(), Config())

    assert set(specialists) == set(RoutingDecision)
    assert specialists[RoutingDecision.BUSINESS].name == "BusinessAgent"
    assert specialists[RoutingDecision.PROPERTY].name == "RealEstateAgent"
    assert specialists[RoutingDecision.GENERAL].name == "GeneralAgent"


def test_catalogs_do_not_overlap():
    assert not set(BUSINESS_TOOLS) & set(PROPERTY_TOOLS)
    assert not set(BUSINESS_TOOLS) & set(GENERAL_TOOLS)
    assert not set(PROPERTY_TOOLS) & set(GENERAL_TOOLS)


def test_policies():
    specialists = build_specialists(_full_registry(), Config())

    business = specialists[RoutingDecision.BUSINESS].policy
    assert business.primary_tool == "query_workspace_data"
    assert business.iteration_threshold == 2
    assert business.abort_on_tool_error is True

    property_policy = specialists[RoutingDecision.PROPERTY].policy
    assert property_policy.primary_tool == "smart_property_search"
    assert property_policy.abort_on_tool_error is True

    general = specialists[RoutingDecision.GENERAL].policy
    assert general.primary_tool is None
    assert general.iteration_threshold == 3
    assert general.abort_on_tool_error is False

    for specialist in specialists.values():
        assert specialist.policy.max_iterations == 10
        assert specialist.policy.failure_ceiling == 2


def test_agent_settings_flow_from_config():
    config = Config()
    config.agent.max_iterations = 4
    config.agent.reasoning_effort = "low"
    config.providers.llm.model = "openai/gpt-5"

    specialists = build_specialists(_full_registry(), config)

    for specialist in specialists.values():
        assert specialist.policy.max_iterations == 4
        assert specialist.effort == "low"
        assert specialist.model == "openai/gpt-5"


def test_missing_handler_fails_fast():
    registry = _full_registry()
    registry.unregister("rent_estimate")

    with pytest.raises(ToolRegistryError, match="rent_estimate"):
        build_specialists(registry, Config())


def test_policy_withdraws_tools():
    specialists = build_specialists(_full_registry(), Config())
    business = specialists[RoutingDecision.BUSINESS].policy
    general = specialists[RoutingDecision.GENERAL].policy

    assert business.should_withdraw_tools({"query_workspace_data"}, 1)
    assert not business.should_withdraw_tools({"get_data_tables"}, 1)
    assert business.should_withdraw_tools(set(), 2)
    assert general.should_withdraw_tools({"web_search", "other"}, 1)
    assert not general.should_withdraw_tools({"web_search"}, 2)
    assert general.should_withdraw_tools({"web_search"}, 3)
