"""Agent core: routing, the tool loop and message orchestration."""

from propbot.agent.loop import AgentLoop, LoopPolicy, LoopResult, ToolOutcome
from propbot.agent.processor import MessageProcessor, interim_message
from propbot.agent.router import IntentRouter, RoutingDecision, normalize_decision
from propbot.agent.specialists import Specialist, build_specialists

__all__ = [
    "AgentLoop",
    "IntentRouter",
    "LoopPolicy",
    "LoopResult",
    "MessageProcessor",
    "RoutingDecision",
    "Specialist",
    "ToolOutcome",
    "build_specialists",
    "interim_message",
    "normalize_decision",
]
