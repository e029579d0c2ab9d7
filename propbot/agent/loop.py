"""Agent loop: bounded reasoning and tool execution for one specialist."""

import json
from dataclasses import dataclass, field
from typing import Any, Sequence, TYPE_CHECKING

from loguru import logger

from propbot.agent.extraction import extract_response_text
from propbot.agent.fallback_params import extract_fallback_parameters
from propbot.agent.tools.registry import ToolRegistry
from propbot.core.errors import ExhaustionError, MalformedInvocation, TerminalToolError, TransientProviderError
from propbot.memory.conversation import Turn, UserContext
from propbot.providers.base import LLMProvider, ReasoningRequest, ReasoningResponse, ToolInvocation

if TYPE_CHECKING:
    from propbot.agent.specialists import Specialist

# Tool results are echoed back to the model; keep each one bounded.
RESULT_CHAR_LIMIT = 6000


@dataclass
class LoopPolicy:
    """Continuation and failure rules for one specialist."""

    primary_tool: str | None = None
    iteration_threshold: int = 2
    max_iterations: int = 10
    failure_ceiling: int = 2
    distinct_tool_threshold: int = 2
    abort_on_tool_error: bool = False
    apology: str = "I apologize, but I encountered an error processing your request. Please try again."

    def should_withdraw_tools(self, succeeded: set[str], iterations: int) -> bool:
        """True once the next reasoning call should be made without tools."""
        if self.primary_tool and self.primary_tool in succeeded:
            return True
        if len(succeeded) >= self.distinct_tool_threshold:
            return True
        return iterations >= self.iteration_threshold


@dataclass
class ToolOutcome:
    """Result of one tool invocation inside a loop run."""

    tool_name: str
    success: bool
    payload: Any = None
    error_kind: str | None = None

    @property
    def completed(self) -> bool:
        """The tool ran and returned a payload (which may still describe an error)."""
        return self.error_kind is None


@dataclass
class LoopResult:
    text: str
    outcomes: list[ToolOutcome] = field(default_factory=list)
    iterations: int = 0
    aborted: bool = False


def format_conversation(turns: Sequence[Turn]) -> str:
    """Render turns as ``User:`` / ``Assistant:`` lines."""
    lines = []
    for turn in turns:
        speaker = "User" if turn.role == "user" else "Assistant"
        lines.append(f"{speaker}: {turn.text}")
    return "\n".join(lines)


def _context_note(user_context: UserContext | None) -> str:
    if user_context is None:
        return "USER CONTEXT: the sender has not been identified in the workspace."
    name = user_context.display_name or "unknown name"
    return (
        f"USER CONTEXT: {name} (user {user_context.identity_id}, "
        f"organization {user_context.organization_id})."
    )


def _result_line(outcome: ToolOutcome) -> str:
    if outcome.completed:
        body = json.dumps(outcome.payload, default=str, ensure_ascii=False)
        if len(body) > RESULT_CHAR_LIMIT:
            body = body[:RESULT_CHAR_LIMIT] + "...(truncated)"
        return f"Tool {outcome.tool_name} result: {body}"
    return f"Tool {outcome.tool_name} failed: {outcome.payload}"


class _LoopRun:
    """Mutable state for a single ``AgentLoop.run`` call."""

    def __init__(self):
        self.succeeded: set[str] = set()
        self.failures: dict[str, int] = {}
        self.outcomes: list[ToolOutcome] = []
        self.result_lines: list[str] = []

    def fail(self, name: str, kind: str, detail: Any = None) -> ToolOutcome:
        self.failures[name] = self.failures.get(name, 0) + 1
        outcome = ToolOutcome(tool_name=name, success=False, payload=detail, error_kind=kind)
        self.outcomes.append(outcome)
        return outcome

    def last_completed(self) -> ToolOutcome | None:
        for outcome in reversed(self.outcomes):
            if outcome.completed:
                return outcome
        return None


class AgentLoop:
    """
    Runs a specialist against the recent conversation.

    Each reasoning result is inspected for tool invocations. Only the first
    invocation that actually executes is processed per iteration, then the
    model is asked again with every result so far. A tool that already
    succeeded is not run again. A tool that failed ``failure_ceiling`` times
    (exceptions and error payloads alike) is skipped. An iteration that
    executes nothing goes straight to the final answer. The last of
    ``policy.max_iterations`` calls is made without tools so the reply always
    comes from the model after the final tool result.
    """

    def __init__(self, provider: LLMProvider, tools: ToolRegistry):
        self.provider = provider
        self.tools = tools

    async def run(
        self,
        specialist: "Specialist",
        turns: Sequence[Turn],
        user_context: UserContext | None = None,
    ) -> LoopResult:
        policy = specialist.policy
        instructions = f"{specialist.instructions}\n\n{_context_note(user_context)}"
        conversation_text = format_conversation(turns)
        last_user_text = next((t.text for t in reversed(turns) if t.role == "user"), "")
        catalog = self.tools.get_definitions(specialist.tool_names)

        state = _LoopRun()
        response: ReasoningResponse | None = None
        offer_tools = bool(catalog)
        iterations = 0

        while iterations < policy.max_iterations:
            iterations += 1
            if offer_tools and iterations == policy.max_iterations:
                logger.warning(
                    f"{specialist.name}: {ExhaustionError.__name__} at {iterations} iterations, finalizing without tools"
                )
                offer_tools = False
            request = ReasoningRequest(
                instructions=instructions,
                conversation_text="\n".join([conversation_text, *state.result_lines]),
                tools=catalog if offer_tools else None,
                effort=specialist.effort,
                verbosity=specialist.verbosity,
                model=specialist.model,
            )
            try:
                response = await self.provider.reason(request)
            except Exception as e:
                if state.last_completed() is None:
                    raise
                logger.warning(f"{specialist.name}: reasoning failed after tool use, summarizing: {e}")
                response = None
                break

            if not offer_tools or not response.has_tool_calls:
                break

            executed = await self._execute_first(specialist, response.tool_calls, last_user_text, user_context, state)
            if executed is None:
                logger.debug(f"{specialist.name}: no new tool executed, finalizing")
                break
            if not executed.completed and executed.error_kind == TerminalToolError.__name__:
                return LoopResult(
                    text=policy.apology,
                    outcomes=state.outcomes,
                    iterations=iterations,
                    aborted=True,
                )

            state.result_lines.append(_result_line(executed))
            if policy.should_withdraw_tools(state.succeeded, iterations):
                offer_tools = False

        text = extract_response_text(response, state.last_completed())
        return LoopResult(text=text, outcomes=state.outcomes, iterations=iterations)

    async def _execute_first(
        self,
        specialist: "Specialist",
        invocations: list[ToolInvocation],
        last_user_text: str,
        user_context: UserContext | None,
        state: _LoopRun,
    ) -> ToolOutcome | None:
        """Execute the first eligible invocation. Returns None when nothing ran."""
        policy = specialist.policy
        for invocation in invocations:
            name = invocation.name
            if name in state.succeeded:
                logger.debug(f"Skipping {name}: already succeeded in this run")
                continue
            if state.failures.get(name, 0) >= policy.failure_ceiling:
                logger.debug(f"Skipping {name}: failure ceiling reached")
                continue
            if name not in specialist.tool_names:
                logger.warning(f"{specialist.name} requested tool outside its catalog: {name}")
                state.fail(name, MalformedInvocation.__name__, "tool not available")
                continue

            params = self._parse_arguments(invocation, last_user_text, state)
            if params is None:
                continue

            logger.info(f"Tool call: {name}({json.dumps(params, default=str)[:200]})")
            try:
                payload = await self.tools.execute(name, params, user_context=user_context)
            except Exception as e:
                kind = TransientProviderError.__name__ if isinstance(e, TransientProviderError) else type(e).__name__
                logger.error(f"Tool {name} raised {kind}: {e}")
                if policy.abort_on_tool_error:
                    return state.fail(name, TerminalToolError.__name__, str(e))
                return state.fail(name, kind, str(e))

            success = not (isinstance(payload, dict) and payload.get("error"))
            if success:
                state.succeeded.add(name)
            else:
                # Error payloads are fed back like results but count toward the ceiling.
                state.failures[name] = state.failures.get(name, 0) + 1
            outcome = ToolOutcome(tool_name=name, success=success, payload=payload)
            state.outcomes.append(outcome)
            return outcome
        return None

    @staticmethod
    def _parse_arguments(invocation: ToolInvocation, last_user_text: str, state: _LoopRun) -> dict[str, Any] | None:
        name = invocation.name
        raw = (invocation.raw_arguments or "").strip()
        params: Any = {}
        if raw:
            try:
                params = json.loads(raw)
            except json.JSONDecodeError:
                logger.warning(f"Unparseable arguments for {name}: {raw[:100]!r}")
                state.fail(name, MalformedInvocation.__name__, "invalid JSON arguments")
                return None
        if params is None:
            params = {}
        if not isinstance(params, dict):
            logger.warning(f"Non-object arguments for {name}: {type(params).__name__}")
            state.fail(name, MalformedInvocation.__name__, "arguments must be an object")
            return None

        if not params:
            params = extract_fallback_parameters(name, last_user_text)
            if not params:
                logger.warning(f"Empty arguments for {name} and nothing to recover from the message")
                state.fail(name, MalformedInvocation.__name__, "empty arguments")
                return None
            logger.info(f"Recovered arguments for {name}: {params}")
        return params
