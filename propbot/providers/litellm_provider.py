"""LiteLLM provider implementation for multi-provider support."""

import logging
from typing import Any

import litellm
from litellm import acompletion
from litellm.exceptions import (
    APIConnectionError,
    BadRequestError,
    RateLimitError,
    ServiceUnavailableError,
)
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from propbot.core.errors import TransientProviderError
from propbot.providers.base import LLMProvider, ReasoningRequest, ReasoningResponse, ToolInvocation

logger = logging.getLogger(__name__)


class LiteLLMProvider(LLMProvider):
    """
    Reasoning provider backed by LiteLLM.

    The request's instructions become the system message and the conversation
    text the single user message. Effort and verbosity are forwarded as
    ``reasoning_effort`` and ``verbosity``; models that do not understand them
    have the parameters dropped by LiteLLM.
    """

    def __init__(
        self,
        api_key: str | None = None,
        api_base: str | None = None,
        default_model: str = "openai/gpt-5-mini",
        fallbacks: list[str] | None = None,
    ):
        super().__init__(api_key, api_base)
        self.default_model = default_model
        self.fallbacks = fallbacks or []

        # Disable LiteLLM logging noise
        litellm.suppress_debug_info = True
        # Drop unsupported parameters for providers (e.g. effort on non-reasoning models)
        litellm.drop_params = True

    def _build_kwargs(self, request: ReasoningRequest, model: str) -> dict[str, Any]:
        kwargs: dict[str, Any] = {
            "model": model,
            "messages": [
                {"role": "system", "content": request.instructions},
                {"role": "user", "content": request.conversation_text},
            ],
            "max_tokens": request.max_tokens,
            "reasoning_effort": request.effort,
            "verbosity": request.verbosity,
        }
        if self.api_key:
            kwargs["api_key"] = self.api_key
        if self.api_base:
            kwargs["api_base"] = self.api_base
        if request.tools:
            kwargs["tools"] = request.tools
            kwargs["tool_choice"] = "auto"
        return kwargs

    async def _execute_model_call(self, request: ReasoningRequest, model: str) -> ReasoningResponse:
        """Execute a single model call with retries for transient errors."""
        kwargs = self._build_kwargs(request, model)

        @retry(
            retry=retry_if_exception_type((RateLimitError, APIConnectionError, ServiceUnavailableError)),
            wait=wait_exponential(multiplier=1, min=2, max=30),
            stop=stop_after_attempt(3),
            reraise=True,
            before_sleep=before_sleep_log(logger, logging.WARNING),
        )
        async def _do_call():
            return await acompletion(**kwargs)

        response = await _do_call()
        return self._parse_response(response)

    async def reason(self, request: ReasoningRequest) -> ReasoningResponse:
        """
        Run a reasoning request, trying fallback models when the primary is unavailable.

        Raises:
            BadRequestError: immediately, without trying fallbacks.
            TransientProviderError: once every model has failed, chained to the last error.
        """
        primary_model = request.model or self.default_model
        models_to_try = [primary_model] + [fb for fb in self.fallbacks if fb != primary_model]

        last_exception: Exception | None = None
        for attempt_model in models_to_try:
            try:
                return await self._execute_model_call(request, attempt_model)
            except BadRequestError as e:
                logger.error(f"Invalid request for {attempt_model}: {e}")
                raise
            except (RateLimitError, APIConnectionError, ServiceUnavailableError) as e:
                logger.warning(f"Model {attempt_model} failed after retries: {e}. Trying next...")
                last_exception = e
            except Exception as e:
                logger.warning(f"Unexpected error for {attempt_model}: {e}. Trying next...")
                last_exception = e

        raise TransientProviderError("litellm", str(last_exception)) from last_exception

    def _parse_response(self, response: Any) -> ReasoningResponse:
        """Parse LiteLLM response into our standard format."""
        choice = response.choices[0]
        message = choice.message

        tool_calls = []
        if getattr(message, "tool_calls", None):
            for tc in message.tool_calls:
                # Arguments stay raw; the agent loop decides how to treat bad JSON.
                args = tc.function.arguments
                tool_calls.append(ToolInvocation(
                    id=tc.id or "",
                    name=tc.function.name,
                    raw_arguments=args if isinstance(args, str) else "",
                ))

        content = message.content
        output_text = None
        output: list[dict[str, Any]] = []
        if isinstance(content, str):
            output_text = content
        elif isinstance(content, list):
            output.append({"type": "message", "role": "assistant", "content": content})

        usage = {}
        if getattr(response, "usage", None):
            usage = {
                "prompt_tokens": response.usage.prompt_tokens,
                "completion_tokens": response.usage.completion_tokens,
                "total_tokens": response.usage.total_tokens,
            }

        return ReasoningResponse(
            output_text=output_text,
            output=output,
            tool_calls=tool_calls,
            finish_reason=choice.finish_reason or "stop",
            usage=usage,
        )

    def get_default_model(self) -> str:
        """Get the default model."""
        return self.default_model
