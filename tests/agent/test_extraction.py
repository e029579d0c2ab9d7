from propbot.agent.extraction import (
    FOUND_DATA_MESSAGE,
    LOOKUP_FAILED_MESSAGE,
    NO_RESPONSE_MESSAGE,
    extract_raw_text,
    extract_response_text,
)
from propbot.agent.loop import ToolOutcome
from propbot.providers.base import ReasoningResponse


def test_prefers_flattened_output_text():
    response = ReasoningResponse(
        output_text="  NOI is $1.2M.  ",
        output=[{"type": "message", "role": "assistant", "content": [{"type": "output_text", "text": "ignored"}]}],
    )
    assert extract_response_text(response) == "NOI is $1.2M."


def test_joins_assistant_message_items_in_order():
    response = ReasoningResponse(output=[
        {"type": "reasoning", "summary": []},
        {"type": "message", "role": "assistant", "content": [{"type": "output_text", "text": "First."}]},
        {"type": "function_call", "name": "web_search"},
        {"type": "message", "role": "assistant", "content": [{"type": "text", "text": "Second."}]},
    ])
    assert extract_raw_text(response) == "First.\nSecond."


def test_short_outcome_message_is_used_when_model_is_silent():
    outcome = ToolOutcome(tool_name="web_search", success=True, payload={"message": "Cap rates average 6.1%."})
    assert extract_response_text(ReasoningResponse(), outcome) == "Cap rates average 6.1%."


def test_long_payload_is_never_forwarded():
    outcome = ToolOutcome(tool_name="query_workspace_data", success=True, payload={"data": "x" * 5000, "message": "y" * 600})
    assert extract_response_text(ReasoningResponse(), outcome) == FOUND_DATA_MESSAGE


def test_error_payload_summarizes_as_lookup_failure():
    outcome = ToolOutcome(tool_name="property_detail", success=False, payload={"error": "ATTOM API failed"})
    assert extract_response_text(None, outcome) == LOOKUP_FAILED_MESSAGE


def test_apology_when_nothing_is_available():
    assert extract_response_text(ReasoningResponse(output_text="   ")) == NO_RESPONSE_MESSAGE
    assert extract_response_text(None) == NO_RESPONSE_MESSAGE
