from datetime import datetime

from propbot.agent.fallback_params import extract_fallback_parameters


def test_search_query_keeps_location():
    params = extract_fallback_parameters("web_search", "trends in Chicago")
    assert "Chicago" in params["query"]


def test_temporal_search_appends_current_year():
    params = extract_fallback_parameters("web_search", "What are the current office trends in Chicago?")
    assert "Chicago" in params["query"]
    assert str(datetime.now().year) in params["query"]


def test_workspace_query_uses_business_vocabulary():
    params = extract_fallback_parameters("query_workspace_data", "show me my sales data")
    assert params == {"query": "sales data"}


def test_workspace_query_picks_up_owned_subject():
    params = extract_fallback_parameters("query_workspace_data", "what does my proforma say?")
    assert "proforma" in params["query"]


def test_property_address_includes_city():
    params = extract_fallback_parameters("smart_property_search", "value of 123 Main St, Chicago, IL")
    assert params == {"address": "123 Main St, Chicago, IL"}


def test_property_city_state_without_street():
    params = extract_fallback_parameters("property_market_trends", "market trends in Austin, TX")
    assert params == {"address": "Austin, TX"}


def test_generic_tool_uses_keywords():
    params = extract_fallback_parameters("get_chat_history", "show recent conversations about leasing")
    assert params == {"query": "recent conversations leasing"}


def test_nothing_plausible_returns_empty():
    assert extract_fallback_parameters("web_search", "") == {}
    assert extract_fallback_parameters("query_workspace_data", "hi there") == {}
    assert extract_fallback_parameters("smart_property_search", "hmm ok") == {}
