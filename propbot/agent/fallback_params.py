"""
Heuristic tool arguments recovered from the user's own words.

Used when the model requests a tool but sends empty arguments. Each family
of tools has its own extraction; an empty dict means nothing plausible was
found and the invocation should be treated as a failure.
"""

import re
from datetime import datetime
from typing import Any

from propbot.utils.address import extract_address_from_query, extract_location_from_query

SEARCH_TOOLS = frozenset({"web_search"})
WORKSPACE_TOOLS = frozenset({"query_workspace_data"})
PROPERTY_TOOLS = frozenset({
    "smart_property_search",
    "property_detail",
    "property_assessment",
    "property_valuation",
    "property_sales_history",
    "property_market_trends",
    "rental_property_details",
    "rent_estimate",
})

_STOP_WORDS = frozenset({
    "what", "are", "the", "current", "about", "can", "you", "tell", "me", "show",
    "give", "find", "please", "could", "would", "with", "that", "this", "there",
    "whats", "what's", "how", "is",
})

_TOPIC_PATTERNS = [
    re.compile(r"(?:trends in|trends for|about|regarding|concerning)\s+(.+?)(?:\sin\b|\?|$)", re.IGNORECASE),
    re.compile(r"what(?:'s|'re|\s+is|\s+are)?\s+(?:the\s+)?(?:current\s+)?(.+?)(?:\sin\b|\?|$)", re.IGNORECASE),
    re.compile(r"(?:current|recent|latest)\s+(.+?)(?:\sin\b|\?|$)", re.IGNORECASE),
    re.compile(r"(.+?)\s+(?:trends|news|information|data|market)(?:\sin\b|\?|$)", re.IGNORECASE),
]
_LOCATION_PATTERNS = [
    re.compile(r"\bin\s+([A-Z][a-zA-Z]*(?:\s+[A-Z][a-zA-Z]*)*)"),
    re.compile(r"\b([A-Z][a-zA-Z]*(?:\s+[A-Z][a-zA-Z]*)*)\s+(?:market|area|region|city)\b"),
]
_TEMPORAL_WORDS = ("current", "trends", "recent", "latest", "this year")

BUSINESS_VOCABULARY = (
    "sales", "revenue", "customers", "inventory", "orders", "expenses", "profit",
    "performance", "metrics", "analytics", "analysis", "data", "reports", "report",
    "tables", "outcomes", "projects", "leads", "pipeline", "kpi", "score",
)
_OWNERSHIP_RE = re.compile(r"\b(?:my|our)\s+([a-zA-Z][a-zA-Z\s]*?)(?:\s+(?:data|metrics|performance)\b|[?.!,]|$)", re.IGNORECASE)

_NEAR_RE = re.compile(r"\b(?:at|on|near)\s+(\d+[A-Za-z0-9\s]*?|[A-Z][A-Za-z0-9\s]*?)(?:[,?.!]|$)")
_PROPER_NOUN_RE = re.compile(r"(?<!^)(?<![.?!]\s)\b([A-Z][a-z]+(?:\s+[A-Z][a-z]+)*)")


def _keywords(text: str, limit: int) -> list[str]:
    words = re.findall(r"[a-z0-9']+", text.lower())
    return [w for w in words if len(w) > 3 and w not in _STOP_WORDS][:limit]


def _search_params(text: str) -> dict[str, Any]:
    query = ""
    for pattern in _TOPIC_PATTERNS:
        match = pattern.search(text)
        if match and match.group(1).strip():
            query = match.group(1).strip(" ?.!,")
            break
    if not query:
        query = " ".join(_keywords(text, 5))

    location = ""
    for pattern in _LOCATION_PATTERNS:
        match = pattern.search(text)
        if match and len(match.group(1)) > 2:
            location = match.group(1).strip()
            break

    parts = [query] if query else []
    if location and location.lower() not in query.lower():
        parts.append(location)
    if not parts:
        return {}

    lowered = text.lower()
    if any(word in lowered for word in _TEMPORAL_WORDS):
        parts.append(str(datetime.now().year))
    return {"query": " ".join(parts)}


def _workspace_params(text: str) -> dict[str, Any]:
    lowered = text.lower()
    terms = [word for word in BUSINESS_VOCABULARY if re.search(rf"\b{word}\b", lowered)]
    match = _OWNERSHIP_RE.search(text)
    if match:
        subject = match.group(1).strip()
        if subject and subject.lower() not in terms:
            terms.append(subject)
    return {"query": " ".join(terms)} if terms else {}


def _property_params(text: str) -> dict[str, Any]:
    address = extract_address_from_query(text)
    if address:
        location = extract_location_from_query(text)
        if location["city"] and location["city"] not in address:
            address = ", ".join(p for p in (address, location["city"], location["state"]) if p)
        return {"address": address}

    match = _NEAR_RE.search(text)
    if match and len(match.group(1).strip()) > 5:
        return {"address": match.group(1).strip()}

    location = extract_location_from_query(text)
    if location["city"]:
        return {"address": ", ".join(p for p in (location["city"], location["state"]) if p)}

    match = _PROPER_NOUN_RE.search(text)
    if match:
        return {"address": match.group(1)}
    return {}


def _generic_params(text: str) -> dict[str, Any]:
    words = _keywords(text, 3)
    return {"query": " ".join(words)} if words else {}


def extract_fallback_parameters(tool_name: str, user_text: str) -> dict[str, Any]:
    """Synthesize arguments for ``tool_name`` from ``user_text``. Empty when nothing fits."""
    text = (user_text or "").strip()
    if not text:
        return {}
    if tool_name in SEARCH_TOOLS:
        return _search_params(text)
    if tool_name in WORKSPACE_TOOLS:
        return _workspace_params(text)
    if tool_name in PROPERTY_TOOLS:
        return _property_params(text)
    return _generic_params(text)
