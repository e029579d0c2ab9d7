"""
Multi-provider property search.

Providers are tried in a fixed priority order:

1. ATTOM property snapshot (commercial and residential coverage)
2. RentCast property details, only for residential or rental queries
3. Web search

The order is a tunable design choice, not a cost or quality optimization.
Each provider call is time bounded by its client; any failure simply moves
the search on to the next provider.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any

from loguru import logger

from propbot.integrations.attom import AttomClient, build_attom_params
from propbot.integrations.rentcast import RentCastClient
from propbot.integrations.tavily import TavilyClient
from propbot.utils.address import extract_address_from_query, extract_location_from_query

SOURCE_ATTOM = "ATTOM Data (Commercial & Residential)"
SOURCE_RENTCAST = "RentCast (Residential)"
SOURCE_WEB = "Web Search"

NOT_FOUND_MESSAGE = (
    "Sorry, I could not find information about that property. Please try with a more "
    "specific address or check if the address is correct."
)

RESIDENTIAL_KEYWORDS = (
    "rent", "rental", "apartment", "condo", "house", "residential",
    "bedroom", "bathroom", "tenant", "lease", "monthly",
)


@dataclass
class SearchHints:
    """Structured location hints that accompany a free-text query."""
    address: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None

    @classmethod
    def from_query(cls, query: str) -> "SearchHints":
        location = extract_location_from_query(query)
        return cls(
            address=extract_address_from_query(query),
            city=location["city"],
            state=location["state"],
            zip_code=location["zip_code"],
        )

    def merged_with(self, other: "SearchHints") -> "SearchHints":
        """Fill blanks in these hints from ``other``."""
        return SearchHints(
            address=self.address or other.address,
            city=self.city or other.city,
            state=self.state or other.state,
            zip_code=self.zip_code or other.zip_code,
        )

    def full_address(self) -> str:
        parts = [self.address]
        # "123 Main St, Chicago, IL" already carries its locality.
        if not (self.address and "," in self.address):
            parts += [self.city, self.state, self.zip_code]
        return ", ".join(p for p in parts if p)

    def location_text(self) -> str:
        return " ".join(p for p in (self.address, self.city, self.state, self.zip_code) if p)


@dataclass
class SearchResult:
    success: bool
    payload: dict[str, Any] = field(default_factory=dict)
    source_label: str | None = None
    message: str = ""
    attempts: list[str] = field(default_factory=list)

    def to_payload(self) -> dict[str, Any]:
        """Tool-facing representation."""
        data = {"success": self.success, "message": self.message, **self.payload}
        if self.source_label:
            data["source"] = self.source_label
        if not self.success:
            data.setdefault("error", "Unable to find property information using any available data source.")
        return data


def is_residential_query(query: str) -> bool:
    lowered = (query or "").lower()
    return any(keyword in lowered for keyword in RESIDENTIAL_KEYWORDS)


class MultiProviderSearch:
    """Ordered fallback search across ATTOM, RentCast and web search."""

    def __init__(self, attom: AttomClient, rentcast: RentCastClient, web: TavilyClient):
        self.attom = attom
        self.rentcast = rentcast
        self.web = web

    async def search(self, query: str, hints: SearchHints | None = None) -> SearchResult:
        started = time.monotonic()
        hints = (hints or SearchHints()).merged_with(SearchHints.from_query(query))
        attempts: list[str] = []

        result = await self._try_attom(query, hints, attempts)
        if result is None and is_residential_query(query):
            result = await self._try_rentcast(hints, attempts)
        if result is None:
            result = await self._try_web(query, hints, attempts)

        elapsed = time.monotonic() - started
        if result is None:
            logger.warning(f"Property search exhausted all providers in {elapsed:.2f}s")
            return SearchResult(success=False, message=NOT_FOUND_MESSAGE, attempts=attempts)

        result.attempts = attempts
        result.payload["response_time"] = f"{elapsed:.2f}"
        logger.info(f"Property search answered by {result.source_label} in {elapsed:.2f}s")
        return result

    async def _try_attom(self, query: str, hints: SearchHints, attempts: list[str]) -> SearchResult | None:
        attempts.append(SOURCE_ATTOM)
        params = build_attom_params(hints.address, hints.city, hints.state, hints.zip_code)
        if not params:
            logger.info("ATTOM skipped: no address or locality in query")
            return None
        try:
            data = await self.attom.property_snapshot(params)
        except Exception as e:
            logger.warning(f"ATTOM search failed: {e}")
            return None

        properties = data.get("property") or []
        if data.get("error") or not properties:
            logger.info(f"ATTOM: no results ({data.get('error', 'empty property list')})")
            return None
        return SearchResult(
            success=True,
            payload={"properties": properties, "property_count": len(properties)},
            source_label=SOURCE_ATTOM,
            message=f"Found {len(properties)} properties using ATTOM Data.",
        )

    async def _try_rentcast(self, hints: SearchHints, attempts: list[str]) -> SearchResult | None:
        attempts.append(SOURCE_RENTCAST)
        address = hints.full_address()
        if not address:
            return None
        try:
            data = await self.rentcast.get_property_details(address)
        except Exception as e:
            logger.warning(f"RentCast search failed: {e}")
            return None

        if not data or data.get("error"):
            logger.info(f"RentCast: no results ({data.get('error') if data else 'empty'})")
            return None
        return SearchResult(
            success=True,
            payload={"properties": [data], "property_count": 1},
            source_label=SOURCE_RENTCAST,
            message="Found residential property data using RentCast.",
        )

    async def _try_web(self, query: str, hints: SearchHints, attempts: list[str]) -> SearchResult | None:
        attempts.append(SOURCE_WEB)
        location = hints.location_text()
        # Skip the location when it is already spelled out in the query.
        if location and location.lower() in query.lower():
            location = ""
        search_query = " ".join(p for p in (query, location, "property real estate") if p).strip()
        try:
            data = await self.web.search(search_query)
        except Exception as e:
            logger.warning(f"Web search failed: {e}")
            return None

        results = data.get("results") or []
        if data.get("error") or not results:
            return None
        return SearchResult(
            success=True,
            payload={"web_results": results, "result_count": len(results), "answer": data.get("answer")},
            source_label=SOURCE_WEB,
            message=f"Found {len(results)} web results about the property.",
        )
