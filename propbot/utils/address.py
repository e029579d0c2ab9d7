"""Address and location extraction from free-text queries."""

import re
from typing import Optional

STREET_SUFFIXES = (
    "St", "Street", "Ave", "Avenue", "Rd", "Road", "Dr", "Drive", "Blvd",
    "Boulevard", "Way", "Lane", "Ln", "Ct", "Court", "Pl", "Place", "Pkwy",
    "Parkway", "Ter", "Terrace", "Cir", "Circle", "Hwy", "Highway",
)

ADDRESS_RE = re.compile(
    r"\d+\s+[A-Za-z0-9\s.]+?\s(?:" + "|".join(STREET_SUFFIXES) + r")\b\.?",
    re.IGNORECASE,
)
_CITY_STATE_RE = re.compile(r"([A-Za-z][A-Za-z\s]*),\s*([A-Z]{2})\b\s*(\d{5})?")


def extract_address_from_query(query: str) -> Optional[str]:
    """Return the first street address (leading house number plus suffix) in ``query``."""
    if not query:
        return None
    match = ADDRESS_RE.search(query)
    return match.group(0).strip() if match else None


def extract_location_from_query(query: str) -> dict[str, Optional[str]]:
    """
    Extract city, state and ZIP code from text such as ``"Chicago, IL 60601"``.

    When the text also contains a street address, the city is taken from the
    segment after the street so ``"123 Main St, Chicago, IL"`` yields
    ``Chicago`` rather than the whole street line.
    """
    empty = {"city": None, "state": None, "zip_code": None}
    if not query:
        return empty

    for match in _CITY_STATE_RE.finditer(query):
        city = re.split(r"\b(?:in|near|at|around)\s+", match.group(1).strip())[-1].strip()
        # "123 Main St, Chicago, IL": the regex may anchor on the street part.
        if not city or ADDRESS_RE.fullmatch(city) or city.split()[0].isdigit():
            continue
        return {"city": city, "state": match.group(2), "zip_code": match.group(3)}

    # Fall back to "<street>, <city>, <ST>" where the city segment is isolated.
    parts = [p.strip() for p in query.split(",")]
    if len(parts) >= 3 and re.fullmatch(r"[A-Z]{2}(\s+\d{5})?", parts[2]):
        state, _, zip_code = parts[2].partition(" ")
        return {"city": parts[1], "state": state, "zip_code": zip_code or None}
    return empty
