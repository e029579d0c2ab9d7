"""Property search across multiple data providers."""

from propbot.search.property import MultiProviderSearch, SearchHints, SearchResult

__all__ = ["MultiProviderSearch", "SearchHints", "SearchResult"]
