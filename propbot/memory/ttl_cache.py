"""Simple in-memory TTL cache backing conversation and dedup state."""

import time
from typing import Any, Callable


class TTLCache:
    """In-memory cache with per-entry time-to-live and a size bound."""

    def __init__(
        self,
        default_ttl_seconds: float = 300,
        max_entries: int = 10000,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._store: dict[str, tuple[float, Any]] = {}
        self._default_ttl = default_ttl_seconds
        self._max_entries = max_entries
        self._clock = clock

    def get(self, key: str) -> Any | None:
        """Get cached value if not expired."""
        entry = self._store.get(key)
        if entry is None:
            return None
        expires_at, value = entry
        if self._clock() > expires_at:
            del self._store[key]
            return None
        return value

    def set(self, key: str, value: Any, ttl_seconds: float | None = None) -> None:
        """Set value with TTL."""
        ttl = ttl_seconds if ttl_seconds is not None else self._default_ttl
        if key not in self._store and len(self._store) >= self._max_entries:
            self._make_room()
        self._store[key] = (self._clock() + ttl, value)

    def touch(self, key: str, ttl_seconds: float | None = None) -> bool:
        """Renew the TTL of a live entry. Returns False if the key is missing or expired."""
        value = self.get(key)
        if value is None:
            return False
        self.set(key, value, ttl_seconds)
        return True

    def delete(self, key: str) -> bool:
        """Remove a key. Returns True if it existed."""
        return self._store.pop(key, None) is not None

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None

    def __len__(self) -> int:
        self._evict_expired()
        return len(self._store)

    def clear(self) -> None:
        """Clear all cached entries."""
        self._store.clear()

    def _make_room(self) -> None:
        self._evict_expired()
        if len(self._store) < self._max_entries:
            return
        # Drop the entry closest to expiry.
        oldest = min(self._store, key=lambda k: self._store[k][0])
        del self._store[oldest]

    def _evict_expired(self) -> None:
        """Remove all expired entries."""
        now = self._clock()
        expired = [k for k, (exp, _) in self._store.items() if now > exp]
        for k in expired:
            del self._store[k]
