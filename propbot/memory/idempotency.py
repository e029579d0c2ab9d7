"""Deduplication of redelivered inbound webhooks."""

from loguru import logger

from propbot.memory.ttl_cache import TTLCache


class IdempotencyGuard:
    """Remembers inbound message ids for ``ttl_seconds`` so each is processed once."""

    def __init__(self, ttl_seconds: float = 600, cache: TTLCache | None = None):
        self.ttl_seconds = ttl_seconds
        self._cache = cache if cache is not None else TTLCache(default_ttl_seconds=ttl_seconds)

    def claim(self, message_id: str | None) -> bool:
        """
        Claim ``message_id``.

        Returns:
            True the first time an id is seen within the TTL, False afterwards.
            Messages without an id cannot be deduplicated and are always claimable.
        """
        if not message_id:
            return True
        key = f"sid:{message_id}"
        if key in self._cache:
            logger.info(f"Duplicate delivery ignored: {message_id}")
            return False
        self._cache.set(key, True, self.ttl_seconds)
        return True
