"""Ephemeral conversation memory."""

from propbot.memory.conversation import ConversationStore, Turn, UserContext
from propbot.memory.idempotency import IdempotencyGuard
from propbot.memory.ttl_cache import TTLCache

__all__ = ["ConversationStore", "IdempotencyGuard", "TTLCache", "Turn", "UserContext"]
