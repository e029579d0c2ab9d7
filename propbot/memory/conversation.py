"""Per-identity conversation memory with TTL eviction."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Literal

from loguru import logger

from propbot.memory.ttl_cache import TTLCache
from propbot.utils.pii import mask_phone_number

Role = Literal["user", "assistant"]


@dataclass(frozen=True)
class Turn:
    """One message exchanged in either direction."""

    role: Role
    text: str
    timestamp: datetime = field(default_factory=datetime.now)
    metadata: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def user(cls, text: str, **metadata: Any) -> "Turn":
        return cls(role="user", text=text, metadata=metadata)

    @classmethod
    def assistant(cls, text: str, **metadata: Any) -> "Turn":
        return cls(role="assistant", text=text, metadata=metadata)


@dataclass(frozen=True)
class UserContext:
    """Identity resolved for a sender by the workspace lookup."""

    identity_id: str
    organization_id: str
    display_name: str = ""
    resolved_at: datetime = field(default_factory=datetime.now)
    phone_number: str | None = None
    email: str | None = None


@dataclass
class ConversationRecord:
    turns: list[Turn] = field(default_factory=list)
    context: UserContext | None = None


class ConversationStore:
    """
    Ephemeral conversation history keyed by identity.

    Each identity owns a single ``ConversationRecord`` stored in a TTL cache.
    Reads and writes renew the TTL; ``append`` trims history to ``max_turns``
    by dropping the oldest turns. Pending tasks and missing-data notes are
    kept under separate keys with their own TTL.
    """

    def __init__(
        self,
        ttl_seconds: float = 7200,
        max_turns: int = 50,
        cache: TTLCache | None = None,
    ):
        self.ttl_seconds = ttl_seconds
        self.max_turns = max_turns
        self._cache = cache if cache is not None else TTLCache(default_ttl_seconds=ttl_seconds)

    @staticmethod
    def _record_key(identity: str) -> str:
        return f"conversation:{identity}"

    def _load(self, identity: str) -> ConversationRecord | None:
        record = self._cache.get(self._record_key(identity))
        if record is not None:
            self._cache.set(self._record_key(identity), record, self.ttl_seconds)
        return record

    def _save(self, identity: str, record: ConversationRecord) -> None:
        self._cache.set(self._record_key(identity), record, self.ttl_seconds)

    def append(self, identity: str, turn: Turn) -> None:
        """Append a turn, creating the record on first use."""
        record = self._load(identity) or ConversationRecord()
        record.turns.append(turn)
        if len(record.turns) > self.max_turns:
            del record.turns[: len(record.turns) - self.max_turns]
        self._save(identity, record)

    def recent_turns(self, identity: str, n: int = 10) -> list[Turn]:
        """Return up to ``n`` most recent turns, oldest first."""
        record = self._load(identity)
        if record is None or n <= 0:
            return []
        return list(record.turns[-n:])

    def get_context(self, identity: str) -> UserContext | None:
        record = self._load(identity)
        return record.context if record else None

    def set_context(self, identity: str, context: UserContext) -> None:
        record = self._load(identity) or ConversationRecord()
        record.context = context
        self._save(identity, record)
        logger.debug(f"Stored user context for {mask_phone_number(identity)}")

    def clear(self, identity: str) -> None:
        """Destroy the record and any auxiliary task state for ``identity``."""
        self._cache.delete(self._record_key(identity))
        self.clear_pending_task(identity)
        self.clear_missing_data(identity)

    # Pending fulfillment tasks

    def set_pending_task(self, identity: str, task: dict[str, Any]) -> None:
        record = {**task, "created_at": datetime.now().isoformat(), "status": "pending"}
        self._cache.set(f"pending_task:{identity}", record, self.ttl_seconds)

    def get_pending_task(self, identity: str) -> dict[str, Any] | None:
        return self._cache.get(f"pending_task:{identity}")

    def update_pending_task(self, identity: str, updates: dict[str, Any]) -> dict[str, Any] | None:
        existing = self.get_pending_task(identity)
        if existing is None:
            return None
        updated = {**existing, **updates, "updated_at": datetime.now().isoformat()}
        self._cache.set(f"pending_task:{identity}", updated, self.ttl_seconds)
        return updated

    def clear_pending_task(self, identity: str) -> None:
        self._cache.delete(f"pending_task:{identity}")

    # Missing data requirements

    def set_missing_data(self, identity: str, missing: list[str]) -> None:
        record = {"missing": list(missing), "timestamp": datetime.now().isoformat()}
        self._cache.set(f"missing_data:{identity}", record, self.ttl_seconds)

    def get_missing_data(self, identity: str) -> list[str]:
        record = self._cache.get(f"missing_data:{identity}")
        return list(record["missing"]) if record else []

    def clear_missing_data(self, identity: str) -> None:
        self._cache.delete(f"missing_data:{identity}")
