"""Event types for inbound messages."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass
class InboundMessage:
    """Message received from a channel webhook."""

    sender_id: str  # E.164 phone number for SMS
    recipient_id: str  # Our number
    body: str
    delivery_id: str | None = None  # Provider message id, used for deduplication
    channel: str = "sms"
    timestamp: datetime = field(default_factory=datetime.now)
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def identity(self) -> str:
        """Conversation key for this message."""
        return self.sender_id
