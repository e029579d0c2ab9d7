"""Inbound events and per-identity processing queue."""

from propbot.bus.events import InboundMessage
from propbot.bus.queue import IdentityMailbox

__all__ = ["InboundMessage", "IdentityMailbox"]
