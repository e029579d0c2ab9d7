"""Outbound delivery channels."""

from propbot.channels.base import BaseChannel, chunk_message, join_chunks, strip_part_marker
from propbot.channels.sms import SmsChannel

__all__ = ["BaseChannel", "SmsChannel", "chunk_message", "join_chunks", "strip_part_marker"]
