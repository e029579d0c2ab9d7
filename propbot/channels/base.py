"""Base channel interface and the outbound message chunker."""

import asyncio
import re
from abc import ABC, abstractmethod
from typing import Any

from loguru import logger

from propbot.utils.pii import mask_phone_number

DEFAULT_CHUNK_SIZE = 300
EMPTY_REPLY_APOLOGY = "Sorry, I couldn't generate a response. Please try again."

_MARKER_RE = re.compile(r"^\((\d+)/(\d+)\) ")


def _split(text: str, budget: int) -> list[str]:
    parts = []
    rest = text
    while len(rest) > budget:
        cut = rest.rfind(" ", 0, budget)
        # Keep the space with the left-hand part so nothing is lost on rejoin.
        cut = budget if cut < 0 else cut + 1
        parts.append(rest[:cut])
        rest = rest[cut:]
    if rest:
        parts.append(rest)
    return parts


def chunk_message(text: str, limit: int = DEFAULT_CHUNK_SIZE) -> list[str]:
    """
    Split ``text`` into SMS-sized chunks.

    Text that fits is returned as a single chunk without a marker. Longer
    text is split at the last space that fits (or hard-split inside a long
    word) and every chunk is prefixed with ``(i/n) ``. Each chunk, marker
    included, is at most ``limit`` characters, and ``join_chunks`` gives back
    ``text`` exactly.
    """
    if len(text) <= limit:
        return [text]

    digits = 1
    while True:
        budget = limit - len(f"({'9' * digits}/{'9' * digits}) ")
        if budget < 1:
            raise ValueError(f"Chunk limit {limit} is too small for part markers")
        parts = _split(text, budget)
        if len(str(len(parts))) <= digits:
            break
        digits += 1

    total = len(parts)
    return [f"({i}/{total}) {part}" for i, part in enumerate(parts, start=1)]


def strip_part_marker(chunk: str) -> str:
    """Remove a leading ``(i/n) `` marker, if present."""
    return _MARKER_RE.sub("", chunk, count=1)


def join_chunks(chunks: list[str]) -> str:
    """Rebuild the text given to ``chunk_message``. A single chunk is never marked."""
    if len(chunks) == 1:
        return chunks[0]
    return "".join(strip_part_marker(chunk) for chunk in chunks)


class BaseChannel(ABC):
    """
    Abstract base class for outbound channels.

    ``send`` handles chunking and pacing; implementations only deliver a
    single chunk.
    """

    name: str = "base"

    def __init__(self, config: Any):
        """
        Initialize the channel.

        Args:
            config: Channel-specific configuration.
        """
        self.config = config
        self.chunk_size = getattr(config, "chunk_size", DEFAULT_CHUNK_SIZE)
        self.chunk_delay_seconds = getattr(config, "chunk_delay_seconds", 1.0)

    @abstractmethod
    async def _send_chunk(self, recipient: str, body: str) -> bool:
        """Deliver one chunk. Returns True when the provider accepted it."""
        pass

    async def send(self, recipient: str, text: str) -> int:
        """
        Send ``text`` to ``recipient`` as one or more chunks, in order.

        Returns:
            Number of chunks the provider accepted.
        """
        if not text or not text.strip():
            text = EMPTY_REPLY_APOLOGY

        chunks = chunk_message(text, self.chunk_size)
        if len(chunks) > 1:
            logger.info(f"Splitting reply to {mask_phone_number(recipient)} into {len(chunks)} parts")

        delivered = 0
        for index, chunk in enumerate(chunks):
            if index and self.chunk_delay_seconds > 0:
                await asyncio.sleep(self.chunk_delay_seconds)
            if await self._send_chunk(recipient, chunk):
                delivered += 1
        return delivered

    def is_allowed(self, sender_id: str) -> bool:
        """
        Check if a sender is allowed to use this bot.

        Args:
            sender_id: The sender's identifier.

        Returns:
            True if allowed, False otherwise.
        """
        allow_list = getattr(self.config, "allow_from", [])

        # If no allow list, allow everyone
        if not allow_list:
            return True
        return str(sender_id) in allow_list
