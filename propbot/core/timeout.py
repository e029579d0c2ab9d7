"""Time-bounded awaiting for outbound provider calls."""

import asyncio
from typing import Awaitable, TypeVar

from propbot.core.errors import ProviderTimeoutError

T = TypeVar("T")

DEFAULT_TIMEOUT = 2.5


async def with_timeout(awaitable: Awaitable[T], seconds: float = DEFAULT_TIMEOUT, label: str = "provider") -> T:
    """
    Await ``awaitable`` for at most ``seconds``.

    Raises:
        ProviderTimeoutError: when the budget is exceeded. The pending call is
            cancelled by ``asyncio.wait_for``.
    """
    try:
        return await asyncio.wait_for(awaitable, timeout=seconds)
    except asyncio.TimeoutError as e:
        raise ProviderTimeoutError(label, seconds) from e
