import asyncio

import pytest

from propbot.core.errors import ProviderTimeoutError, TransientProviderError
from propbot.core.timeout import with_timeout


@pytest.mark.asyncio
async def test_fast_call_returns_value():
    async def fast():
        return 42

    assert await with_timeout(fast(), 1.0, "fast") == 42


@pytest.mark.asyncio
async def test_slow_call_times_out_and_is_cancelled():
    cancelled = asyncio.Event()

    async def slow():
        try:
            await asyncio.sleep(5)
        except asyncio.CancelledError:
            cancelled.set()
            raise

    with pytest.raises(ProviderTimeoutError) as exc:
        await with_timeout(slow(), 0.05, "ATTOM API /property/snapshot")

    assert isinstance(exc.value, TransientProviderError)
    assert exc.value.provider == "ATTOM API /property/snapshot"
    assert exc.value.timeout == 0.05
    assert cancelled.is_set()


@pytest.mark.asyncio
async def test_errors_from_the_call_propagate():
    async def broken():
        raise ValueError("bad payload")

    with pytest.raises(ValueError):
        await with_timeout(broken(), 1.0)
