"""Per-identity mailbox that serializes processing for each sender."""

import asyncio
from typing import Any, Awaitable, Callable

from loguru import logger

from propbot.utils.pii import mask_phone_number

Job = Callable[[], Awaitable[Any]]


class IdentityMailbox:
    """
    One FIFO queue per identity, drained by its own worker task.

    Jobs for the same identity run strictly in arrival order; different
    identities are drained concurrently. A worker exits as soon as its
    queue is empty and is recreated by the next ``enqueue``.
    """

    def __init__(self):
        self._queues: dict[str, asyncio.Queue[Job]] = {}
        self._workers: dict[str, asyncio.Task] = {}

    async def enqueue(self, key: str, job: Job) -> None:
        """Queue ``job`` behind any pending work for ``key``."""
        queue = self._queues.get(key)
        if queue is None:
            queue = asyncio.Queue()
            self._queues[key] = queue
        queue.put_nowait(job)

        worker = self._workers.get(key)
        if worker is None or worker.done():
            self._workers[key] = asyncio.create_task(self._drain(key, queue))

    async def _drain(self, key: str, queue: asyncio.Queue[Job]) -> None:
        while True:
            try:
                job = queue.get_nowait()
            except asyncio.QueueEmpty:
                break
            try:
                await job()
            except Exception as e:
                logger.error(f"Mailbox job failed for {mask_phone_number(key)}: {e}")
            finally:
                queue.task_done()

        if self._queues.get(key) is queue:
            del self._queues[key]
        self._workers.pop(key, None)

    def pending(self, key: str) -> int:
        """Number of jobs waiting (not yet started) for ``key``."""
        queue = self._queues.get(key)
        return queue.qsize() if queue else 0

    @property
    def active_keys(self) -> list[str]:
        return list(self._workers.keys())

    async def join(self) -> None:
        """Wait until every queued job has finished."""
        while self._workers:
            await asyncio.gather(*list(self._workers.values()), return_exceptions=True)

    async def stop(self) -> None:
        """Cancel all workers and drop queued jobs."""
        workers = list(self._workers.values())
        for worker in workers:
            worker.cancel()
        await asyncio.gather(*workers, return_exceptions=True)
        self._workers.clear()
        self._queues.clear()
