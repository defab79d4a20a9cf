"""Process-wide response cache and outbound request queue."""

from __future__ import annotations

import asyncio
import logging
import time
from collections import deque
from typing import Any, Awaitable, Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ResponseCache:
    """TTL cache with a size bound, evicting the oldest insertion first.

    The cache is only touched from the event loop thread, so individual
    reads and writes are atomic. Two callers missing the same key at once may
    both fetch; the later write wins.
    """

    def __init__(
        self,
        ttl_seconds: float,
        max_entries: int,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self._ttl = ttl_seconds
        self._max_entries = max_entries
        self._clock = clock
        self._entries: dict[str, tuple[Any, float]] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: str) -> Any | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        payload, fetched_at = entry
        if self._clock() - fetched_at >= self._ttl:
            self._entries.pop(key, None)
            return None
        return payload

    def set(self, key: str, payload: Any) -> None:
        # Re-inserting moves the key to the back of the eviction order.
        self._entries.pop(key, None)
        self._entries[key] = (payload, self._clock())
        while len(self._entries) > self._max_entries:
            oldest = next(iter(self._entries))
            self._entries.pop(oldest, None)


class RequestQueue:
    """FIFO queue pacing outbound calls in fixed-size batches.

    At most ``batch_size`` calls are in flight at once. Calls are started in
    submission order, and after every ``batch_size`` starts the queue waits
    ``batch_delay`` seconds before starting more. Each slot is freed as soon
    as its own call finishes. Failures are delivered to the caller that
    submitted the call.
    """

    def __init__(self, batch_size: int = 5, batch_delay: float = 0.25) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self._batch_size = batch_size
        self._batch_delay = batch_delay
        self._pending: deque[tuple[Callable[[], Awaitable[Any]], asyncio.Future[Any]]] = deque()
        self._slots: asyncio.Semaphore | None = None
        self._running: set[asyncio.Task[None]] = set()
        self._drainer: asyncio.Task[None] | None = None

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def submit(self, factory: Callable[[], Awaitable[T]]) -> T:
        loop = asyncio.get_running_loop()
        future: asyncio.Future[Any] = loop.create_future()
        self._pending.append((factory, future))
        if self._drainer is None or self._drainer.done():
            self._drainer = loop.create_task(self._drain())
        return await future

    async def _drain(self) -> None:
        if self._slots is None:
            self._slots = asyncio.Semaphore(self._batch_size)
        started = 0
        while self._pending:
            await self._slots.acquire()
            factory, future = self._pending.popleft()
            task = asyncio.get_running_loop().create_task(self._run(factory, future))
            self._running.add(task)
            task.add_done_callback(self._release)
            started += 1
            if started % self._batch_size == 0 and self._pending:
                logger.debug(
                    "Started %d outbound calls, %d still queued", started, len(self._pending)
                )
                if self._batch_delay > 0:
                    await asyncio.sleep(self._batch_delay)

    def _release(self, task: asyncio.Task[None]) -> None:
        self._running.discard(task)
        if self._slots is not None:
            self._slots.release()

    @staticmethod
    async def _run(
        factory: Callable[[], Awaitable[Any]], future: asyncio.Future[Any]
    ) -> None:
        if future.done():
            # The caller gave up before its turn came.
            return
        try:
            result = await factory()
        except Exception as exc:
            if not future.done():
                future.set_exception(exc)
            return
        if not future.done():
            future.set_result(result)
