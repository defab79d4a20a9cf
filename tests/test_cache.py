from __future__ import annotations

import asyncio

import pytest

from app.services.cache import RequestQueue, ResponseCache


class FakeClock:
    def __init__(self) -> None:
        self.now = 1_000.0

    def __call__(self) -> float:
        return self.now


def test_entries_expire_after_ttl() -> None:
    clock = FakeClock()
    cache = ResponseCache(60, 10, clock=clock)
    cache.set("key", {"value": 1})

    clock.now += 59
    assert cache.get("key") == {"value": 1}

    clock.now += 1
    assert cache.get("key") is None
    assert len(cache) == 0


def test_eviction_follows_insertion_order() -> None:
    cache = ResponseCache(3_600, 2, clock=FakeClock())
    cache.set("a", 1)
    cache.set("b", 2)
    cache.get("a")
    cache.set("c", 3)

    # Reads do not refresh an entry's position.
    assert cache.get("a") is None
    assert cache.get("b") == 2
    assert cache.get("c") == 3


def test_rewriting_a_key_moves_it_to_the_back() -> None:
    cache = ResponseCache(3_600, 2, clock=FakeClock())
    cache.set("a", 1)
    cache.set("b", 2)
    cache.set("a", 10)
    cache.set("c", 3)

    assert cache.get("a") == 10
    assert cache.get("b") is None


def test_cache_rejects_empty_capacity() -> None:
    with pytest.raises(ValueError):
        ResponseCache(60, 0)


def test_queue_limits_calls_in_flight() -> None:
    async def runner() -> None:
        queue = RequestQueue(batch_size=2, batch_delay=0)
        in_flight = 0
        peak = 0
        order: list[int] = []

        def make(index: int):
            async def call() -> int:
                nonlocal in_flight, peak
                in_flight += 1
                peak = max(peak, in_flight)
                await asyncio.sleep(0.01)
                in_flight -= 1
                order.append(index)
                return index * 10

            return call

        results = await asyncio.gather(*(queue.submit(make(index)) for index in range(5)))

        assert results == [0, 10, 20, 30, 40]
        assert peak == 2
        assert sorted(order[:2]) == [0, 1]
        assert queue.pending == 0

    asyncio.run(runner())


def test_queue_delivers_failures_to_the_submitter() -> None:
    async def runner() -> None:
        queue = RequestQueue(batch_size=5, batch_delay=0)

        async def broken() -> None:
            raise RuntimeError("boom")

        async def working() -> str:
            return "ok"

        outcomes = await asyncio.gather(
            queue.submit(broken), queue.submit(working), return_exceptions=True
        )

        assert isinstance(outcomes[0], RuntimeError)
        assert outcomes[1] == "ok"

    asyncio.run(runner())


def test_queue_pauses_between_batches_in_submission_order() -> None:
    async def runner() -> None:
        loop = asyncio.get_running_loop()
        queue = RequestQueue(batch_size=2, batch_delay=0.05)
        started: list[tuple[int, float]] = []

        def make(index: int):
            async def call() -> int:
                started.append((index, loop.time()))
                return index

            return call

        results = await asyncio.gather(*(queue.submit(make(index)) for index in range(6)))

        assert results == [0, 1, 2, 3, 4, 5]
        assert [index for index, _ in started] == [0, 1, 2, 3, 4, 5]
        times = [moment for _, moment in started]
        assert times[1] - times[0] < 0.04
        assert times[2] - times[1] >= 0.04
        assert times[3] - times[2] < 0.04
        assert times[4] - times[3] >= 0.04

    asyncio.run(runner())


def test_hung_call_does_not_block_other_callers() -> None:
    async def runner() -> None:
        queue = RequestQueue(batch_size=5, batch_delay=0)
        release = asyncio.Event()

        async def hung() -> str:
            await release.wait()
            return "slow"

        async def fast() -> str:
            return "fast"

        first_request = asyncio.gather(
            queue.submit(hung), *(queue.submit(fast) for _ in range(4))
        )
        await asyncio.sleep(0)

        second_request = await asyncio.wait_for(queue.submit(fast), 1.0)
        assert second_request == "fast"
        assert not first_request.done()

        release.set()
        assert await first_request == ["slow", "fast", "fast", "fast", "fast"]

    asyncio.run(runner())
