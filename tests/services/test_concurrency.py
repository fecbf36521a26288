import asyncio

import pytest

from nft_portfolio.services.concurrency import gather_settled


@pytest.mark.asyncio
async def test_results_keep_input_order_and_isolate_failures():
    async def worker(n):
        await asyncio.sleep(0.01 * (5 - n))
        if n == 2:
            raise ValueError("bad item")
        return n * 10

    settled = await gather_settled([1, 2, 3, 4], worker, limit=4)

    assert [s.item for s in settled] == [1, 2, 3, 4]
    assert [s.value for s in settled if s.ok] == [10, 30, 40]
    assert isinstance(settled[1].error, ValueError)


@pytest.mark.asyncio
async def test_in_flight_calls_are_bounded():
    in_flight = 0
    peak = 0

    async def worker(n):
        nonlocal in_flight, peak
        in_flight += 1
        peak = max(peak, in_flight)
        await asyncio.sleep(0.01)
        in_flight -= 1
        return n

    settled = await gather_settled(list(range(20)), worker, limit=3)

    assert len(settled) == 20
    assert peak == 3


@pytest.mark.asyncio
async def test_slow_item_times_out_without_blocking_siblings():
    async def worker(n):
        await asyncio.sleep(10 if n == 0 else 0)
        return n

    settled = await asyncio.wait_for(gather_settled([0, 1, 2], worker, limit=3, timeout=0.05), timeout=2)

    assert isinstance(settled[0].error, asyncio.TimeoutError)
    assert [s.value for s in settled[1:]] == [1, 2]


@pytest.mark.asyncio
async def test_empty_input_returns_empty_list():
    async def worker(n):
        raise AssertionError("should not be called")

    assert await gather_settled([], worker, limit=2) == []


@pytest.mark.asyncio
async def test_cancelling_caller_cancels_children():
    started = []
    cancelled = []

    async def worker(n):
        started.append(n)
        try:
            await asyncio.sleep(10)
        except asyncio.CancelledError:
            cancelled.append(n)
            raise

    task = asyncio.create_task(gather_settled([1, 2], worker, limit=2))
    while len(started) < 2:
        await asyncio.sleep(0)
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task
    assert sorted(cancelled) == [1, 2]


@pytest.mark.asyncio
async def test_lazy_input_is_consumed_only_as_workers_free_up():
    pulled = []

    def items():
        for n in range(10):
            pulled.append(n)
            yield n

    async def worker(n):
        # Never more than one item per worker taken ahead of completion
        assert len(pulled) <= n + 2
        await asyncio.sleep(0)
        return n

    settled = await gather_settled(items(), worker, limit=2)

    assert [s.value for s in settled] == list(range(10))
