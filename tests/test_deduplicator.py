"""
Unit tests for RequestDeduplicator.
"""

import asyncio

import pytest

from employee_api.services.deduplicator import RequestDeduplicator


class TestRequestDeduplicator:
    """Test cases for RequestDeduplicator."""

    @pytest.mark.asyncio
    async def test_concurrent_callers_share_result(self):
        dedup = RequestDeduplicator()
        release = asyncio.Event()
        calls = 0

        async def request_fn():
            nonlocal calls
            calls += 1
            await release.wait()
            return "result"

        tasks = [asyncio.create_task(dedup.dedupe("key", request_fn)) for _ in range(3)]
        await asyncio.sleep(0)
        assert dedup.get_in_flight_count() == 1

        release.set()
        assert await asyncio.gather(*tasks) == ["result"] * 3
        assert calls == 1
        assert dedup.get_in_flight_count() == 0

    @pytest.mark.asyncio
    async def test_exception_reaches_every_waiter(self):
        dedup = RequestDeduplicator()
        release = asyncio.Event()

        async def request_fn():
            await release.wait()
            raise RuntimeError("upstream down")

        tasks = [asyncio.create_task(dedup.dedupe("key", request_fn)) for _ in range(2)]
        await asyncio.sleep(0)
        release.set()
        results = await asyncio.gather(*tasks, return_exceptions=True)

        assert all(isinstance(r, RuntimeError) for r in results)
        assert dedup.get_in_flight_count() == 0

    @pytest.mark.asyncio
    async def test_sequential_calls_run_again(self):
        dedup = RequestDeduplicator()
        calls = 0

        async def request_fn():
            nonlocal calls
            calls += 1
            return calls

        assert await dedup.dedupe("key", request_fn) == 1
        assert await dedup.dedupe("key", request_fn) == 2

    @pytest.mark.asyncio
    async def test_cancel_all(self):
        dedup = RequestDeduplicator()
        never = asyncio.Event()

        async def request_fn():
            await never.wait()

        task = asyncio.create_task(dedup.dedupe("key", request_fn))
        await asyncio.sleep(0)

        assert await dedup.cancel_all() == 1
        with pytest.raises(asyncio.CancelledError):
            await task
