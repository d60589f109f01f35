"""
RentalQ&A Backend — QueryCache Unit Tests
===========================================

What:  Tests for the keyed, single-flight, invalidate-on-write cache.
How:   Fetchers are plain coroutines gated with asyncio.Event; time comes
       from a fake clock so staleness is deterministic.

What we test:
    ✅ Concurrent fetches for one key call the fetcher once
    ✅ Fresh entries are served without fetching; stale ones refetch
    ✅ invalidate() forces the next fetch and reports whether anything was cached
    ✅ A fetch in flight during invalidate() does not overwrite the cache
    ✅ Failures are shared by joined callers and never stored
    ✅ state() mirrors data / is_loading / error
"""

import asyncio

import pytest

from rentalqa.services.query_cache import CacheStatus, QueryCache

KEY = ("questions",)


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class CountingFetcher:
    """Returns `value-N` on the Nth call, optionally blocking on a gate."""

    def __init__(self, gate: asyncio.Event = None):
        self.calls = 0
        self.gate = gate

    async def __call__(self):
        self.calls += 1
        call = self.calls
        if self.gate is not None:
            await self.gate.wait()
        return f"value-{call}"


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return QueryCache(stale_after=30, clock=clock)


class TestGetSet:
    """Tests for the plain cache operations."""

    def test_get_missing_returns_none(self, cache):
        assert cache.get(KEY) is None

    def test_set_then_get(self, cache):
        cache.set(KEY, ["a"])
        assert cache.get(KEY) == ["a"]
        assert cache.is_fresh(KEY)

    def test_invalidate_missing_key(self, cache):
        assert cache.invalidate(KEY) is False

    def test_invalidate_keeps_value_but_marks_stale(self, cache):
        cache.set(KEY, ["a"])

        assert cache.invalidate(KEY) is True
        assert cache.get(KEY) == ["a"]
        assert not cache.is_fresh(KEY)
        assert cache.state(KEY).status == CacheStatus.STALE

    def test_entry_goes_stale_after_window(self, cache, clock):
        cache.set(KEY, ["a"])
        clock.advance(29.9)
        assert cache.is_fresh(KEY)

        clock.advance(0.2)
        assert not cache.is_fresh(KEY)


class TestFetch:
    """Tests for fetch(): hits, misses and single-flight."""

    @pytest.mark.asyncio
    async def test_miss_calls_fetcher_and_stores(self, cache):
        fetcher = CountingFetcher()

        value = await cache.fetch(KEY, fetcher)

        assert value == "value-1"
        assert cache.get(KEY) == "value-1"
        assert cache.state(KEY).status == CacheStatus.FRESH

    @pytest.mark.asyncio
    async def test_fresh_hit_skips_fetcher(self, cache):
        fetcher = CountingFetcher()

        await cache.fetch(KEY, fetcher)
        value = await cache.fetch(KEY, fetcher)

        assert value == "value-1"
        assert fetcher.calls == 1

    @pytest.mark.asyncio
    async def test_stale_entry_refetches(self, cache, clock):
        fetcher = CountingFetcher()
        await cache.fetch(KEY, fetcher)

        clock.advance(31)
        value = await cache.fetch(KEY, fetcher)

        assert value == "value-2"
        assert fetcher.calls == 2

    @pytest.mark.asyncio
    async def test_invalidate_forces_refetch(self, cache):
        fetcher = CountingFetcher()
        await cache.fetch(KEY, fetcher)

        cache.invalidate(KEY)
        value = await cache.fetch(KEY, fetcher)

        assert value == "value-2"
        assert cache.is_fresh(KEY)

    @pytest.mark.asyncio
    async def test_concurrent_fetches_share_one_call(self, cache):
        gate = asyncio.Event()
        fetcher = CountingFetcher(gate)

        callers = [asyncio.ensure_future(cache.fetch(KEY, fetcher)) for _ in range(5)]
        await asyncio.sleep(0)
        assert cache.state(KEY).is_loading
        assert cache.state(KEY).status == CacheStatus.LOADING

        gate.set()
        results = await asyncio.gather(*callers)

        assert results == ["value-1"] * 5
        assert fetcher.calls == 1
        assert not cache.state(KEY).is_loading

    @pytest.mark.asyncio
    async def test_zero_staleness_still_single_flight(self, clock):
        cache = QueryCache(stale_after=0, clock=clock)
        gate = asyncio.Event()
        fetcher = CountingFetcher(gate)

        callers = [asyncio.ensure_future(cache.fetch(KEY, fetcher)) for _ in range(3)]
        await asyncio.sleep(0)
        gate.set()
        await asyncio.gather(*callers)
        assert fetcher.calls == 1

        await cache.fetch(KEY, fetcher)
        assert fetcher.calls == 2

    @pytest.mark.asyncio
    async def test_cancelled_caller_does_not_cancel_shared_fetch(self, cache):
        gate = asyncio.Event()
        fetcher = CountingFetcher(gate)

        first = asyncio.ensure_future(cache.fetch(KEY, fetcher))
        second = asyncio.ensure_future(cache.fetch(KEY, fetcher))
        await asyncio.sleep(0)

        first.cancel()
        gate.set()

        assert await second == "value-1"
        assert first.cancelled()
        assert cache.get(KEY) == "value-1"


class TestInvalidationDuringFetch:
    """A write landing while a read is in flight must not be masked."""

    @pytest.mark.asyncio
    async def test_in_flight_result_not_stored_after_invalidate(self, cache):
        gate = asyncio.Event()
        fetcher = CountingFetcher(gate)

        stale_read = asyncio.ensure_future(cache.fetch(KEY, fetcher))
        await asyncio.sleep(0)

        assert cache.invalidate(KEY) is True
        gate.set()

        # The original caller still gets its answer
        assert await stale_read == "value-1"
        assert cache.get(KEY) is None
        assert not cache.is_fresh(KEY)

    @pytest.mark.asyncio
    async def test_fetch_after_invalidate_starts_new_call(self, cache):
        gate = asyncio.Event()
        fetcher = CountingFetcher(gate)

        stale_read = asyncio.ensure_future(cache.fetch(KEY, fetcher))
        await asyncio.sleep(0)
        cache.invalidate(KEY)

        fresh_read = asyncio.ensure_future(cache.fetch(KEY, fetcher))
        await asyncio.sleep(0)
        gate.set()

        assert await stale_read == "value-1"
        assert await fresh_read == "value-2"
        assert fetcher.calls == 2
        assert cache.get(KEY) == "value-2"
        assert cache.is_fresh(KEY)


class TestFetchFailure:
    """Tests for failed fetches."""

    @pytest.mark.asyncio
    async def test_failure_propagates_and_is_not_cached(self, cache):
        error = RuntimeError("database unavailable")

        async def failing():
            raise error

        with pytest.raises(RuntimeError) as exc_info:
            await cache.fetch(KEY, failing)

        assert exc_info.value is error
        assert cache.get(KEY) is None
        state = cache.state(KEY)
        assert state.status == CacheStatus.ERROR
        assert state.error is error
        assert state.data is None

    @pytest.mark.asyncio
    async def test_joined_callers_share_failure(self, cache):
        gate = asyncio.Event()
        calls = 0

        async def failing():
            nonlocal calls
            calls += 1
            await gate.wait()
            raise RuntimeError("timeout")

        callers = [asyncio.ensure_future(cache.fetch(KEY, failing)) for _ in range(3)]
        await asyncio.sleep(0)
        gate.set()
        results = await asyncio.gather(*callers, return_exceptions=True)

        assert calls == 1
        assert all(isinstance(r, RuntimeError) for r in results)
        assert results[0] is results[1] is results[2]

    @pytest.mark.asyncio
    async def test_failure_keeps_previous_value(self, cache):
        await cache.fetch(KEY, CountingFetcher())
        cache.invalidate(KEY)

        async def failing():
            raise RuntimeError("down")

        with pytest.raises(RuntimeError):
            await cache.fetch(KEY, failing)

        state = cache.state(KEY)
        assert state.data == "value-1"
        assert state.status == CacheStatus.ERROR

    @pytest.mark.asyncio
    async def test_success_clears_error(self, cache):
        async def failing():
            raise RuntimeError("down")

        with pytest.raises(RuntimeError):
            await cache.fetch(KEY, failing)

        await cache.fetch(KEY, CountingFetcher())

        assert cache.state(KEY).error is None
        assert cache.state(KEY).status == CacheStatus.FRESH
