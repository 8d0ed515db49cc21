"""Tests for cached fetch bindings."""

import asyncio

import pytest

from mdrrmo.core.cache import CachedFetch, InMemoryCache, SingleFlight


class CountingFetcher:
    """Fetcher stub returning queued results or raising queued errors."""

    def __init__(self, *results, delay: float = 0.0):
        self.results = list(results)
        self.calls = 0
        self.delay = delay
        self.loading_seen: list[bool] = []
        self.binding: CachedFetch | None = None

    async def __call__(self):
        self.calls += 1
        if self.binding is not None:
            self.loading_seen.append(self.binding.loading)
        if self.delay:
            await asyncio.sleep(self.delay)
        result = self.results.pop(0) if len(self.results) > 1 else self.results[0]
        if isinstance(result, Exception):
            raise result
        return result


@pytest.fixture
def store(clock):
    return InMemoryCache(clock=clock)


class TestLoad:
    @pytest.mark.asyncio
    async def test_miss_fetches_and_stores(self, store):
        fetcher = CountingFetcher(["a", "b", "c"])
        binding = CachedFetch("news-list", fetcher, store)

        result = await binding.load()

        assert result == ["a", "b", "c"]
        assert binding.data == ["a", "b", "c"]
        assert binding.error is None
        assert binding.loading is False
        assert fetcher.calls == 1
        assert await store.get("news-list") == ["a", "b", "c"]

    @pytest.mark.asyncio
    async def test_hit_does_not_call_fetcher(self, store):
        await store.set("news-list", ["cached"])
        fetcher = CountingFetcher(["fresh"])
        binding = CachedFetch("news-list", fetcher, store)

        assert await binding.load() == ["cached"]
        assert fetcher.calls == 0

    @pytest.mark.asyncio
    async def test_second_load_within_ttl_served_from_cache(self, store):
        fetcher = CountingFetcher("v")
        binding = CachedFetch("k", fetcher, store, ttl=60)

        await binding.load()
        await binding.load()

        assert fetcher.calls == 1

    @pytest.mark.asyncio
    async def test_expired_entry_refetched(self, store, clock):
        fetcher = CountingFetcher("v1", "v2")
        binding = CachedFetch("k", fetcher, store, ttl=60)

        await binding.load()
        clock.advance(61)

        assert await binding.load() == "v2"
        assert fetcher.calls == 2

    @pytest.mark.asyncio
    async def test_force_bypasses_cache(self, store):
        await store.set("k", "old")
        fetcher = CountingFetcher("new")
        binding = CachedFetch("k", fetcher, store)

        assert await binding.load(force=True) == "new"
        assert await store.get("k") == "new"

    @pytest.mark.asyncio
    async def test_loading_true_while_fetching(self, store):
        fetcher = CountingFetcher("v")
        binding = CachedFetch("k", fetcher, store)
        fetcher.binding = binding

        await binding.load()

        assert fetcher.loading_seen == [True]
        assert binding.loading is False

    @pytest.mark.asyncio
    async def test_none_result_is_not_cached(self, store):
        fetcher = CountingFetcher(None)
        binding = CachedFetch("k", fetcher, store)

        assert await binding.load() is None
        assert await store.has("k") is False
        assert binding.error is None


class TestFailures:
    @pytest.mark.asyncio
    async def test_first_load_failure(self, store):
        error = RuntimeError("backend down")
        binding = CachedFetch("k", CountingFetcher(error), store)

        assert await binding.load() is None
        assert binding.data is None
        assert binding.error is error
        assert binding.loading is False

    @pytest.mark.asyncio
    async def test_stale_while_error(self, store):
        error = ConnectionError("timeout")
        fetcher = CountingFetcher("v", error)
        binding = CachedFetch("k", fetcher, store)
        await binding.load()

        await binding.refresh()

        assert binding.data == "v"
        assert binding.error is error
        assert binding.loading is False
        assert await store.get("k") == "v"

    @pytest.mark.asyncio
    async def test_next_load_clears_error(self, store):
        fetcher = CountingFetcher(RuntimeError("boom"), "v")
        binding = CachedFetch("k", fetcher, store)

        await binding.load()
        assert binding.error is not None

        await binding.load()
        assert binding.error is None
        assert binding.data == "v"


class TestInvalidateAndRefresh:
    @pytest.mark.asyncio
    async def test_invalidate_fetches_exactly_once(self, store):
        await store.set("k", "cached")
        fetcher = CountingFetcher("fresh")
        binding = CachedFetch("k", fetcher, store)

        assert await binding.invalidate() == "fresh"
        assert fetcher.calls == 1
        assert await store.get("k") == "fresh"

    @pytest.mark.asyncio
    async def test_invalidate_with_failing_fetcher_leaves_key_absent(self, store):
        await store.set("k", "cached")
        error = RuntimeError("boom")
        binding = CachedFetch("k", CountingFetcher(error), store)

        await binding.invalidate()

        assert binding.error is error
        assert await store.get("k") is None

    @pytest.mark.asyncio
    async def test_refresh_overwrites(self, store):
        await store.set("k", "cached")
        fetcher = CountingFetcher("fresh")
        binding = CachedFetch("k", fetcher, store)

        assert await binding.refresh() == "fresh"
        assert fetcher.calls == 1
        assert await store.get("k") == "fresh"


class TestAutoRefresh:
    @pytest.mark.asyncio
    async def test_start_loads_and_refreshes_periodically(self, store):
        fetcher = CountingFetcher("v")
        binding = CachedFetch("k", fetcher, store, refresh_interval=0.01)

        async with binding:
            assert binding.data == "v"
            await asyncio.sleep(0.055)
            assert binding.refreshing is True

        assert fetcher.calls >= 3
        assert binding.refreshing is False

    @pytest.mark.asyncio
    async def test_close_stops_timer(self, store):
        fetcher = CountingFetcher("v")
        binding = CachedFetch("k", fetcher, store, refresh_interval=0.01)

        await binding.start()
        await binding.close()
        calls = fetcher.calls
        await asyncio.sleep(0.03)

        assert fetcher.calls == calls

    @pytest.mark.asyncio
    async def test_no_interval_no_timer(self, store):
        binding = CachedFetch("k", CountingFetcher("v"), store)

        await binding.start()

        assert binding.refreshing is False

    @pytest.mark.asyncio
    async def test_set_refresh_interval_restarts_timer(self, store):
        fetcher = CountingFetcher("v")
        binding = CachedFetch("k", fetcher, store)
        await binding.start()

        await binding.set_refresh_interval(0.01)
        assert binding.refreshing is True
        await asyncio.sleep(0.035)
        assert fetcher.calls >= 2

        await binding.set_refresh_interval(None)
        assert binding.refreshing is False

    @pytest.mark.asyncio
    async def test_snapshot(self, store):
        binding = CachedFetch("k", CountingFetcher("v"), store)
        await binding.load()

        assert binding.snapshot() == {"key": "k", "data": "v", "loading": False, "error": None}


class TestSingleFlight:
    @pytest.mark.asyncio
    async def test_concurrent_loads_share_one_fetch(self, store):
        fetcher = CountingFetcher("v", delay=0.02)
        flight = SingleFlight()
        first = CachedFetch("k", fetcher, store, single_flight=flight)
        second = CachedFetch("k", fetcher, store, single_flight=flight)

        results = await asyncio.gather(first.load(), second.load(), first.refresh())

        assert results == ["v", "v", "v"]
        assert fetcher.calls == 1
        assert flight.in_flight("k") is False

    @pytest.mark.asyncio
    async def test_shared_failure_reaches_every_caller(self, store):
        error = RuntimeError("boom")
        fetcher = CountingFetcher(error, delay=0.02)
        flight = SingleFlight()
        first = CachedFetch("k", fetcher, store, single_flight=flight)
        second = CachedFetch("k", fetcher, store, single_flight=flight)

        await asyncio.gather(first.load(), second.load())

        assert fetcher.calls == 1
        assert first.error is error
        assert second.error is error

    @pytest.mark.asyncio
    async def test_sequential_loads_fetch_again(self, store):
        fetcher = CountingFetcher("v1", "v2")
        binding = CachedFetch("k", fetcher, store, single_flight=SingleFlight())

        await binding.refresh()
        await binding.refresh()

        assert fetcher.calls == 2
        assert binding.data == "v2"

    @pytest.mark.asyncio
    async def test_without_single_flight_concurrent_loads_both_fetch(self, store):
        fetcher = CountingFetcher("v", delay=0.02)
        first = CachedFetch("k", fetcher, store)
        second = CachedFetch("k", fetcher, store)

        await asyncio.gather(first.load(), second.load())

        assert fetcher.calls == 2
