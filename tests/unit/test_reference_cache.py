"""Unit tests for the stale-while-revalidate reference cache."""

from __future__ import annotations

import asyncio
from typing import Any

import pytest

from src.infra.notifications import CollectingNotifier
from src.services.reference_cache import ReferenceDataCache

KEY = ("offices",)


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class CountingLoader:
    """Returns the queued results in order; exceptions in the queue are raised."""

    def __init__(self, *results: Any) -> None:
        self.results = list(results)
        self.calls = 0

    async def __call__(self) -> list[Any]:
        self.calls += 1
        result = self.results.pop(0) if len(self.results) > 1 else self.results[0]
        if isinstance(result, Exception):
            raise result
        return result


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock: FakeClock, notifier: CollectingNotifier) -> ReferenceDataCache:
    return ReferenceDataCache(
        stale_after=300.0,
        retry_attempts=3,
        retry_wait_seconds=0,
        notifier=notifier,
        clock=clock,
    )


async def _settle(cache: ReferenceDataCache, key: tuple[Any, ...] = KEY) -> None:
    while cache.in_flight(key):
        await asyncio.sleep(0)


@pytest.mark.unit
class TestReferenceDataCache:
    @pytest.mark.asyncio
    async def test_fresh_entry_is_served_without_fetching(
        self, cache: ReferenceDataCache, clock: FakeClock
    ) -> None:
        loader = CountingLoader(["a", "b"])

        assert await cache.get(KEY, loader, label="offices") == ["a", "b"]
        clock.now = 299.0
        assert await cache.get(KEY, loader, label="offices") == ["a", "b"]

        assert loader.calls == 1
        assert cache.is_fresh(KEY)

    @pytest.mark.asyncio
    async def test_returned_list_is_a_copy(self, cache: ReferenceDataCache) -> None:
        data = await cache.get(KEY, CountingLoader([1]), label="offices")
        data.append(2)
        assert cache.peek(KEY) == [1]

    @pytest.mark.asyncio
    async def test_concurrent_requests_share_one_fetch(self, cache: ReferenceDataCache) -> None:
        release = asyncio.Event()
        calls = 0

        async def loader() -> list[int]:
            nonlocal calls
            calls += 1
            await release.wait()
            return [1, 2]

        waiters = [
            asyncio.create_task(cache.get(KEY, loader, label="offices")) for _ in range(5)
        ]
        await asyncio.sleep(0)
        assert cache.in_flight(KEY)
        release.set()

        results = await asyncio.gather(*waiters)

        assert calls == 1
        assert results == [[1, 2]] * 5

    @pytest.mark.asyncio
    async def test_stale_entry_is_served_and_refreshed_in_background(
        self, cache: ReferenceDataCache, clock: FakeClock
    ) -> None:
        loader = CountingLoader(["old"], ["new"])
        await cache.get(KEY, loader, label="offices")

        clock.now = 301.0
        assert await cache.get(KEY, loader, label="offices") == ["old"]
        await _settle(cache)

        assert loader.calls == 2
        assert await cache.get(KEY, loader, label="offices") == ["new"]

    @pytest.mark.asyncio
    async def test_transient_failures_are_retried(
        self, cache: ReferenceDataCache, notifier: CollectingNotifier
    ) -> None:
        loader = CountingLoader(ConnectionError("boom"), ConnectionError("boom"), ["ok"])

        assert await cache.get(KEY, loader, label="offices") == ["ok"]
        assert loader.calls == 3
        assert notifier.items == []

    @pytest.mark.asyncio
    async def test_persistent_failure_returns_empty_list_and_notifies(
        self, cache: ReferenceDataCache, notifier: CollectingNotifier
    ) -> None:
        loader = CountingLoader(ConnectionError("database unreachable"))

        assert await cache.get(KEY, loader, label="offices") == []

        assert loader.calls == 3
        assert [(n.level, n.title) for n in notifier.items] == [("error", "Failed to load offices")]
        assert cache.last_error(KEY) == "database unreachable"
        assert cache.peek(KEY) is None

    @pytest.mark.asyncio
    async def test_failed_refresh_keeps_last_good_data(
        self, cache: ReferenceDataCache, clock: FakeClock, notifier: CollectingNotifier
    ) -> None:
        loader = CountingLoader(["good"], RuntimeError("down"))
        await cache.get(KEY, loader, label="offices")

        clock.now = 400.0
        assert await cache.get(KEY, loader, label="offices") == ["good"]
        await _settle(cache)

        assert cache.peek(KEY) == ["good"]
        assert cache.last_error(KEY) == "down"
        assert len(notifier.items) == 1

    @pytest.mark.asyncio
    async def test_cancelled_caller_does_not_cancel_shared_fetch(
        self, cache: ReferenceDataCache
    ) -> None:
        started = asyncio.Event()
        release = asyncio.Event()

        async def loader() -> list[int]:
            started.set()
            await release.wait()
            return [7]

        first = asyncio.create_task(cache.get(KEY, loader, label="offices"))
        await started.wait()
        second = asyncio.create_task(cache.get(KEY, loader, label="offices"))
        await asyncio.sleep(0)

        first.cancel()
        with pytest.raises(asyncio.CancelledError):
            await first
        release.set()

        assert await second == [7]
        assert cache.peek(KEY) == [7]

    @pytest.mark.asyncio
    async def test_close_cancels_background_refresh(
        self, cache: ReferenceDataCache, clock: FakeClock
    ) -> None:
        await cache.get(KEY, CountingLoader(["old"]), label="offices")
        never = asyncio.Event()

        async def slow_loader() -> list[str]:
            await never.wait()
            return ["new"]

        clock.now = 500.0
        await cache.get(KEY, slow_loader, label="offices")
        assert cache.in_flight(KEY)

        await cache.close()

        assert not cache.in_flight(KEY)
        assert cache.peek(KEY) == ["old"]
        with pytest.raises(RuntimeError):
            await cache.get(KEY, slow_loader, label="offices")

    @pytest.mark.asyncio
    async def test_invalidate_by_kind(self, cache: ReferenceDataCache) -> None:
        await cache.get(("offices",), CountingLoader([1]), label="offices")
        await cache.get(("wings", None), CountingLoader([2]), label="wings")
        await cache.get(("wings", 1), CountingLoader([3]), label="wings")

        cache.invalidate("wings")

        assert cache.peek(("offices",)) == [1]
        assert cache.peek(("wings", None)) is None
        assert cache.peek(("wings", 1)) is None

        cache.invalidate()
        assert cache.peek(("offices",)) is None


@pytest.mark.unit
def test_retry_attempts_must_be_positive() -> None:
    with pytest.raises(ValueError):
        ReferenceDataCache(retry_attempts=0)
