"""Tests for the hour-bucketed WBI key cache."""
import asyncio
from datetime import datetime, timedelta
from unittest.mock import AsyncMock

import pytest

from bpi.errors import ParseError, TransportError
from bpi.services.wbi_key_cache import WbiKeyCache

KEYS = ("7cd084941338484aae1ad9425b84077c", "4932caff0ff746eab6f01bf08b70ac45")


class FakeClock:
    """Mutable local clock for bucket tests."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def clock():
    return FakeClock(datetime(2025, 11, 7, 10, 15, 0))


@pytest.fixture
def fetcher():
    return AsyncMock(return_value=KEYS)


class TestWbiKeyCache:
    """Test WbiKeyCache behaviour."""

    def test_bucket_has_hour_granularity(self, fetcher, clock) -> None:
        cache = WbiKeyCache(fetcher, now_provider=clock)
        assert cache.current_bucket() == "2025-11-07 10"

    @pytest.mark.asyncio
    async def test_same_hour_fetches_once(self, fetcher, clock) -> None:
        cache = WbiKeyCache(fetcher, now_provider=clock)

        first = await cache.get_keys()
        clock.now += timedelta(minutes=30)
        second = await cache.get_keys()

        assert first == second == KEYS
        fetcher.assert_awaited_once()
        assert len(cache) == 2

    @pytest.mark.asyncio
    async def test_new_hour_refetches(self, clock) -> None:
        new_keys = ("a" * 32, "b" * 32)
        fetcher = AsyncMock(side_effect=[KEYS, new_keys])
        cache = WbiKeyCache(fetcher, now_provider=clock)

        assert await cache.get_keys() == KEYS
        clock.now += timedelta(hours=1)
        assert await cache.get_keys() == new_keys
        assert fetcher.await_count == 2

    @pytest.mark.asyncio
    async def test_bucket_recomputed_after_fetch(self, clock) -> None:
        """Keys fetched across an hour boundary are stored under the new hour."""
        clock.now = datetime(2025, 11, 7, 10, 59, 59)

        async def slow_fetch():
            clock.now = datetime(2025, 11, 7, 11, 0, 1)
            return KEYS

        fetcher = AsyncMock(side_effect=slow_fetch)
        cache = WbiKeyCache(fetcher, now_provider=clock, prune=False)

        await cache.get_keys()
        await cache.get_keys()

        fetcher.assert_awaited_once()
        assert "2025-11-07 11img_key" in cache._entries
        assert "2025-11-07 10img_key" not in cache._entries

    @pytest.mark.asyncio
    async def test_prune_keeps_only_current_bucket(self, clock) -> None:
        fetcher = AsyncMock(side_effect=[KEYS, KEYS, KEYS])
        cache = WbiKeyCache(fetcher, now_provider=clock)

        for _ in range(3):
            await cache.get_keys()
            clock.now += timedelta(hours=1)

        assert len(cache) == 2

    @pytest.mark.asyncio
    async def test_without_prune_old_buckets_remain(self, clock) -> None:
        fetcher = AsyncMock(side_effect=[KEYS, KEYS])
        cache = WbiKeyCache(fetcher, now_provider=clock, prune=False)

        await cache.get_keys()
        clock.now += timedelta(hours=1)
        await cache.get_keys()

        assert len(cache) == 4

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [TransportError("timeout"), ParseError("no wbi_img")])
    async def test_failed_fetch_writes_nothing(self, clock, error) -> None:
        fetcher = AsyncMock(side_effect=error)
        cache = WbiKeyCache(fetcher, now_provider=clock)

        with pytest.raises(type(error)):
            await cache.get_keys()

        assert len(cache) == 0

    @pytest.mark.asyncio
    async def test_cancelled_fetch_writes_nothing(self, clock) -> None:
        started = asyncio.Event()

        async def hanging_fetch():
            started.set()
            await asyncio.Event().wait()

        cache = WbiKeyCache(hanging_fetch, now_provider=clock)
        task = asyncio.create_task(cache.get_keys())
        await started.wait()
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
        assert len(cache) == 0

    @pytest.mark.asyncio
    async def test_concurrent_misses_agree(self, fetcher, clock) -> None:
        cache = WbiKeyCache(fetcher, now_provider=clock)

        results = await asyncio.gather(cache.get_keys(), cache.get_keys())

        assert results[0] == results[1] == KEYS
        assert 1 <= fetcher.await_count <= 2
        assert len(cache) == 2

    @pytest.mark.asyncio
    async def test_clear_forces_refetch(self, fetcher, clock) -> None:
        cache = WbiKeyCache(fetcher, now_provider=clock)

        await cache.get_keys()
        cache.clear()
        await cache.get_keys()

        assert fetcher.await_count == 2
