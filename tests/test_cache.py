from __future__ import annotations

import asyncio

import pytest

from pyunitasset._cache import EntryState, ExternalDataCache
from pyunitasset.exceptions import NetworkError


class _Fetcher:
    """Counts calls; keys listed in ``blocked`` wait for ``release``."""

    def __init__(self, *, blocked: set[str] | None = None, fail_with: Exception | None = None) -> None:
        self.calls: list[str] = []
        self.blocked = blocked if blocked is not None else set()
        self.release = asyncio.Event()
        self.fail_with = fail_with

    async def __call__(self, key: str) -> str:
        self.calls.append(key)
        if key in self.blocked:
            await self.release.wait()
        if self.fail_with is not None:
            raise self.fail_with
        return f"record-{key}"


@pytest.mark.asyncio
@pytest.mark.parametrize("n_assets", [1, 10])
async def test_concurrent_callers_share_one_fetch(n_assets: int) -> None:
    fetcher = _Fetcher(blocked={"SE1"})
    cache: ExternalDataCache[str, str] = ExternalDataCache(fetcher)

    tasks = [asyncio.create_task(cache.fetch("SE1")) for _ in range(n_assets)]
    await asyncio.sleep(0)
    assert cache.entry("SE1").state == EntryState.FETCHING
    fetcher.release.set()

    results = await asyncio.gather(*tasks)

    assert results == ["record-SE1"] * n_assets
    assert fetcher.calls == ["SE1"]
    assert cache.fetch_count == 1

    # Later callers in the same refresh window hit the ready entry.
    assert await cache.fetch("SE1") == "record-SE1"
    assert fetcher.calls == ["SE1"]
    assert cache.entry("SE1").state == EntryState.READY


@pytest.mark.asyncio
async def test_different_keys_do_not_wait_on_each_other() -> None:
    fetcher = _Fetcher(blocked={"slow"})
    cache: ExternalDataCache[str, str] = ExternalDataCache(fetcher)

    slow = asyncio.create_task(cache.fetch("slow"))
    await asyncio.sleep(0)

    assert await asyncio.wait_for(cache.fetch("fast"), timeout=1.0) == "record-fast"
    assert not slow.done()

    fetcher.release.set()
    assert await slow == "record-slow"


@pytest.mark.asyncio
async def test_failure_reaches_every_waiter_and_is_not_cached() -> None:
    error = NetworkError("connection refused", url="https://example.invalid")
    fetcher = _Fetcher(blocked={"k"}, fail_with=error)
    cache: ExternalDataCache[str, str] = ExternalDataCache(fetcher)

    tasks = [asyncio.create_task(cache.fetch("k")) for _ in range(3)]
    await asyncio.sleep(0)
    fetcher.release.set()
    results = await asyncio.gather(*tasks, return_exceptions=True)

    assert all(r is error for r in results)
    assert fetcher.calls == ["k"]
    assert cache.entry("k").state == EntryState.FAILED
    assert cache.peek("k") is None

    # The next caller retries straight away.
    fetcher.fail_with = None
    assert await cache.fetch("k") == "record-k"
    assert fetcher.calls == ["k", "k"]


@pytest.mark.asyncio
async def test_stale_keys_are_replaced_lazily() -> None:
    today = {"day": "2025-01-06"}
    fetcher = _Fetcher()
    cache: ExternalDataCache[str, str] = ExternalDataCache(
        fetcher,
        is_stale=lambda key: not key.startswith(today["day"]),
    )

    await cache.fetch("2025-01-06/SE1")
    assert len(cache) == 1

    today["day"] = "2025-01-07"
    # Nothing happens until the cache is accessed again.
    assert len(cache) == 1

    await cache.fetch("2025-01-07/SE1")
    assert len(cache) == 1
    assert cache.entry("2025-01-06/SE1").state == EntryState.EMPTY
    assert fetcher.calls == ["2025-01-06/SE1", "2025-01-07/SE1"]


@pytest.mark.asyncio
async def test_max_age_forces_refetch() -> None:
    now = [100.0]
    fetcher = _Fetcher()
    cache: ExternalDataCache[str, str] = ExternalDataCache(fetcher, max_age=60.0, clock=lambda: now[0])

    await cache.fetch("k")
    now[0] = 159.0
    await cache.fetch("k")
    assert fetcher.calls == ["k"]

    now[0] = 160.0
    assert cache.peek("k") is None
    await cache.fetch("k")
    assert fetcher.calls == ["k", "k"]


@pytest.mark.asyncio
async def test_cancelled_waiter_does_not_abort_shared_fetch() -> None:
    fetcher = _Fetcher(blocked={"k"})
    cache: ExternalDataCache[str, str] = ExternalDataCache(fetcher)

    first = asyncio.create_task(cache.fetch("k"))
    second = asyncio.create_task(cache.fetch("k"))
    await asyncio.sleep(0)

    first.cancel()
    with pytest.raises(asyncio.CancelledError):
        await first

    fetcher.release.set()
    assert await second == "record-k"
    assert cache.fetch_count == 1


@pytest.mark.asyncio
async def test_invalidate_and_drain() -> None:
    fetcher = _Fetcher(blocked={"pending"})
    cache: ExternalDataCache[str, str] = ExternalDataCache(fetcher)

    await cache.fetch("k")
    cache.invalidate("k")
    assert cache.peek("k") is None

    pending = asyncio.create_task(cache.fetch("pending"))
    await asyncio.sleep(0)
    cache.invalidate("pending")  # in-flight entries are left alone
    assert cache.entry("pending").state == EntryState.FETCHING

    fetcher.release.set()
    await cache.drain()
    assert await pending == "record-pending"
    assert cache.peek("pending") == "record-pending"
