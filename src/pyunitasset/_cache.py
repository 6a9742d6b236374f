"""Request-coalescing cache for external source records.

One :class:`ExternalDataCache` exists per source and is shared by every
asset that needs that source. Concurrent callers asking for the same key
share a single outbound fetch and its outcome.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Hashable
from dataclasses import dataclass
from enum import StrEnum
from typing import Generic, TypeVar

_logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
R = TypeVar("R")


class EntryState(StrEnum):
    EMPTY = "empty"
    FETCHING = "fetching"
    READY = "ready"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class CacheEntry(Generic[K, R]):
    """Snapshot of one key's slot. Entries are replaced, never mutated."""

    key: K
    state: EntryState = EntryState.EMPTY
    record: R | None = None
    fetched_at: float | None = None
    task: asyncio.Task[R] | None = None


def _consume_exception(task: asyncio.Task[object]) -> None:
    # Failed fetches are re-raised to every waiter; this only silences the
    # "exception was never retrieved" warning when all waiters went away.
    if not task.cancelled():
        task.exception()


class ExternalDataCache(Generic[K, R]):
    """Single-flight cache keyed by a hashable refresh key.

    Parameters
    ----------
    fetcher
        Coroutine function performing the outbound fetch for a key.
    is_stale
        Predicate telling whether a key is outdated (e.g. yesterday's
        date). Stale ready entries are dropped lazily on access.
    max_age
        Optional freshness limit in seconds for ready entries.
    clock
        Monotonic clock used for ``max_age``.
    name
        Label used in log messages.

    Failed fetches are never cached: the next call retries immediately.
    The internal lock only guards bookkeeping; it is never held while the
    fetch runs, so callers with different keys never wait on each other.
    """

    def __init__(
        self,
        fetcher: Callable[[K], Awaitable[R]],
        *,
        is_stale: Callable[[K], bool] | None = None,
        max_age: float | None = None,
        clock: Callable[[], float] = time.monotonic,
        name: str = "cache",
    ) -> None:
        self._fetcher = fetcher
        self._is_stale = is_stale
        self._max_age = max_age
        self._clock = clock
        self._name = name
        self._lock = asyncio.Lock()
        self._entries: dict[K, CacheEntry[K, R]] = {}
        self.fetch_count = 0

    def __len__(self) -> int:
        return len(self._entries)

    def _expired(self, entry: CacheEntry[K, R]) -> bool:
        if self._max_age is None or entry.fetched_at is None:
            return False
        return (self._clock() - entry.fetched_at) >= self._max_age

    def _prune(self) -> None:
        if self._is_stale is None:
            return
        for key in [k for k, e in self._entries.items() if e.state != EntryState.FETCHING and self._is_stale(k)]:
            _logger.debug("%s: dropping stale entry %s", self._name, key)
            del self._entries[key]

    async def fetch(self, key: K) -> R:
        """Return the record for *key*, fetching it at most once concurrently."""
        async with self._lock:
            self._prune()
            entry = self._entries.get(key)
            if entry is not None and entry.state == EntryState.READY and not self._expired(entry):
                assert entry.record is not None  # noqa: S101
                return entry.record
            if entry is not None and entry.task is not None and not entry.task.done():
                _logger.debug("%s: joining in-flight fetch for %s", self._name, key)
                task = entry.task
            else:
                task = asyncio.create_task(self._run_fetch(key), name=f"{self._name}-fetch")
                task.add_done_callback(_consume_exception)
                self._entries[key] = CacheEntry(key=key, state=EntryState.FETCHING, task=task)
        # A cancelled waiter must not cancel the fetch other waiters share.
        return await asyncio.shield(task)

    async def _run_fetch(self, key: K) -> R:
        self.fetch_count += 1
        _logger.debug("%s: fetching %s", self._name, key)
        try:
            record = await self._fetcher(key)
        except Exception as exc:
            async with self._lock:
                current = self._entries.get(key)
                if current is not None and current.state == EntryState.FETCHING:
                    self._entries[key] = CacheEntry(key=key, state=EntryState.FAILED)
            _logger.debug("%s: fetch for %s failed: %s", self._name, key, exc)
            raise
        async with self._lock:
            current = self._entries.get(key)
            if current is not None and current.state == EntryState.FETCHING:
                self._entries[key] = CacheEntry(
                    key=key,
                    state=EntryState.READY,
                    record=record,
                    fetched_at=self._clock(),
                )
        return record

    def peek(self, key: K) -> R | None:
        """Ready record for *key* without fetching, or ``None``."""
        entry = self._entries.get(key)
        if entry is None or entry.state != EntryState.READY or self._expired(entry):
            return None
        return entry.record

    def entry(self, key: K) -> CacheEntry[K, R]:
        """Current slot for *key*; an ``EMPTY`` entry when nothing is cached."""
        return self._entries.get(key) or CacheEntry(key=key)

    def invalidate(self, key: K) -> None:
        """Forget a ready record. An in-flight fetch is left alone."""
        entry = self._entries.get(key)
        if entry is not None and entry.state == EntryState.READY:
            del self._entries[key]

    def clear(self) -> None:
        for key in [k for k, e in self._entries.items() if e.state == EntryState.READY]:
            del self._entries[key]

    async def drain(self) -> None:
        """Wait for every in-flight fetch to settle (used at shutdown)."""
        tasks = [e.task for e in self._entries.values() if e.task is not None and not e.task.done()]
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
