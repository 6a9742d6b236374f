"""Periodic feedback loop: cache → decision → actuator send."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Hashable
from dataclasses import dataclass
from enum import StrEnum
from typing import Generic, TypeVar

from pyunitasset._api.actuator import Sender
from pyunitasset._cache import ExternalDataCache
from pyunitasset.exceptions import InvalidUrlError, SendError, SourceError, UnitAssetConfigError
from pyunitasset.tracker import ChangeTracker

_logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
R = TypeVar("R")


class TickOutcome(StrEnum):
    SENT = "sent"
    SKIPPED = "skipped"
    SEND_FAILED = "send_failed"
    FETCH_FAILED = "fetch_failed"
    NO_DECISION = "no_decision"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class AssetCapabilities(Generic[K, R]):
    """What a feedback loop needs from an adapter.

    ``key`` names the external data the asset needs right now, ``decide``
    turns the cached record into a desired actuator value (``None`` when no
    decision is possible this tick) and ``sender`` delivers it.
    """

    name: str
    cache: ExternalDataCache[K, R]
    key: Callable[[], K]
    decide: Callable[[R], float | None]
    sender: Sender
    on_decision: Callable[[float], None] | None = None


class FeedbackLoop(Generic[K, R]):
    """Re-evaluates one asset every ``period`` seconds.

    Usage::

        loop = FeedbackLoop(capabilities, period=15)
        loop.start()
        ...
        await loop.stop()

    Ticks never overlap. Once the stop event is set no further sends are
    made and :meth:`run` returns at the next tick boundary. A fetch that is
    already in flight is allowed to finish.
    """

    def __init__(
        self,
        capabilities: AssetCapabilities[K, R],
        *,
        period: float,
        tracker: ChangeTracker | None = None,
        stop_event: asyncio.Event | None = None,
    ) -> None:
        if period <= 0:
            raise UnitAssetConfigError(f"{capabilities.name}: period must be positive, got {period}")
        self._caps = capabilities
        self._period = period
        self.tracker = tracker if tracker is not None else ChangeTracker()
        self._stop = stop_event if stop_event is not None else asyncio.Event()
        self._tick_lock = asyncio.Lock()
        self._task: asyncio.Task[None] | None = None

    @property
    def name(self) -> str:
        return self._caps.name

    @property
    def period(self) -> float:
        return self._period

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()

    async def tick(self) -> TickOutcome:
        """Run one evaluation and, if needed, one send."""
        async with self._tick_lock:
            return await self._tick()

    async def _tick(self) -> TickOutcome:
        caps = self._caps
        if self._stop.is_set():
            return TickOutcome.CANCELLED

        try:
            record = await caps.cache.fetch(caps.key())
        except InvalidUrlError as exc:
            _logger.error("%s: external source misconfigured: %s", caps.name, exc)
            return TickOutcome.FETCH_FAILED
        except SourceError as exc:
            _logger.warning("%s: cannot get external data: %s", caps.name, exc)
            return TickOutcome.FETCH_FAILED

        desired = caps.decide(record)
        if desired is None:
            _logger.debug("%s: no decision possible this tick", caps.name)
            return TickOutcome.NO_DECISION
        if caps.on_decision is not None:
            caps.on_decision(desired)

        tracker = self.tracker
        if not tracker.should_send(desired):
            tracker.skip()
            _logger.debug("%s: %s already sent", caps.name, desired)
            return TickOutcome.SKIPPED

        if self._stop.is_set():
            return TickOutcome.CANCELLED

        tracker.begin()
        try:
            await caps.sender.send(desired)
        except SendError as exc:
            tracker.record_failure(exc)
            _logger.warning("%s: cannot send %s: %s", caps.name, desired, exc)
            return TickOutcome.SEND_FAILED
        except asyncio.CancelledError:
            tracker.record_failure(SendError(f"send of {desired} cancelled"))
            raise
        except Exception as exc:
            tracker.record_failure(exc)
            _logger.exception("%s: sender failed for %s", caps.name, desired)
            return TickOutcome.SEND_FAILED
        tracker.record_success(desired)
        _logger.info("%s: sent new value %s", caps.name, desired)
        return TickOutcome.SENT

    async def run(self) -> None:
        """Tick immediately, then every ``period`` seconds until stopped."""
        loop = asyncio.get_running_loop()
        _logger.debug("%s: feedback loop started (period=%ss)", self.name, self._period)
        while not self._stop.is_set():
            deadline = loop.time() + self._period
            try:
                await self.tick()
            except Exception:
                _logger.exception("%s: tick failed", self.name)
            remaining = max(0.0, deadline - loop.time())
            try:
                await asyncio.wait_for(self._stop.wait(), timeout=remaining)
            except TimeoutError:
                continue
        _logger.debug("%s: feedback loop stopped", self.name)

    def start(self) -> asyncio.Task[None]:
        if self.is_running:
            raise RuntimeError(f"{self.name}: feedback loop already running")
        self._task = asyncio.create_task(self.run(), name=f"feedback-{self.name}")
        return self._task

    async def stop(self) -> None:
        """Signal cancellation and wait for the loop task to finish."""
        self._stop.set()
        task = self._task
        if task is not None:
            await task
