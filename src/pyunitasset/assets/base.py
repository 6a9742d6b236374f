"""Shared plumbing for unit asset adapters."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, ClassVar

from pyunitasset.exceptions import InvalidServiceValueError, ReadOnlyServiceError, UnknownServiceError
from pyunitasset.loop import FeedbackLoop
from pyunitasset.models.signal import SignalA

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ServiceSpec:
    """One readable (and optionally writable) value exposed by an asset.

    A request router maps ``<system>/<asset>/<sub_path>`` onto these.
    """

    sub_path: str
    unit: str
    description: str
    getter: Callable[[], float]
    setter: Callable[[float], None] | None = None

    @property
    def writable(self) -> bool:
        return self.setter is not None


class UnitAsset:
    """Base for adapters that own one :class:`FeedbackLoop`."""

    kind: ClassVar[str] = "asset"

    def __init__(self, name: str, *, details: dict[str, list[str]] | None = None) -> None:
        self.name = name
        self.details: dict[str, list[str]] = dict(details or {})
        self._loop: FeedbackLoop[Any, Any] | None = None

    @property
    def loop(self) -> FeedbackLoop[Any, Any]:
        if self._loop is None:
            raise RuntimeError(f"{self.name}: feedback loop not configured")
        return self._loop

    def services(self) -> dict[str, ServiceSpec]:
        raise NotImplementedError

    def get_state(self, sub_path: str) -> SignalA:
        """Read a service value as a :class:`SignalA` form."""
        spec = self._service(sub_path)
        return SignalA(value=spec.getter(), unit=spec.unit)

    def set_state(self, sub_path: str, signal: SignalA) -> None:
        """Write a service value.

        Read-only services raise :class:`ReadOnlyServiceError`; values the
        setter rejects raise :class:`InvalidServiceValueError`.
        """
        spec = self._service(sub_path)
        if spec.setter is None:
            raise ReadOnlyServiceError(f"{self.name}/{sub_path} is read-only")
        try:
            spec.setter(signal.value)
        except ValueError as exc:
            raise InvalidServiceValueError(f"{self.name}/{sub_path}: {exc}") from exc
        _logger.debug("%s: %s set to %s", self.name, sub_path, signal.value)

    def _service(self, sub_path: str) -> ServiceSpec:
        try:
            return self.services()[sub_path]
        except KeyError:
            raise UnknownServiceError(f"{self.name} has no service {sub_path!r}") from None

    def start(self) -> None:
        self.loop.start()

    async def stop(self) -> None:
        if self._loop is not None:
            await self._loop.stop()
