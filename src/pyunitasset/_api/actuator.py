"""Consumed actuator services (thermostat setpoint, smart-plug state)."""

from __future__ import annotations

import logging
from typing import Protocol

from pyunitasset._transport import Transport
from pyunitasset.exceptions import SendError, SourceError
from pyunitasset.models.signal import SignalA

_logger = logging.getLogger(__name__)


class Sender(Protocol):
    """Sends one desired value to an actuator, raising :class:`SendError` on failure."""

    async def send(self, value: float) -> None:
        ...


class ServiceSender:
    """PUT a :class:`SignalA` form to a consumed service URL."""

    def __init__(self, transport: Transport, url: str, *, unit: str) -> None:
        self._transport = transport
        self._url = url
        self._unit = unit

    @property
    def url(self) -> str:
        return self._url

    async def send(self, value: float) -> None:
        signal = SignalA(value=float(value), unit=self._unit)
        try:
            await self._transport.put_json(self._url, signal.to_payload())
        except SourceError as exc:
            raise SendError(
                f"Cannot update {self._url}: {exc}",
                url=self._url,
                status_code=exc.status_code,
            ) from exc


class NullSender:
    """Sender for assets configured without a consumed service."""

    async def send(self, value: float) -> None:
        _logger.debug("No consumed service configured; dropping value %s", value)
