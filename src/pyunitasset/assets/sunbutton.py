"""Sun-driven button controller.

Switches a consumed smart plug off while the sun is up and on after dark,
using sunrisesunset.io data for the configured coordinates.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime
from typing import ClassVar

from pyunitasset._api.actuator import Sender
from pyunitasset._cache import ExternalDataCache
from pyunitasset._constants import UNIT_BOOL, UNIT_DEGREES
from pyunitasset.assets.base import ServiceSpec, UnitAsset
from pyunitasset.config import SunButtonConfig
from pyunitasset.decision import button_state
from pyunitasset.loop import AssetCapabilities, FeedbackLoop
from pyunitasset.models.sun import SunKey, SunRecord

_logger = logging.getLogger(__name__)

#: Neither on nor off; the first tick decides.
UNDECIDED: float = 0.5


class SunButtonAsset(UnitAsset):
    """Smart-plug controller following sunrise and sunset."""

    kind: ClassVar[str] = "sunbutton"

    def __init__(
        self,
        config: SunButtonConfig,
        *,
        cache: ExternalDataCache[SunKey, SunRecord],
        sender: Sender,
        clock: Callable[[], datetime],
        stop_event: asyncio.Event | None = None,
    ) -> None:
        super().__init__(config.name, details=config.details)
        self.latitude = config.latitude
        self.longitude = config.longitude
        self.button_status: float = UNDECIDED
        self._clock = clock

        capabilities: AssetCapabilities[SunKey, SunRecord] = AssetCapabilities(
            name=self.name,
            cache=cache,
            key=self.sun_key,
            decide=self.decide,
            sender=sender,
            on_decision=self._remember_status,
        )
        self._loop = FeedbackLoop(capabilities, period=config.sampling_period, stop_event=stop_event)

    def sun_key(self) -> SunKey:
        # Changing coordinates or crossing midnight yields a new key and
        # therefore a fresh download.
        return SunKey(day=self._clock().date(), latitude=self.latitude, longitude=self.longitude)

    def decide(self, record: SunRecord) -> float:
        now = self._clock().time()
        return float(button_state(record.sunrise, record.sunset, now))

    def _remember_status(self, value: float) -> None:
        if value != self.button_status:
            _logger.info("%s: button should be %s", self.name, "on" if value else "off")
        self.button_status = value

    # ------------------------------------------------------------------
    # Service accessors
    # ------------------------------------------------------------------

    def _set_latitude(self, value: float) -> None:
        if not -90.0 <= value <= 90.0:
            raise ValueError(f"latitude must be within [-90, 90], got {value}")
        self.latitude = value

    def _set_longitude(self, value: float) -> None:
        if not -180.0 <= value <= 180.0:
            raise ValueError(f"longitude must be within [-180, 180], got {value}")
        self.longitude = value

    def _set_button_status(self, value: float) -> None:
        self.button_status = value

    def services(self) -> dict[str, ServiceSpec]:
        return {
            "ButtonStatus": ServiceSpec(
                "ButtonStatus",
                UNIT_BOOL,
                "status of the button (1 on, 0 off)",
                lambda: self.button_status,
                self._set_button_status,
            ),
            "Latitude": ServiceSpec(
                "Latitude",
                UNIT_DEGREES,
                "latitude used for sun times",
                lambda: self.latitude,
                self._set_latitude,
            ),
            "Longitude": ServiceSpec(
                "Longitude",
                UNIT_DEGREES,
                "longitude used for sun times",
                lambda: self.longitude,
                self._set_longitude,
            ),
        }
