"""Price-driven comfort controller.

Follows the hourly electricity price of one region and pushes a thermostat
setpoint: warm when power is cheap, cool when it is expensive.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime
from typing import ClassVar

from pyunitasset._api.actuator import Sender
from pyunitasset._cache import ExternalDataCache
from pyunitasset._constants import PRICE_REGIONS, UNIT_CELSIUS, UNIT_SEK
from pyunitasset.assets.base import ServiceSpec, UnitAsset
from pyunitasset.config import ComfortstatConfig
from pyunitasset.decision import desired_temperature
from pyunitasset.loop import AssetCapabilities, FeedbackLoop
from pyunitasset.models.price import PriceKey, PriceRecord

_logger = logging.getLogger(__name__)


def region_to_number(region: str) -> float:
    """``"SE3"`` → ``3.0`` (regions travel as plain numbers in signal forms)."""
    return float(region.removeprefix("SE"))


def number_to_region(value: float) -> str:
    region = f"SE{int(value)}"
    if value != int(value) or region not in PRICE_REGIONS:
        raise ValueError(f"no price region numbered {value}")
    return region


class ComfortstatAsset(UnitAsset):
    """Thermostat setpoint controller driven by the current electricity price.

    Parameters
    ----------
    config : ComfortstatConfig
        Thresholds, region and sampling period.
    cache : ExternalDataCache
        Shared price cache keyed by :class:`PriceKey`.
    sender : Sender
        Consumed setpoint service.
    clock : callable
        Returns the current timezone-aware local time.
    stop_event : asyncio.Event or None
        Shared cancellation signal.
    """

    kind: ClassVar[str] = "comfortstat"

    def __init__(
        self,
        config: ComfortstatConfig,
        *,
        cache: ExternalDataCache[PriceKey, PriceRecord],
        sender: Sender,
        clock: Callable[[], datetime],
        stop_event: asyncio.Event | None = None,
    ) -> None:
        super().__init__(config.name, details=config.details)
        self.region = config.region
        self.min_price = config.min_price
        self.max_price = config.max_price
        self.min_temp = config.min_temp
        self.max_temp = config.max_temp
        self.user_temp = config.user_temp
        self.min_change = config.min_change
        self.sek_price: float | None = None
        self.desired_temp: float | None = None
        self._price_setpoint: float | None = None
        self._clock = clock

        capabilities: AssetCapabilities[PriceKey, PriceRecord] = AssetCapabilities(
            name=self.name,
            cache=cache,
            key=self.price_key,
            decide=self.decide,
            sender=sender,
            on_decision=self._remember_desired,
        )
        self._loop = FeedbackLoop(capabilities, period=config.sampling_period, stop_event=stop_event)

    def price_key(self) -> PriceKey:
        return PriceKey(day=self._clock().date(), region=self.region)

    def decide(self, record: PriceRecord) -> float | None:
        """Setpoint for the price interval covering the current moment.

        A non-zero ``user_temp`` overrides the price-based setpoint. When the
        record has no interval for now the last known price is reused. Moves
        of the price-based setpoint smaller than ``min_change`` are ignored.
        """
        price = record.price_at(self._clock())
        if price is None:
            _logger.debug("%s: no price interval covers now; keeping %s", self.name, self.sek_price)
        else:
            self.sek_price = price
        if self.user_temp != 0:
            return self.user_temp
        if self.sek_price is None:
            return None
        setpoint = desired_temperature(
            self.sek_price,
            self.min_price,
            self.max_price,
            self.min_temp,
            self.max_temp,
        )
        previous = self._price_setpoint
        if previous is not None and abs(setpoint - previous) < self.min_change:
            _logger.debug("%s: setpoint %.2f too close to %.2f; keeping it", self.name, setpoint, previous)
            return previous
        self._price_setpoint = setpoint
        return setpoint

    def _remember_desired(self, value: float) -> None:
        if value != self.desired_temp:
            _logger.info("%s: new desired temperature: %.1f", self.name, value)
        self.desired_temp = value

    # ------------------------------------------------------------------
    # Service accessors
    # ------------------------------------------------------------------

    def _set_min_price(self, value: float) -> None:
        self.min_price = value

    def _set_max_price(self, value: float) -> None:
        self.max_price = value

    def _set_min_temp(self, value: float) -> None:
        self.min_temp = value

    def _set_max_temp(self, value: float) -> None:
        self.max_temp = value

    def _set_desired_temp(self, value: float) -> None:
        self.desired_temp = value

    def _set_user_temp(self, value: float) -> None:
        self.user_temp = value

    def _set_region(self, value: float) -> None:
        self.region = number_to_region(value)

    def services(self) -> dict[str, ServiceSpec]:
        return {
            "SEKPrice": ServiceSpec(
                "SEKPrice",
                UNIT_SEK,
                "current electricity price for this hour",
                lambda: self.sek_price or 0.0,
            ),
            "MinPrice": ServiceSpec(
                "MinPrice",
                UNIT_SEK,
                "price at or below which the maximum temperature is used",
                lambda: self.min_price,
                self._set_min_price,
            ),
            "MaxPrice": ServiceSpec(
                "MaxPrice",
                UNIT_SEK,
                "price at or above which the minimum temperature is used",
                lambda: self.max_price,
                self._set_max_price,
            ),
            "MinTemperature": ServiceSpec(
                "MinTemperature",
                UNIT_CELSIUS,
                "lowest temperature the user tolerates",
                lambda: self.min_temp,
                self._set_min_temp,
            ),
            "MaxTemperature": ServiceSpec(
                "MaxTemperature",
                UNIT_CELSIUS,
                "highest temperature the user wants",
                lambda: self.max_temp,
                self._set_max_temp,
            ),
            "DesiredTemp": ServiceSpec(
                "DesiredTemp",
                UNIT_CELSIUS,
                "setpoint computed from the current price",
                lambda: self.desired_temp or 0.0,
                self._set_desired_temp,
            ),
            "UserTemp": ServiceSpec(
                "UserTemp",
                UNIT_CELSIUS,
                "manual setpoint overriding the price (0 disables)",
                lambda: self.user_temp,
                self._set_user_temp,
            ),
            "Region": ServiceSpec(
                "Region",
                "",
                "price region number (1-4 for SE1-SE4)",
                lambda: region_to_number(self.region),
                self._set_region,
            ),
        }
