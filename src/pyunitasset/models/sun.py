"""Sunrise/sunset models (sunrisesunset.io)."""

from __future__ import annotations

from datetime import date, datetime, time
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field

from pyunitasset.models._base import UnitAssetBaseModel

_CLOCK_FORMATS = ("%H:%M:%S", "%H:%M", "%I:%M:%S %p", "%I:%M %p")


def parse_clock_time(value: Any) -> time | None:
    """Parse ``"7:58:03"``, ``"07:58"`` or ``"7:58:03 AM"`` into a :class:`time`."""
    if value is None or isinstance(value, time):
        return value
    text = str(value).strip()
    for fmt in _CLOCK_FORMATS:
        try:
            return datetime.strptime(text, fmt).time()
        except ValueError:
            continue
    raise ValueError(f"unrecognised time of day: {text!r}")


ClockTime = Annotated[time | None, BeforeValidator(parse_clock_time)]
"""Annotated type accepting 24h or 12h clock strings."""


class SunKey(BaseModel):
    """Cache key for one day of sun times at one coordinate pair."""

    model_config = ConfigDict(frozen=True)

    day: date
    latitude: float
    longitude: float


class SunTimes(UnitAssetBaseModel):
    """The ``results`` object of a sunrisesunset.io response.

    Times are local to the requested time zone. Polar days/nights leave
    ``sunrise``/``sunset`` unset.
    """

    day: date | None = Field(default=None, alias="date")
    sunrise: ClockTime = None
    sunset: ClockTime = None
    first_light: ClockTime = None
    last_light: ClockTime = None
    dawn: ClockTime = None
    dusk: ClockTime = None
    solar_noon: ClockTime = None
    golden_hour: ClockTime = None
    day_length: str | None = None
    timezone: str | None = None
    utc_offset: float | None = None


class SunRecord(BaseModel):
    """Sun times for one day and location, immutable once fetched."""

    model_config = ConfigDict(frozen=True)

    key: SunKey
    sunrise: time
    sunset: time
    times: SunTimes
    raw: dict[str, Any] = Field(default_factory=dict, repr=False)
