"""Electricity price models (elprisetjustnu.se)."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from pyunitasset.models._base import UnitAssetBaseModel


class PriceKey(BaseModel):
    """Cache key for one day of prices in one region."""

    model_config = ConfigDict(frozen=True)

    day: date
    region: str

    @field_validator("region")
    @classmethod
    def _normalize_region(cls, value: str) -> str:
        region = value.strip().upper()
        if not region:
            raise ValueError("region must be non-empty")
        return region


class PriceInterval(UnitAssetBaseModel):
    """One priced interval (an hour, or a quarter hour on newer data)."""

    sek_per_kwh: float = Field(alias="SEK_per_kWh")
    eur_per_kwh: float | None = Field(default=None, alias="EUR_per_kWh")
    exchange_rate: float | None = Field(default=None, alias="EXR")
    time_start: datetime
    time_end: datetime

    @field_validator("time_start", "time_end")
    @classmethod
    def _require_tz(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            raise ValueError("price interval timestamps must carry a UTC offset")
        return value

    def covers(self, moment: datetime) -> bool:
        return self.time_start <= moment < self.time_end


class PriceRecord(BaseModel):
    """A day of prices for one region, immutable once fetched."""

    model_config = ConfigDict(frozen=True)

    key: PriceKey
    intervals: tuple[PriceInterval, ...]
    raw: list[Any] = Field(default_factory=list, repr=False)

    def price_at(self, moment: datetime) -> float | None:
        """SEK/kWh for the interval containing *moment*, or ``None``.

        *moment* must be timezone-aware.
        """
        for interval in self.intervals:
            if interval.covers(moment):
                return interval.sek_per_kwh
        return None
