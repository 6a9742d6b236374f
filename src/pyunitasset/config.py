"""Asset and system configuration for pyunitasset."""

from __future__ import annotations

import dataclasses
import os
from collections.abc import Callable, Mapping
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pyunitasset._constants import (
    DEFAULT_HTTP_TIMEOUT_S,
    DEFAULT_SAMPLING_PERIOD_S,
    DEFAULT_TIME_ZONE,
    PRICE_FETCH_PERIOD_S,
    PRICE_REGIONS,
)
from pyunitasset.exceptions import UnitAssetConfigError


def _require_positive(name: str, value: float) -> None:
    if value <= 0:
        raise UnitAssetConfigError(f"{name} must be positive, got {value}")


def _read_env(
    env: Mapping[str, str],
    mapping: Mapping[str, tuple[str, Callable[[str], Any]]],
    overrides: Mapping[str, Any],
) -> dict[str, Any]:
    """Collect ``field -> parsed value`` for every env var that is set."""
    kwargs: dict[str, Any] = {}
    for env_key, (field_name, convert) in mapping.items():
        if field_name in overrides:
            continue
        raw = env.get(env_key)
        if raw is None:
            continue
        try:
            kwargs[field_name] = convert(raw)
        except ValueError as exc:
            raise UnitAssetConfigError(f"{env_key}={raw!r} is not valid: {exc}") from exc
    return kwargs


@dataclasses.dataclass(frozen=True)
class ComfortstatConfig:
    """Configuration of one price-driven comfort controller.

    Parameters
    ----------
    name : str
        Unique asset name.
    region : str
        Electricity price region (``SE1`` .. ``SE4``).
    min_price, max_price : float
        Price band in SEK/kWh. At or below ``min_price`` the setpoint is
        ``max_temp``; at or above ``max_price`` it is ``min_temp``.
    min_temp, max_temp : float
        Temperature band in °C.
    user_temp : float
        Manual setpoint override. ``0`` means "follow the price".
    min_change : float
        Smallest change in °C of the price-based setpoint that is acted
        on; smaller moves keep the previous setpoint. ``0`` disables it.
    sampling_period : float
        Seconds between feedback loop ticks.
    setpoint_url : str or None
        Consumed setpoint service. ``None`` runs the asset without an
        actuator (the desired value is still computed and exposed).
    details : dict
        Free-form metadata, e.g. ``{"Location": ["Kitchen"]}``.
    """

    name: str = "Set Values"
    region: str = "SE1"
    min_price: float = 1.0
    max_price: float = 2.0
    min_temp: float = 20.0
    max_temp: float = 25.0
    user_temp: float = 0.0
    min_change: float = 0.5
    sampling_period: float = DEFAULT_SAMPLING_PERIOD_S
    setpoint_url: str | None = None
    details: dict[str, list[str]] = dataclasses.field(default_factory=dict)

    def __post_init__(self) -> None:
        _require_positive("sampling_period", self.sampling_period)
        if self.min_change < 0:
            raise UnitAssetConfigError(f"min_change must not be negative, got {self.min_change}")
        if self.region not in PRICE_REGIONS:
            raise UnitAssetConfigError(f"region must be one of {sorted(PRICE_REGIONS)}, got {self.region!r}")

    @classmethod
    def from_env(cls, **overrides: Any) -> ComfortstatConfig:
        """Create configuration from ``UNITASSET_COMFORT_*`` environment variables.

        Explicit keyword arguments override environment values.
        """
        _ENV_MAP: dict[str, tuple[str, Callable[[str], Any]]] = {
            "UNITASSET_COMFORT_NAME": ("name", str),
            "UNITASSET_COMFORT_REGION": ("region", str.upper),
            "UNITASSET_COMFORT_MIN_PRICE": ("min_price", float),
            "UNITASSET_COMFORT_MAX_PRICE": ("max_price", float),
            "UNITASSET_COMFORT_MIN_TEMP": ("min_temp", float),
            "UNITASSET_COMFORT_MAX_TEMP": ("max_temp", float),
            "UNITASSET_COMFORT_USER_TEMP": ("user_temp", float),
            "UNITASSET_COMFORT_MIN_CHANGE": ("min_change", float),
            "UNITASSET_COMFORT_PERIOD": ("sampling_period", float),
            "UNITASSET_COMFORT_SETPOINT_URL": ("setpoint_url", str),
        }
        kwargs = _read_env(os.environ, _ENV_MAP, overrides)
        kwargs.update(overrides)
        return cls(**kwargs)


@dataclasses.dataclass(frozen=True)
class SunButtonConfig:
    """Configuration of one sun-driven button controller.

    The button is switched off between sunrise and sunset and on otherwise.
    """

    name: str = "Button"
    latitude: float = 65.584816
    longitude: float = 22.156704
    sampling_period: float = DEFAULT_SAMPLING_PERIOD_S
    state_url: str | None = None
    details: dict[str, list[str]] = dataclasses.field(default_factory=dict)

    def __post_init__(self) -> None:
        _require_positive("sampling_period", self.sampling_period)
        if not -90.0 <= self.latitude <= 90.0:
            raise UnitAssetConfigError(f"latitude must be within [-90, 90], got {self.latitude}")
        if not -180.0 <= self.longitude <= 180.0:
            raise UnitAssetConfigError(f"longitude must be within [-180, 180], got {self.longitude}")

    @classmethod
    def from_env(cls, **overrides: Any) -> SunButtonConfig:
        """Create configuration from ``UNITASSET_SUN_*`` environment variables."""
        _ENV_MAP: dict[str, tuple[str, Callable[[str], Any]]] = {
            "UNITASSET_SUN_NAME": ("name", str),
            "UNITASSET_SUN_LATITUDE": ("latitude", float),
            "UNITASSET_SUN_LONGITUDE": ("longitude", float),
            "UNITASSET_SUN_PERIOD": ("sampling_period", float),
            "UNITASSET_SUN_STATE_URL": ("state_url", str),
        }
        kwargs = _read_env(os.environ, _ENV_MAP, overrides)
        kwargs.update(overrides)
        return cls(**kwargs)


@dataclasses.dataclass(frozen=True)
class SystemConfig:
    """Process-wide settings shared by every asset.

    Parameters
    ----------
    time_zone : str
        IANA zone used for the local date in cache keys and for
        time-of-day decisions.
    http_timeout : float
        Total timeout in seconds for a single outbound request.
    price_max_age : float
        Seconds a cached price document stays fresh within its day.
    comfortstats, sunbuttons : tuple
        Asset configurations. Names must be unique across the system.
    """

    time_zone: str = DEFAULT_TIME_ZONE
    http_timeout: float = DEFAULT_HTTP_TIMEOUT_S
    price_max_age: float = PRICE_FETCH_PERIOD_S
    comfortstats: tuple[ComfortstatConfig, ...] = ()
    sunbuttons: tuple[SunButtonConfig, ...] = ()

    def __post_init__(self) -> None:
        _require_positive("http_timeout", self.http_timeout)
        _require_positive("price_max_age", self.price_max_age)
        try:
            ZoneInfo(self.time_zone)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise UnitAssetConfigError(f"unknown time zone {self.time_zone!r}") from exc
        names = [c.name for c in self.comfortstats] + [c.name for c in self.sunbuttons]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise UnitAssetConfigError(f"duplicate asset names: {', '.join(duplicates)}")

    @property
    def zone(self) -> ZoneInfo:
        return ZoneInfo(self.time_zone)

    @classmethod
    def from_env(cls, **overrides: Any) -> SystemConfig:
        """Create configuration from ``UNITASSET_*`` environment variables.

        Asset tuples are not read from the environment; pass them as
        overrides.
        """
        _ENV_MAP: dict[str, tuple[str, Callable[[str], Any]]] = {
            "UNITASSET_TIME_ZONE": ("time_zone", str),
            "UNITASSET_HTTP_TIMEOUT": ("http_timeout", float),
            "UNITASSET_PRICE_MAX_AGE": ("price_max_age", float),
        }
        kwargs = _read_env(os.environ, _ENV_MAP, overrides)
        kwargs.update(overrides)
        return cls(**kwargs)
