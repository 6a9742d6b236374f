"""Runtime that wires configured assets to shared caches and senders."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Mapping
from datetime import datetime
from typing import Any

import aiohttp

from pyunitasset._api.actuator import NullSender, Sender, ServiceSender
from pyunitasset._api.price import fetch_price_record
from pyunitasset._api.sun import fetch_sun_record
from pyunitasset._cache import ExternalDataCache
from pyunitasset._constants import UNIT_BOOL, UNIT_CELSIUS
from pyunitasset._transport import HttpTransport, Transport, validate_url
from pyunitasset.assets.base import UnitAsset
from pyunitasset.assets.comfortstat import ComfortstatAsset
from pyunitasset.assets.sunbutton import SunButtonAsset
from pyunitasset.config import SystemConfig
from pyunitasset.exceptions import InvalidUrlError, UnitAssetConfigError, UnitAssetError
from pyunitasset.models.price import PriceKey, PriceRecord
from pyunitasset.models.signal import SignalA
from pyunitasset.models.sun import SunKey, SunRecord

_logger = logging.getLogger(__name__)


class AssetSystem:
    """Owns the HTTP session, the per-source caches and every asset.

    Usage::

        async with AssetSystem(config) as system:
            system.start()
            await system.wait_closed()

    One price cache and one sun cache are shared by all assets, so assets
    watching the same region (or coordinates) on the same day cause a
    single download between them.
    """

    def __init__(
        self,
        config: SystemConfig,
        *,
        session: aiohttp.ClientSession | None = None,
        transport: Transport | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._config = config
        self._external_session = session is not None
        self._http_session = session
        self._transport = transport
        zone = config.zone
        self._clock: Callable[[], datetime] = clock if clock is not None else (lambda: datetime.now(zone))
        self._stop = asyncio.Event()
        self._assets: dict[str, UnitAsset] = {}

        self.price_cache: ExternalDataCache[PriceKey, PriceRecord] = ExternalDataCache(
            self._fetch_price,
            is_stale=self._price_key_stale,
            max_age=config.price_max_age,
            name="price",
        )
        self.sun_cache: ExternalDataCache[SunKey, SunRecord] = ExternalDataCache(
            self._fetch_sun,
            is_stale=self._sun_key_stale,
            name="sun",
        )

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> AssetSystem:
        if self._transport is None:
            if self._http_session is None:
                self._http_session = aiohttp.ClientSession()
            self._transport = HttpTransport(self._http_session, timeout=self._config.http_timeout)
        try:
            self._build_assets()
        except Exception:
            await self._close_session()
            raise
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.stop()
        await self.price_cache.drain()
        await self.sun_cache.drain()
        await self._close_session()

    async def _close_session(self) -> None:
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None

    # ------------------------------------------------------------------
    # Wiring
    # ------------------------------------------------------------------

    def _require_transport(self) -> Transport:
        if self._transport is None:
            raise UnitAssetError("System not initialized. Use 'async with AssetSystem(...) as system:'")
        return self._transport

    async def _fetch_price(self, key: PriceKey) -> PriceRecord:
        return await fetch_price_record(self._require_transport(), key)

    async def _fetch_sun(self, key: SunKey) -> SunRecord:
        return await fetch_sun_record(self._require_transport(), key, self._config.time_zone)

    def _price_key_stale(self, key: PriceKey) -> bool:
        if key.day != self._clock().date():
            return True
        return not any(
            isinstance(asset, ComfortstatAsset) and asset.region == key.region for asset in self._assets.values()
        )

    def _sun_key_stale(self, key: SunKey) -> bool:
        if key.day != self._clock().date():
            return True
        return not any(
            isinstance(asset, SunButtonAsset) and (asset.latitude, asset.longitude) == (key.latitude, key.longitude)
            for asset in self._assets.values()
        )

    def _sender(self, url: str | None, unit: str, asset_name: str) -> Sender:
        if url is None:
            return NullSender()
        try:
            validate_url(url)
        except InvalidUrlError as exc:
            raise UnitAssetConfigError(f"{asset_name}: {exc}") from exc
        return ServiceSender(self._require_transport(), url, unit=unit)

    def _build_assets(self) -> None:
        if self._assets:
            return
        for comfort in self._config.comfortstats:
            self._add(
                ComfortstatAsset(
                    comfort,
                    cache=self.price_cache,
                    sender=self._sender(comfort.setpoint_url, UNIT_CELSIUS, comfort.name),
                    clock=self._clock,
                    stop_event=self._stop,
                )
            )
        for sun in self._config.sunbuttons:
            self._add(
                SunButtonAsset(
                    sun,
                    cache=self.sun_cache,
                    sender=self._sender(sun.state_url, UNIT_BOOL, sun.name),
                    clock=self._clock,
                    stop_event=self._stop,
                )
            )
        _logger.debug("Configured %d asset(s): %s", len(self._assets), ", ".join(self._assets))

    def _add(self, asset: UnitAsset) -> None:
        if asset.name in self._assets:
            raise UnitAssetConfigError(f"duplicate asset name {asset.name!r}")
        self._assets[asset.name] = asset

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def assets(self) -> Mapping[str, UnitAsset]:
        return dict(self._assets)

    def asset(self, name: str) -> UnitAsset:
        try:
            return self._assets[name]
        except KeyError:
            raise UnitAssetError(f"no asset named {name!r}") from None

    def start(self) -> None:
        """Start one feedback loop task per asset."""
        if self._stop.is_set():
            raise UnitAssetError("System already stopped")
        for asset in self._assets.values():
            asset.start()
        _logger.info("Started %d feedback loop(s)", len(self._assets))

    async def stop(self) -> None:
        """Signal every loop to stop and wait for them to exit."""
        self._stop.set()
        await asyncio.gather(*(asset.stop() for asset in self._assets.values()))

    async def wait_closed(self) -> None:
        await self._stop.wait()

    def get_state(self, asset_name: str, sub_path: str) -> SignalA:
        return self.asset(asset_name).get_state(sub_path)

    def set_state(self, asset_name: str, sub_path: str, value: float | SignalA) -> None:
        signal = value if isinstance(value, SignalA) else SignalA(value=value)
        self.asset(asset_name).set_state(sub_path, signal)
