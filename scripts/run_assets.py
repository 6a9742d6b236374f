#!/usr/bin/env python3
"""Run Comfortstat and/or SunButton assets until interrupted.

Asset settings come from ``UNITASSET_*`` environment variables; the flags
below override them.

Usage
-----
::

    export UNITASSET_COMFORT_SETPOINT_URL="http://localhost:8870/ZigBee/valve/setpoint"
    python scripts/run_assets.py --comfort --region SE3

    python scripts/run_assets.py --sun --latitude 59.33 --longitude 18.06 --once

Options::

    --comfort            Run a price-driven Comfortstat asset
    --sun                Run a sun-driven SunButton asset
    --region SE1..SE4    Price region for --comfort
    --latitude/--longitude
                         Coordinates for --sun
    --period SECONDS     Sampling period for every asset
    --once               Run a single tick per asset, print states, exit
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys
from pathlib import Path
from typing import Any

# Allow running from the repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from pyunitasset import (  # noqa: E402
    AssetSystem,
    ComfortstatConfig,
    SunButtonConfig,
    SystemConfig,
    UnitAssetConfigError,
)


def _build_config(args: argparse.Namespace) -> SystemConfig:
    common: dict[str, Any] = {}
    if args.period is not None:
        common["sampling_period"] = args.period

    comfortstats: tuple[ComfortstatConfig, ...] = ()
    if args.comfort:
        overrides = dict(common)
        if args.region:
            overrides["region"] = args.region.upper()
        comfortstats = (ComfortstatConfig.from_env(**overrides),)

    sunbuttons: tuple[SunButtonConfig, ...] = ()
    if args.sun:
        overrides = dict(common)
        if args.latitude is not None:
            overrides["latitude"] = args.latitude
        if args.longitude is not None:
            overrides["longitude"] = args.longitude
        sunbuttons = (SunButtonConfig.from_env(**overrides),)

    return SystemConfig.from_env(comfortstats=comfortstats, sunbuttons=sunbuttons)


async def _run_once(system: AssetSystem) -> None:
    for name, asset in system.assets.items():
        outcome = await asset.loop.tick()
        print(f"{name} ({asset.kind}): {outcome.value}")
        for sub_path in asset.services():
            state = asset.get_state(sub_path)
            print(f"  {sub_path:<16} {state.value:g} {state.unit}")


async def main() -> int:
    parser = argparse.ArgumentParser(description="Run pyunitasset adapters.")
    parser.add_argument("--comfort", action="store_true", help="Run a price-driven Comfortstat asset")
    parser.add_argument("--sun", action="store_true", help="Run a sun-driven SunButton asset")
    parser.add_argument("--region", help="Price region (SE1..SE4)")
    parser.add_argument("--latitude", type=float, help="Latitude for the sun asset")
    parser.add_argument("--longitude", type=float, help="Longitude for the sun asset")
    parser.add_argument("--period", type=float, help="Sampling period in seconds")
    parser.add_argument("--once", action="store_true", help="Tick each asset once and exit")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    else:
        logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    if not (args.comfort or args.sun):
        parser.error("select at least one of --comfort / --sun")

    try:
        config = _build_config(args)
        return await _serve(config, once=args.once)
    except UnitAssetConfigError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 2


async def _serve(config: SystemConfig, *, once: bool) -> int:
    async with AssetSystem(config) as system:
        if once:
            await _run_once(system)
            return 0

        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, lambda: asyncio.ensure_future(system.stop()))

        system.start()
        await system.wait_closed()
        print("\nShutting down", file=sys.stderr)
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
