"""Sunrise/sunset source.

Endpoint:
  - https://api.sunrisesunset.io/json?lat=..&lng=..&timezone=..&date=..&time_format=24
"""

from __future__ import annotations

import json
import logging
from typing import Any
from urllib.parse import urlencode

from pydantic import ValidationError

from pyunitasset._constants import SUN_URL_TEMPLATE
from pyunitasset._transport import Transport
from pyunitasset.exceptions import ParseError
from pyunitasset.models.sun import SunKey, SunRecord, SunTimes

_logger = logging.getLogger(__name__)


def build_sun_url(key: SunKey, time_zone: str) -> str:
    query = urlencode(
        {
            "lat": f"{key.latitude:.6f}",
            "lng": f"{key.longitude:.6f}",
            "timezone": time_zone,
            "date": key.day.isoformat(),
            "time_format": "24",
        }
    )
    return f"{SUN_URL_TEMPLATE}?{query}"


def parse_sun_payload(body: bytes, key: SunKey, *, url: str = "") -> SunRecord:
    """Decode ``{"results": {...}, "status": "OK"}`` into a :class:`SunRecord`."""
    try:
        data: Any = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise ParseError(f"Sun payload is not JSON: {body[:64]!r}", url=url) from exc

    if not isinstance(data, dict):
        raise ParseError("Sun payload is not an object", url=url)

    status = data.get("status")
    if status != "OK":
        raise ParseError(f"Sun API returned status={status!r}", url=url)

    results = data.get("results")
    if not isinstance(results, dict):
        raise ParseError("Sun payload is missing 'results'", url=url)

    try:
        times = SunTimes.model_validate(results)
    except ValidationError as exc:
        raise ParseError(f"Sun payload has invalid fields: {exc.error_count()} error(s)", url=url) from exc

    if times.sunrise is None or times.sunset is None:
        raise ParseError(f"No sunrise/sunset for {key.day} at ({key.latitude}, {key.longitude})", url=url)

    return SunRecord(key=key, sunrise=times.sunrise, sunset=times.sunset, times=times, raw=data)


async def fetch_sun_record(transport: Transport, key: SunKey, time_zone: str) -> SunRecord:
    """Fetch and parse the sun times for *key*."""
    url = build_sun_url(key, time_zone)
    body = await transport.fetch_raw(url)
    record = parse_sun_payload(body, key, url=url)
    _logger.debug("Sun times for %s: sunrise=%s sunset=%s", key.day, record.sunrise, record.sunset)
    return record
