from __future__ import annotations

import json
from collections.abc import Mapping
from datetime import date, datetime, time
from typing import Any
from urllib.parse import parse_qs, urlsplit
from zoneinfo import ZoneInfo

import pytest

from pyunitasset._api.price import build_price_url, fetch_price_record, parse_price_payload
from pyunitasset._api.sun import build_sun_url, fetch_sun_record, parse_sun_payload
from pyunitasset.exceptions import BadStatusError, ParseError
from pyunitasset.models.price import PriceKey
from pyunitasset.models.sun import SunKey, parse_clock_time

STOCKHOLM = ZoneInfo("Europe/Stockholm")


def _price_body(*prices: float) -> bytes:
    items = [
        {
            "SEK_per_kWh": price,
            "EUR_per_kWh": round(price / 11.5, 5),
            "EXR": 11.5,
            "time_start": f"2025-01-06T{hour:02d}:00:00+01:00",
            "time_end": f"2025-01-06T{hour + 1:02d}:00:00+01:00",
        }
        for hour, price in enumerate(prices)
    ]
    return json.dumps(items).encode()


_SUN_BODY = json.dumps(
    {
        "results": {
            "date": "2025-01-06",
            "sunrise": "08:41:12",
            "sunset": "15:08:47",
            "first_light": "06:33:01",
            "last_light": "17:16:58",
            "dawn": "07:55:30",
            "dusk": "15:54:29",
            "solar_noon": "11:55:00",
            "golden_hour": "14:21:10",
            "day_length": "6:27:35",
            "timezone": "Europe/Stockholm",
            "utc_offset": 60,
        },
        "status": "OK",
    }
).encode()


class _Transport:
    def __init__(self, body: bytes | None = None, error: Exception | None = None) -> None:
        self.body = body
        self.error = error
        self.urls: list[str] = []

    async def fetch_raw(self, url: str) -> bytes:
        self.urls.append(url)
        if self.error is not None:
            raise self.error
        assert self.body is not None
        return self.body

    async def put_json(self, url: str, payload: Mapping[str, Any]) -> None:
        raise AssertionError("sources never PUT")


# ------------------------------------------------------------------
# Prices
# ------------------------------------------------------------------

PRICE_KEY = PriceKey(day=date(2025, 1, 6), region="se3")


def test_price_key_normalizes_region() -> None:
    assert PRICE_KEY.region == "SE3"
    assert PRICE_KEY == PriceKey(day=date(2025, 1, 6), region="SE3")
    assert hash(PRICE_KEY) == hash(PriceKey(day=date(2025, 1, 6), region="SE3"))


def test_build_price_url_pads_date_parts() -> None:
    assert build_price_url(PRICE_KEY) == "https://www.elprisetjustnu.se/api/v1/prices/2025/01-06_SE3.json"


def test_parse_price_payload_and_lookup() -> None:
    record = parse_price_payload(_price_body(0.5, 1.25, 2.0), PRICE_KEY)

    assert len(record.intervals) == 3
    assert record.intervals[1].exchange_rate == 11.5
    assert record.price_at(datetime(2025, 1, 6, 1, 30, tzinfo=STOCKHOLM)) == 1.25
    # Interval end is exclusive.
    assert record.price_at(datetime(2025, 1, 6, 2, 0, tzinfo=STOCKHOLM)) == 2.0
    assert record.price_at(datetime(2025, 1, 6, 5, 0, tzinfo=STOCKHOLM)) is None


def test_price_lookup_is_timezone_aware() -> None:
    record = parse_price_payload(_price_body(0.5, 1.25), PRICE_KEY)
    # 00:15 UTC is 01:15 in Stockholm.
    assert record.price_at(datetime(2025, 1, 6, 0, 15, tzinfo=ZoneInfo("UTC"))) == 1.25


def test_parse_price_payload_keeps_raw_items() -> None:
    record = parse_price_payload(_price_body(0.5), PRICE_KEY)
    assert record.raw[0]["SEK_per_kWh"] == 0.5
    assert record.intervals[0].raw["EXR"] == 11.5


@pytest.mark.parametrize(
    "body",
    [
        b"<html>maintenance</html>",
        b'{"SEK_per_kWh": 1.0}',
        b'[{"SEK_per_kWh": "cheap", "time_start": "2025-01-06T00:00:00+01:00", "time_end": "2025-01-06T01:00:00+01:00"}]',
        b'[{"SEK_per_kWh": 1.0, "time_start": "2025-01-06T00:00:00", "time_end": "2025-01-06T01:00:00"}]',
        b"\xff\xfe",
    ],
    ids=["not-json", "not-a-list", "bad-number", "naive-timestamps", "not-utf8"],
)
def test_parse_price_payload_rejects_malformed_bodies(body: bytes) -> None:
    with pytest.raises(ParseError):
        parse_price_payload(body, PRICE_KEY, url="https://example.invalid/prices")


@pytest.mark.asyncio
async def test_fetch_price_record_uses_transport() -> None:
    transport = _Transport(_price_body(1.0))
    record = await fetch_price_record(transport, PRICE_KEY)

    assert transport.urls == [build_price_url(PRICE_KEY)]
    assert record.key == PRICE_KEY


@pytest.mark.asyncio
async def test_fetch_price_record_propagates_source_errors() -> None:
    transport = _Transport(error=BadStatusError("HTTP 404", status_code=404))
    with pytest.raises(BadStatusError) as excinfo:
        await fetch_price_record(transport, PRICE_KEY)
    assert excinfo.value.status_code == 404


# ------------------------------------------------------------------
# Sun times
# ------------------------------------------------------------------

SUN_KEY = SunKey(day=date(2025, 1, 6), latitude=59.3293, longitude=18.0686)


def test_build_sun_url_query() -> None:
    url = build_sun_url(SUN_KEY, "Europe/Stockholm")
    parts = urlsplit(url)

    assert f"{parts.scheme}://{parts.netloc}{parts.path}" == "https://api.sunrisesunset.io/json"
    assert parse_qs(parts.query) == {
        "lat": ["59.329300"],
        "lng": ["18.068600"],
        "timezone": ["Europe/Stockholm"],
        "date": ["2025-01-06"],
        "time_format": ["24"],
    }


def test_parse_sun_payload() -> None:
    record = parse_sun_payload(_SUN_BODY, SUN_KEY)

    assert record.sunrise == time(8, 41, 12)
    assert record.sunset == time(15, 8, 47)
    assert record.times.day == date(2025, 1, 6)
    assert record.times.solar_noon == time(11, 55)
    assert record.raw["status"] == "OK"


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("7:58:03", time(7, 58, 3)),
        ("07:58", time(7, 58)),
        ("7:58:03 PM", time(19, 58, 3)),
        ("12:05 AM", time(0, 5)),
    ],
)
def test_parse_clock_time_formats(text: str, expected: time) -> None:
    assert parse_clock_time(text) == expected


def test_parse_clock_time_rejects_garbage() -> None:
    with pytest.raises(ValueError):
        parse_clock_time("sunrise-ish")


def test_polar_night_has_no_sunrise() -> None:
    body = json.dumps({"results": {"date": "2025-01-06", "sunrise": None, "sunset": None}, "status": "OK"})
    with pytest.raises(ParseError, match="No sunrise/sunset"):
        parse_sun_payload(body.encode(), SUN_KEY)


@pytest.mark.parametrize(
    "body",
    [
        b"not json",
        b"[]",
        b'{"status": "INVALID_REQUEST", "results": {}}',
        b'{"status": "OK"}',
        b'{"status": "OK", "results": {"sunrise": "soon", "sunset": "15:08:47"}}',
    ],
    ids=["not-json", "not-object", "bad-status", "no-results", "bad-time"],
)
def test_parse_sun_payload_rejects_malformed_bodies(body: bytes) -> None:
    with pytest.raises(ParseError):
        parse_sun_payload(body, SUN_KEY)


@pytest.mark.asyncio
async def test_fetch_sun_record_uses_transport() -> None:
    transport = _Transport(_SUN_BODY)
    record = await fetch_sun_record(transport, SUN_KEY, "Europe/Stockholm")

    assert transport.urls == [build_sun_url(SUN_KEY, "Europe/Stockholm")]
    assert record.key == SUN_KEY
