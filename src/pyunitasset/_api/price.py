"""Electricity price source.

Endpoint:
  - https://www.elprisetjustnu.se/api/v1/prices/<YYYY>/<MM>-<DD>_<REGION>.json
"""

from __future__ import annotations

import json
import logging
from typing import Any

from pydantic import ValidationError

from pyunitasset._constants import PRICE_URL_TEMPLATE
from pyunitasset._transport import Transport
from pyunitasset.exceptions import ParseError
from pyunitasset.models.price import PriceInterval, PriceKey, PriceRecord

_logger = logging.getLogger(__name__)


def build_price_url(key: PriceKey) -> str:
    return PRICE_URL_TEMPLATE.format(
        year=key.day.year,
        month=key.day.month,
        day=key.day.day,
        region=key.region,
    )


def parse_price_payload(body: bytes, key: PriceKey, *, url: str = "") -> PriceRecord:
    """Decode a day's price list into a :class:`PriceRecord`."""
    try:
        data: Any = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise ParseError(f"Price payload is not JSON: {body[:64]!r}", url=url) from exc

    if not isinstance(data, list):
        raise ParseError(f"Price payload is not a list (got {type(data).__name__})", url=url)

    try:
        intervals = tuple(PriceInterval.model_validate(item) for item in data)
    except ValidationError as exc:
        raise ParseError(f"Price payload has invalid entries: {exc.error_count()} error(s)", url=url) from exc

    return PriceRecord(key=key, intervals=intervals, raw=data)


async def fetch_price_record(transport: Transport, key: PriceKey) -> PriceRecord:
    """Fetch and parse the price document for *key*."""
    url = build_price_url(key)
    body = await transport.fetch_raw(url)
    record = parse_price_payload(body, key, url=url)
    _logger.debug("Fetched %d price intervals for %s %s", len(record.intervals), key.region, key.day)
    return record
