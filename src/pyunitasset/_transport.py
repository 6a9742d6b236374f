"""HTTP transport for external sources and consumed actuator services."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Mapping
from typing import Any, Protocol
from urllib.parse import urlsplit

import aiohttp

from pyunitasset._constants import DEFAULT_HTTP_TIMEOUT_S, USER_AGENT
from pyunitasset.exceptions import BadStatusError, InvalidUrlError, NetworkError

_logger = logging.getLogger(__name__)

_ALLOWED_SCHEMES: frozenset[str] = frozenset({"http", "https"})


def validate_url(url: str) -> str:
    """Return *url* unchanged if it is well-formed, else raise :class:`InvalidUrlError`.

    A well-formed URL has an ``http``/``https`` scheme and a host.
    """
    try:
        parts = urlsplit(url)
        host = parts.hostname
    except ValueError as exc:
        raise InvalidUrlError(f"URL is invalid: {url!r}", url=url) from exc
    if parts.scheme not in _ALLOWED_SCHEMES or not host:
        raise InvalidUrlError(f"URL is invalid: {url!r}", url=url)
    return url


class Transport(Protocol):
    """Structural transport interface used by source and actuator modules.

    Tests pass small fakes implementing these two coroutines instead of
    patching a shared HTTP client.
    """

    async def fetch_raw(self, url: str) -> bytes:
        ...

    async def put_json(self, url: str, payload: Mapping[str, Any]) -> None:
        ...


class HttpTransport:
    """aiohttp-backed transport that classifies every failure.

    * malformed URL → :class:`InvalidUrlError` (no request is made)
    * connection/timeout failure → :class:`NetworkError`
    * status >= 300 → :class:`BadStatusError`
    """

    def __init__(
        self,
        http_session: aiohttp.ClientSession,
        *,
        timeout: float = DEFAULT_HTTP_TIMEOUT_S,
    ) -> None:
        self._http = http_session
        self._timeout = aiohttp.ClientTimeout(total=timeout)

    async def fetch_raw(self, url: str) -> bytes:
        """GET *url* and return the full response body."""
        validate_url(url)
        _logger.debug("GET %s", url)
        try:
            async with self._http.get(
                url,
                headers={"user-agent": USER_AGENT, "accept": "application/json"},
                timeout=self._timeout,
            ) as resp:
                # Read before classifying so the connection is released cleanly.
                body = await resp.read()
                if resp.status >= 300:
                    raise BadStatusError(
                        f"HTTP {resp.status} from {url}: {body[:200]!r}",
                        url=url,
                        status_code=resp.status,
                    )
        except BadStatusError:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise NetworkError(f"Request to {url} failed: {exc!r}", url=url) from exc
        return body

    async def put_json(self, url: str, payload: Mapping[str, Any]) -> None:
        """PUT *payload* as JSON to *url*; the response body is discarded."""
        validate_url(url)
        _logger.debug("PUT %s", url)
        try:
            async with self._http.put(
                url,
                data=json.dumps(payload, separators=(",", ":")),
                headers={"user-agent": USER_AGENT, "content-type": "application/json"},
                timeout=self._timeout,
            ) as resp:
                body = await resp.read()
                if resp.status >= 300:
                    raise BadStatusError(
                        f"HTTP {resp.status} from {url}: {body[:200]!r}",
                        url=url,
                        status_code=resp.status,
                    )
        except BadStatusError:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise NetworkError(f"Request to {url} failed: {exc!r}", url=url) from exc
