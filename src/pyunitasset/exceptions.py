"""Custom exception hierarchy for pyunitasset."""

from __future__ import annotations


class UnitAssetError(Exception):
    """Base exception for all pyunitasset errors."""


class UnitAssetConfigError(UnitAssetError):
    """Invalid or missing configuration.

    Raised at startup only; a misconfigured asset never starts its loop.
    """


class SourceError(UnitAssetError):
    """Failure while fetching data from an external source."""

    def __init__(
        self,
        message: str,
        *,
        url: str = "",
        status_code: int | None = None,
    ) -> None:
        self.url = url
        self.status_code = status_code
        super().__init__(message)


class InvalidUrlError(SourceError):
    """The URL is malformed; no request was issued.

    Not retryable without reconfiguration.
    """


class NetworkError(SourceError):
    """Transport-level failure (connection refused, DNS, timeout)."""


class BadStatusError(SourceError):
    """The server answered with a status code of 300 or above."""


class ParseError(SourceError):
    """The response body could not be decoded into a record."""


class SendError(UnitAssetError):
    """Actuator send failed.

    The feedback loop keeps the last successfully sent value and retries
    on the next tick.
    """

    def __init__(self, message: str, *, url: str = "", status_code: int | None = None) -> None:
        self.url = url
        self.status_code = status_code
        super().__init__(message)


class UnknownServiceError(UnitAssetError, KeyError):
    """The asset exposes no service under the requested sub-path."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ""


class ReadOnlyServiceError(UnitAssetError):
    """A write was attempted on a read-only service."""


class InvalidServiceValueError(UnitAssetError, ValueError):
    """A service write carried a value outside the accepted range."""
