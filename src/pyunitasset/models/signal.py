"""Signal form exchanged with routers and consumed services."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from pyunitasset._constants import SIGNAL_VERSION


def _utcnow() -> datetime:
    return datetime.now(UTC)


class SignalA(BaseModel):
    """A single scalar reading: ``{"value", "unit", "timestamp", "version"}``."""

    model_config = ConfigDict(frozen=True)

    value: float
    unit: str = ""
    timestamp: datetime = Field(default_factory=_utcnow)
    version: str = SIGNAL_VERSION

    def to_payload(self) -> dict[str, Any]:
        """JSON-ready dict as PUT to a consumed service."""
        return self.model_dump(mode="json")
