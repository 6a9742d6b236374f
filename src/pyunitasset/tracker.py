"""Change/error tracking for actuator sends."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class SendState(StrEnum):
    IDLE = "idle"
    SENDING = "sending"
    SENT_OK = "sent_ok"
    SENT_FAILED = "sent_failed"


@dataclass(slots=True)
class ChangeTracker:
    """Remembers the last successfully sent value and a sticky failure flag.

    ``last_sent_value`` only moves on success. After a failure
    ``pending_error`` stays ``True`` until a later send succeeds, so an
    unchanged decision is still re-sent.
    """

    last_sent_value: float | None = None
    pending_error: bool = False
    state: SendState = SendState.IDLE
    last_error: str | None = None

    def should_send(self, desired: float) -> bool:
        if self.pending_error:
            return True
        return desired != self.last_sent_value

    def begin(self) -> None:
        if self.state == SendState.SENDING:
            raise RuntimeError("a send is already in progress")
        self.state = SendState.SENDING

    def record_success(self, value: float) -> None:
        self.last_sent_value = value
        self.pending_error = False
        self.last_error = None
        self.state = SendState.SENT_OK

    def record_failure(self, error: BaseException) -> None:
        self.pending_error = True
        self.last_error = str(error)
        self.state = SendState.SENT_FAILED

    def skip(self) -> None:
        self.state = SendState.IDLE
