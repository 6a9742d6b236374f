from __future__ import annotations

import pytest

from pyunitasset.exceptions import SendError
from pyunitasset.tracker import ChangeTracker, SendState


def test_first_value_is_always_sent() -> None:
    tracker = ChangeTracker()
    assert tracker.should_send(21.0)
    assert tracker.state == SendState.IDLE


def test_success_suppresses_identical_value() -> None:
    tracker = ChangeTracker()
    tracker.begin()
    tracker.record_success(21.0)

    assert tracker.state == SendState.SENT_OK
    assert not tracker.should_send(21.0)
    assert tracker.should_send(22.0)


def test_failure_keeps_last_sent_value_and_sets_sticky_flag() -> None:
    tracker = ChangeTracker()
    tracker.begin()
    tracker.record_success(21.0)

    tracker.begin()
    tracker.record_failure(SendError("thermostat unreachable"))

    assert tracker.last_sent_value == 21.0
    assert tracker.pending_error is True
    assert tracker.state == SendState.SENT_FAILED
    assert tracker.last_error == "thermostat unreachable"
    # Unchanged decision must still be retried.
    assert tracker.should_send(21.0)

    tracker.begin()
    tracker.record_success(21.0)
    assert tracker.pending_error is False
    assert tracker.last_error is None


def test_overlapping_sends_are_rejected() -> None:
    tracker = ChangeTracker()
    tracker.begin()
    with pytest.raises(RuntimeError):
        tracker.begin()
