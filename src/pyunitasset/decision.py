"""Pure decision functions mapping external data to actuator values.

Nothing here performs I/O or keeps state; callers resolve every input
(current price, local time of day) before calling.
"""

from __future__ import annotations

from datetime import time
from enum import IntEnum


class ButtonState(IntEnum):
    OFF = 0
    ON = 1


def desired_temperature(
    current_price: float,
    min_price: float,
    max_price: float,
    min_temp: float,
    max_temp: float,
) -> float:
    """Thermostat setpoint for *current_price*.

    Cheap power (at or below ``min_price``) gives ``max_temp``; expensive
    power (at or above ``max_price``) gives ``min_temp``. In between the
    setpoint falls linearly from ``max_temp`` to ``min_temp``. A degenerate
    band (``min_price >= max_price``) never interpolates.
    """
    if current_price <= min_price:
        return max_temp
    if current_price >= max_price or max_price <= min_price:
        return min_temp
    fraction = (current_price - min_price) / (max_price - min_price)
    return max_temp - fraction * (max_temp - min_temp)


def button_state(sunrise: time, sunset: time, now: time) -> ButtonState:
    """``OFF`` while the sun is up (``sunrise <= now < sunset``), ``ON`` otherwise."""
    if sunrise <= now < sunset:
        return ButtonState.OFF
    return ButtonState.ON
