from __future__ import annotations

from datetime import time

import pytest

from pyunitasset.decision import ButtonState, button_state, desired_temperature

# ------------------------------------------------------------------
# Price → setpoint
# ------------------------------------------------------------------


class TestDesiredTemperature:
    BAND = {"min_price": 1.0, "max_price": 3.0, "min_temp": 17.0, "max_temp": 28.0}

    def test_midpoint_interpolates(self) -> None:
        assert desired_temperature(2.0, **self.BAND) == pytest.approx(22.5)

    def test_price_at_min_gives_max_temp(self) -> None:
        assert desired_temperature(1.0, **self.BAND) == 28.0

    def test_price_below_min_gives_max_temp(self) -> None:
        assert desired_temperature(0.2, **self.BAND) == 28.0

    def test_price_at_max_gives_min_temp(self) -> None:
        assert desired_temperature(3.0, **self.BAND) == 17.0

    def test_price_above_max_gives_min_temp(self) -> None:
        assert desired_temperature(9.0, **self.BAND) == 17.0

    @pytest.mark.parametrize(
        ("price", "expected"),
        [(1.5, 25.25), (2.5, 19.75)],
    )
    def test_linear_between_bounds(self, price: float, expected: float) -> None:
        assert desired_temperature(price, **self.BAND) == pytest.approx(expected)

    def test_degenerate_band_does_not_divide_by_zero(self) -> None:
        assert desired_temperature(2.5, 2.0, 2.0, 17.0, 28.0) == 17.0
        assert desired_temperature(1.5, 2.0, 2.0, 17.0, 28.0) == 28.0

    def test_inverted_band_clamps_to_min_temp(self) -> None:
        assert desired_temperature(2.5, 3.0, 2.0, 17.0, 28.0) == 28.0
        assert desired_temperature(3.5, 3.0, 2.0, 17.0, 28.0) == 17.0


# ------------------------------------------------------------------
# Sun → button
# ------------------------------------------------------------------


class TestButtonState:
    SUNRISE = time(8, 0)
    SUNSET = time(20, 0)

    def test_daytime_is_off(self) -> None:
        assert button_state(self.SUNRISE, self.SUNSET, time(12, 0)) == ButtonState.OFF
        assert int(button_state(self.SUNRISE, self.SUNSET, time(12, 0))) == 0

    def test_night_is_on(self) -> None:
        assert button_state(self.SUNRISE, self.SUNSET, time(22, 0)) == ButtonState.ON
        assert int(button_state(self.SUNRISE, self.SUNSET, time(22, 0))) == 1

    def test_early_morning_is_on(self) -> None:
        assert button_state(self.SUNRISE, self.SUNSET, time(5, 30)) == ButtonState.ON

    def test_sunrise_is_inclusive_and_sunset_exclusive(self) -> None:
        assert button_state(self.SUNRISE, self.SUNSET, self.SUNRISE) == ButtonState.OFF
        assert button_state(self.SUNRISE, self.SUNSET, self.SUNSET) == ButtonState.ON
