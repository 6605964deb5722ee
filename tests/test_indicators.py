"""Tests for technical indicator calculations."""

import pytest
from hypothesis import given
from hypothesis import strategies as st

from coinboard.services.indicators import (
    CHART_WINDOW,
    compute_indicator_set,
    moving_average,
    rsi,
    trailing_window,
    volume_to_market_cap_ratio,
)

price_strategy = st.floats(
    min_value=0.01, max_value=1_000_000, allow_nan=False, allow_infinity=False
)


class TestTrailingWindow:
    """Tests for trailing_window."""

    def test_returns_last_points_in_order(self):
        assert trailing_window([1, 2, 3, 4, 5], 3) == (3, 4, 5)

    def test_short_series_returns_everything(self):
        assert trailing_window([1, 2], 5) == (1, 2)

    def test_non_positive_window_is_empty(self):
        assert trailing_window([1, 2, 3], 0) == ()
        assert trailing_window([1, 2, 3], -2) == ()

    @given(series=st.lists(price_strategy, max_size=60), n=st.integers(min_value=0, max_value=80))
    def test_window_length_never_exceeds_request(self, series, n):
        """The window holds min(n, len(series)) points and is a suffix of the series."""
        window = trailing_window(series, n)
        assert len(window) == min(n, len(series))
        if window:
            assert list(window) == series[len(series) - len(window):]


class TestMovingAverage:
    """Tests for moving_average."""

    def test_uses_all_points_when_shorter_than_window(self):
        assert moving_average([10, 20, 30], 50) == pytest.approx(20.0)

    def test_only_trailing_window_counts(self):
        assert moving_average([1000, 1, 2, 3], 3) == pytest.approx(2.0)

    def test_empty_series_is_absent(self):
        assert moving_average([], 50) is None

    def test_rejects_non_positive_window(self):
        with pytest.raises(ValueError):
            moving_average([1, 2, 3], 0)

    @given(series=st.lists(price_strategy, min_size=1, max_size=250))
    def test_average_lies_between_min_and_max(self, series):
        """A moving average never leaves the range of the window it averages."""
        window = trailing_window(series, 50)
        result = moving_average(series, 50)
        assert min(window) - 1e-6 <= result <= max(window) + 1e-6


class TestRsi:
    """Tests for the simple-average RSI."""

    def test_insufficient_points_is_absent(self):
        assert rsi([1.0] * 14, 14) is None

    def test_rising_series_is_100(self):
        assert rsi([float(p) for p in range(1, 16)], 14) == 100.0

    def test_flat_series_is_100(self):
        assert rsi([5.0] * 15, 14) == 100.0

    def test_falling_series_is_0(self):
        assert rsi([float(p) for p in range(15, 0, -1)], 14) == pytest.approx(0.0)

    def test_balanced_moves_give_50(self):
        series = [10.0]
        for i in range(14):
            series.append(series[-1] + (1.0 if i % 2 == 0 else -1.0))
        assert rsi(series, 14) == pytest.approx(50.0)

    def test_only_last_period_changes_count(self):
        # A crash before the window must not affect the value
        series = [1000.0, 1.0] + [float(p) for p in range(2, 17)]
        assert rsi(series, 14) == 100.0

    def test_rejects_non_positive_period(self):
        with pytest.raises(ValueError):
            rsi([1.0, 2.0], 0)

    @given(series=st.lists(price_strategy, min_size=15, max_size=200))
    def test_rsi_is_bounded(self, series):
        """For any series with at least period + 1 points, RSI lies in [0, 100]."""
        value = rsi(series, 14)
        assert value is not None
        assert 0.0 <= value <= 100.0

    @given(
        start=price_strategy,
        steps=st.lists(
            st.floats(min_value=0, max_value=1000, allow_nan=False, allow_infinity=False),
            min_size=14,
            max_size=14,
        ),
    )
    def test_no_losses_is_100(self, start, steps):
        """A window with only non-negative changes has RSI exactly 100."""
        series = [start]
        for step in steps:
            series.append(series[-1] + step)
        assert rsi(series, 14) == 100.0


class TestVolumeToMarketCap:
    """Tests for volume_to_market_cap_ratio."""

    def test_ratio(self):
        assert volume_to_market_cap_ratio(500, 1000) == 0.5

    def test_zero_market_cap_is_absent(self):
        assert volume_to_market_cap_ratio(500, 0) is None

    def test_missing_inputs_are_absent(self):
        assert volume_to_market_cap_ratio(None, 1000.0) is None
        assert volume_to_market_cap_ratio(50.0, None) is None


class TestComputeIndicatorSet:
    """Tests for compute_indicator_set."""

    def test_full_history(self):
        prices = [100.0 + i for i in range(200)]

        indicators = compute_indicator_set(prices, volume=5_000.0, market_cap=100_000.0)

        assert indicators.ma_50 == pytest.approx(sum(prices[-50:]) / 50)
        assert indicators.ma_200 == pytest.approx(sum(prices) / 200)
        assert indicators.rsi_14 == 100.0
        assert indicators.prices_30 == tuple(prices[-CHART_WINDOW:])
        assert indicators.volume_to_market_cap == pytest.approx(0.05)

    def test_short_history_still_yields_partial_indicators(self):
        prices = [10.0, 20.0, 30.0]

        indicators = compute_indicator_set(prices, volume=1.0, market_cap=0)

        assert indicators.ma_50 == pytest.approx(20.0)
        assert indicators.ma_200 == pytest.approx(20.0)
        assert indicators.rsi_14 is None
        assert indicators.prices_30 == (10.0, 20.0, 30.0)
        assert indicators.volume_to_market_cap is None
