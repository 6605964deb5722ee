"""Technical indicators computed from daily price series.

All functions are pure. Missing inputs yield ``None`` rather than an
exception, so one absent indicator never blocks the others.
"""

from collections.abc import Sequence

from coinboard.models.market_data import IndicatorSet

MA_SHORT_WINDOW = 50
MA_LONG_WINDOW = 200
RSI_PERIOD = 14
CHART_WINDOW = 30


def trailing_window(series: Sequence[float], n: int) -> tuple[float, ...]:
    """Return the last ``n`` points of ``series`` (fewer if unavailable), in order."""
    if n <= 0:
        return ()
    return tuple(series[-n:])


def moving_average(series: Sequence[float], window: int) -> float | None:
    """
    Arithmetic mean of the last ``window`` points.

    Uses every point when the series is shorter than the window.

    Raises:
        ValueError: If window is not positive
    """
    if window <= 0:
        raise ValueError("window must be a positive integer")
    points = trailing_window(series, window)
    if not points:
        return None
    return sum(points) / len(points)


def rsi(series: Sequence[float], period: int = RSI_PERIOD) -> float | None:
    """
    Relative Strength Index over the last ``period`` price changes.

    Simple averages of gains and losses (no smoothing). Needs at least
    ``period + 1`` points. A flat or rising window with no losses is 100.

    Raises:
        ValueError: If period is not positive
    """
    if period <= 0:
        raise ValueError("period must be a positive integer")
    if len(series) < period + 1:
        return None

    window = trailing_window(series, period + 1)
    gains = 0.0
    losses = 0.0
    for previous, current in zip(window, window[1:]):
        change = current - previous
        if change >= 0:
            gains += change
        else:
            losses += -change

    avg_gain = gains / period
    avg_loss = losses / period
    if avg_loss == 0:
        return 100.0

    rs = avg_gain / avg_loss
    return 100 - 100 / (1 + rs)


def volume_to_market_cap_ratio(volume: float | None, market_cap: float | None) -> float | None:
    """24h volume divided by market cap; None when market cap is unknown or zero."""
    if volume is None or market_cap is None or market_cap <= 0:
        return None
    return volume / market_cap


def compute_indicator_set(
    prices: Sequence[float],
    volume: float | None,
    market_cap: float | None,
) -> IndicatorSet:
    """Compute every dashboard indicator for one asset's daily closes."""
    return IndicatorSet(
        ma_50=moving_average(trailing_window(prices, MA_SHORT_WINDOW), MA_SHORT_WINDOW),
        ma_200=moving_average(trailing_window(prices, MA_LONG_WINDOW), MA_LONG_WINDOW),
        rsi_14=rsi(trailing_window(prices, RSI_PERIOD + 1), RSI_PERIOD),
        prices_30=trailing_window(prices, CHART_WINDOW),
        volume_to_market_cap=volume_to_market_cap_ratio(volume, market_cap),
    )
