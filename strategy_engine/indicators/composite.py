"""
Composite and price-structure indicators.

Elder Ray, Detrended Price Oscillator, Mass Index, Balance of Power,
Heikin-Ashi candles, pivot points, Fibonacci retracements and the
linear-regression family.
"""

import numpy as np
from numba import njit
from typing import Dict, Tuple

from .moving_averages import ema, sma
from .rolling import rolling_sum


FIBONACCI_RATIOS = (
    ("0.0", 0.0),
    ("23.6", 0.236),
    ("38.2", 0.382),
    ("50.0", 0.5),
    ("61.8", 0.618),
    ("78.6", 0.786),
    ("100.0", 1.0),
)


@njit
def elder_ray(highs: np.ndarray, lows: np.ndarray, closes: np.ndarray, period: int = 13) -> Tuple[np.ndarray, np.ndarray]:
    """
    Elder Ray Index.

    Returns
    -------
    tuple
        (bull_power, bear_power) = (high - EMA(close), low - EMA(close))
    """
    trend = ema(closes, period)
    return highs - trend, lows - trend


@njit
def detrended(prices: np.ndarray, period: int = 20) -> np.ndarray:
    """
    Detrended Price Oscillator.

    DPO[i] = price[i] - SMA[i - (period // 2 + 1)]; the SMA is displaced
    back so the oscillator isolates cycles shorter than `period`.
    """
    n = len(prices)
    offset = period // 2 + 1
    average = sma(prices, period)
    result = np.full(n, np.nan)
    for i in range(offset, n):
        result[i] = prices[i] - average[i - offset]
    return result


@njit
def mass_index(highs: np.ndarray, lows: np.ndarray, period: int = 9, sum_period: int = 25) -> np.ndarray:
    """
    Mass Index.

    Sum over `sum_period` bars of EMA(range) / EMA(EMA(range)). A ratio with
    a zero denominator counts as 1.
    """
    n = len(highs)
    rng = highs - lows
    single = ema(rng, period)
    double = ema(single, period)
    ratio = np.full(n, np.nan)
    for i in range(n):
        if np.isnan(double[i]):
            continue
        ratio[i] = 1.0 if double[i] == 0 else single[i] / double[i]
    return rolling_sum(ratio, sum_period)


@njit
def bop(opens: np.ndarray, highs: np.ndarray, lows: np.ndarray, closes: np.ndarray) -> np.ndarray:
    """Balance of Power: (close - open) / (high - low), in [-1, 1]; 0 on flat bars."""
    n = len(closes)
    result = np.zeros(n)
    for i in range(n):
        rng = highs[i] - lows[i]
        if rng != 0:
            result[i] = (closes[i] - opens[i]) / rng
    return result


@njit
def heikin_ashi(
    opens: np.ndarray,
    highs: np.ndarray,
    lows: np.ndarray,
    closes: np.ndarray
) -> Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    """
    Heikin-Ashi candle reconstruction.

    HA close = (O + H + L + C) / 4; HA open = midpoint of the previous HA
    candle's body (the first one uses (O + C) / 2); HA high/low extend the
    real high/low to cover the HA body.

    Returns
    -------
    tuple
        (open, high, low, close)
    """
    n = len(closes)
    ha_open = np.empty(n)
    ha_high = np.empty(n)
    ha_low = np.empty(n)
    ha_close = np.empty(n)

    for i in range(n):
        ha_close[i] = (opens[i] + highs[i] + lows[i] + closes[i]) / 4.0
        if i == 0:
            ha_open[i] = (opens[i] + closes[i]) / 2.0
        else:
            ha_open[i] = (ha_open[i - 1] + ha_close[i - 1]) / 2.0
        ha_high[i] = max(highs[i], ha_open[i], ha_close[i])
        ha_low[i] = min(lows[i], ha_open[i], ha_close[i])

    return ha_open, ha_high, ha_low, ha_close


@njit
def pivot_points(
    highs: np.ndarray,
    lows: np.ndarray,
    closes: np.ndarray
) -> Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    """
    Classic floor-trader pivot points, per bar.

    Returns
    -------
    tuple
        (pivot, r1, r2, r3, s1, s2, s3)
    """
    pivot = (highs + lows + closes) / 3.0
    rng = highs - lows
    r1 = 2.0 * pivot - lows
    s1 = 2.0 * pivot - highs
    r2 = pivot + rng
    s2 = pivot - rng
    r3 = highs + 2.0 * (pivot - lows)
    s3 = lows - 2.0 * (highs - pivot)
    return pivot, r1, r2, r3, s1, s2, s3


def fibonacci(high: float, low: float) -> Dict[str, float]:
    """
    Fibonacci retracement levels measured down from `high`.

    Parameters
    ----------
    high : float
        Swing high
    low : float
        Swing low (must be below `high`)

    Returns
    -------
    dict
        Level label ("0.0" ... "100.0") -> price
    """
    if high <= low:
        raise ValueError("high must be greater than low")

    span = high - low
    return {label: high - span * ratio for label, ratio in FIBONACCI_RATIOS}


@njit
def _regression_window(prices: np.ndarray, end: int, period: int) -> Tuple[float, float]:
    x_mean = (period - 1) / 2.0
    y_mean = 0.0
    for j in range(period):
        y_mean += prices[end - period + 1 + j]
    y_mean /= period

    sxy = 0.0
    sxx = 0.0
    for j in range(period):
        dx = j - x_mean
        sxy += dx * (prices[end - period + 1 + j] - y_mean)
        sxx += dx * dx

    slope = sxy / sxx if sxx != 0 else 0.0
    return slope, y_mean - slope * x_mean


@njit
def linear_regression(prices: np.ndarray, period: int = 14) -> np.ndarray:
    """
    Least-squares line fitted over each window, evaluated at the window's
    last bar (first period-1 values are NaN).
    """
    n = len(prices)
    result = np.full(n, np.nan)
    if period <= 0 or n < period:
        return result

    for i in range(period - 1, n):
        slope, intercept = _regression_window(prices, i, period)
        result[i] = intercept + slope * (period - 1)

    return result


@njit
def linear_regression_slope(prices: np.ndarray, period: int = 14) -> np.ndarray:
    """Slope per bar of the least-squares line over each window."""
    n = len(prices)
    result = np.full(n, np.nan)
    if period <= 0 or n < period:
        return result

    for i in range(period - 1, n):
        slope, _ = _regression_window(prices, i, period)
        result[i] = slope

    return result


@njit
def correlation_coefficient(prices: np.ndarray, period: int = 14) -> np.ndarray:
    """
    Pearson correlation between price and time over each window.

    Returns
    -------
    np.ndarray
        Values in [-1, 1] (first period-1 values are NaN; 0 when prices are
        flat)
    """
    n = len(prices)
    result = np.full(n, np.nan)
    if period < 2 or n < period:
        return result

    x_mean = (period - 1) / 2.0
    for i in range(period - 1, n):
        y_mean = 0.0
        for j in range(period):
            y_mean += prices[i - period + 1 + j]
        y_mean /= period

        sxy = 0.0
        sxx = 0.0
        syy = 0.0
        for j in range(period):
            dx = j - x_mean
            dy = prices[i - period + 1 + j] - y_mean
            sxy += dx * dy
            sxx += dx * dx
            syy += dy * dy

        if np.isnan(syy):
            continue
        if syy == 0 or sxx == 0:
            result[i] = 0.0
        else:
            r = sxy / np.sqrt(sxx * syy)
            result[i] = min(1.0, max(-1.0, r))

    return result
