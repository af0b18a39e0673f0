"""
Bands, channels and volatility measures.

Provides Bollinger Bands (with %B and bandwidth), ATR, Keltner, Donchian and
price channels, and the ATR-based trailing stops (Chandelier Exit, Chande
Kroll Stop). All implementations are optimized with Numba.
"""

import numpy as np
from numba import njit
from typing import Tuple

from .moving_averages import ema, sma
from .rolling import highest, lowest, rolling_std


@njit
def true_range(highs: np.ndarray, lows: np.ndarray, closes: np.ndarray) -> np.ndarray:
    """
    True range per bar.

    Index 0 has no previous close and is NaN.
    """
    n = len(closes)
    tr = np.full(n, np.nan)
    for i in range(1, n):
        hl = highs[i] - lows[i]
        hc = abs(highs[i] - closes[i - 1])
        lc = abs(lows[i] - closes[i - 1])
        tr[i] = max(hl, hc, lc)
    return tr


@njit
def atr(highs: np.ndarray, lows: np.ndarray, closes: np.ndarray, period: int = 14) -> np.ndarray:
    """
    Average True Range with Wilder smoothing.

    Parameters
    ----------
    highs, lows, closes : np.ndarray
        OHLC price data
    period : int
        ATR lookback window (default: 14)

    Returns
    -------
    np.ndarray
        ATR values (first `period` values are NaN; the first value is the
        simple average of the true ranges of bars 1..period)
    """
    n = len(closes)
    result = np.full(n, np.nan)
    if period <= 0 or n < period + 1:
        return result

    tr = true_range(highs, lows, closes)

    total = 0.0
    for i in range(1, period + 1):
        total += tr[i]
    prev = total / period
    result[period] = prev

    for i in range(period + 1, n):
        prev = (prev * (period - 1) + tr[i]) / period
        result[i] = prev

    return result


@njit
def stddev(prices: np.ndarray, period: int) -> np.ndarray:
    """Rolling population standard deviation (first period-1 values are NaN)."""
    return rolling_std(prices, period)


@njit
def bollinger(prices: np.ndarray, period: int = 20, multiplier: float = 2.0) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Calculate Bollinger Bands.

    Parameters
    ----------
    prices : np.ndarray
        Price series (typically close prices)
    period : int
        Moving average window
    multiplier : float
        Number of standard deviations for bands

    Returns
    -------
    tuple
        (upper, middle, lower)
    """
    middle = sma(prices, period)
    std = rolling_std(prices, period)
    return middle + multiplier * std, middle, middle - multiplier * std


@njit
def bollinger_percent_b(prices: np.ndarray, period: int = 20, multiplier: float = 2.0) -> np.ndarray:
    """
    Position of price within the Bollinger Bands.

    Returns
    -------
    np.ndarray
        (price - lower) / (upper - lower); 0.5 when the bands have zero width
    """
    n = len(prices)
    upper, middle, lower = bollinger(prices, period, multiplier)
    result = np.full(n, np.nan)
    for i in range(n):
        if np.isnan(upper[i]):
            continue
        width = upper[i] - lower[i]
        result[i] = 0.5 if width == 0 else (prices[i] - lower[i]) / width
    return result


@njit
def bollinger_band_width(prices: np.ndarray, period: int = 20, multiplier: float = 2.0) -> np.ndarray:
    """Band width relative to the middle band: (upper - lower) / middle."""
    n = len(prices)
    upper, middle, lower = bollinger(prices, period, multiplier)
    result = np.full(n, np.nan)
    for i in range(n):
        if np.isnan(middle[i]):
            continue
        result[i] = 0.0 if middle[i] == 0 else (upper[i] - lower[i]) / middle[i]
    return result


@njit
def keltner(
    highs: np.ndarray,
    lows: np.ndarray,
    closes: np.ndarray,
    period: int = 20,
    multiplier: float = 2.0
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Keltner Channels: EMA(close) +/- multiplier * ATR.

    Returns
    -------
    tuple
        (upper, middle, lower)
    """
    middle = ema(closes, period)
    band = atr(highs, lows, closes, period)
    return middle + multiplier * band, middle, middle - multiplier * band


@njit
def donchian(highs: np.ndarray, lows: np.ndarray, period: int = 20) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Donchian Channels over the trailing window including the current bar.

    Returns
    -------
    tuple
        (upper, middle, lower); first period-1 values are NaN
    """
    upper = highest(highs, period)
    lower = lowest(lows, period)
    return upper, (upper + lower) / 2.0, lower


@njit
def price_channel(highs: np.ndarray, lows: np.ndarray, period: int = 20) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Price Channel over the `period` bars preceding the current bar.

    Unlike Donchian, the current bar is excluded so a breakout can be
    detected by comparing it against the channel.

    Returns
    -------
    tuple
        (upper, middle, lower); first `period` values are NaN
    """
    n = len(highs)
    upper = np.full(n, np.nan)
    lower = np.full(n, np.nan)
    hh = highest(highs, period)
    ll = lowest(lows, period)
    for i in range(1, n):
        upper[i] = hh[i - 1]
        lower[i] = ll[i - 1]
    return upper, (upper + lower) / 2.0, lower


@njit
def chandelier_exit(
    highs: np.ndarray,
    lows: np.ndarray,
    closes: np.ndarray,
    period: int = 22,
    multiplier: float = 3.0
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Chandelier Exit trailing stops.

    Returns
    -------
    tuple
        (long_exit, short_exit) = (HH - m*ATR, LL + m*ATR)
    """
    band = atr(highs, lows, closes, period)
    long_exit = highest(highs, period) - multiplier * band
    short_exit = lowest(lows, period) + multiplier * band
    return long_exit, short_exit


@njit
def chande_kroll_stop(
    highs: np.ndarray,
    lows: np.ndarray,
    closes: np.ndarray,
    period: int = 10,
    multiplier: float = 3.0
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Chande Kroll Stop.

    Preliminary stops HH - m*ATR and LL + m*ATR are smoothed by a second
    highest/lowest pass over the same period.

    Returns
    -------
    tuple
        (long_stop, short_stop)
    """
    band = atr(highs, lows, closes, period)
    first_high_stop = highest(highs, period) - multiplier * band
    first_low_stop = lowest(lows, period) + multiplier * band
    return highest(first_high_stop, period), lowest(first_low_stop, period)


@njit
def standard_error(prices: np.ndarray, period: int) -> np.ndarray:
    """
    Standard error of the least-squares line fitted over each window.

    Returns
    -------
    np.ndarray
        sqrt(sum(residual^2) / (period - 2)); all NaN when period < 3
    """
    n = len(prices)
    result = np.full(n, np.nan)
    if period < 3 or n < period:
        return result

    x_mean = (period - 1) / 2.0
    sxx = 0.0
    for j in range(period):
        sxx += (j - x_mean) ** 2

    for i in range(period - 1, n):
        y_mean = 0.0
        for j in range(period):
            y_mean += prices[i - period + 1 + j]
        y_mean /= period

        sxy = 0.0
        for j in range(period):
            sxy += (j - x_mean) * (prices[i - period + 1 + j] - y_mean)
        slope = sxy / sxx
        intercept = y_mean - slope * x_mean

        sse = 0.0
        for j in range(period):
            resid = prices[i - period + 1 + j] - (intercept + slope * j)
            sse += resid * resid
        result[i] = np.sqrt(sse / (period - 2))

    return result


@njit
def volatility_index(highs: np.ndarray, lows: np.ndarray, closes: np.ndarray, period: int = 14) -> np.ndarray:
    """
    ATR expressed as a percentage of the close.

    Returns
    -------
    np.ndarray
        100 * ATR / close (first `period` values are NaN; 0 for a zero close)
    """
    n = len(closes)
    band = atr(highs, lows, closes, period)
    result = np.full(n, np.nan)
    for i in range(n):
        if np.isnan(band[i]):
            continue
        result[i] = 0.0 if closes[i] == 0 else band[i] / closes[i] * 100.0
    return result
