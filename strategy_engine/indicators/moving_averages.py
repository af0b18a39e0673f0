"""
Moving averages optimized with Numba.

All recursive averages (EMA, SMMA, KAMA and the averages built on them) are
seeded from the unweighted mean of their first full window of defined
values, then recurse strictly forward. Leading NaNs in the input (the
warm-up of an upstream indicator) shift the seed later instead of being
treated as zeros.
"""

import math

import numpy as np
from numba import njit

from .rolling import first_valid_index, rolling_mean


@njit
def sma(prices: np.ndarray, period: int) -> np.ndarray:
    """
    Simple Moving Average.

    Parameters
    ----------
    prices : np.ndarray
        Price series
    period : int
        Averaging window

    Returns
    -------
    np.ndarray
        SMA values (first period-1 values are NaN)
    """
    return rolling_mean(prices, period)


@njit
def ema(prices: np.ndarray, period: int) -> np.ndarray:
    """
    Exponential Moving Average.

    Uses k = 2 / (period + 1). The first output is the simple average of the
    first `period` defined values; each later output is
    ``prev + k * (price - prev)``.

    Parameters
    ----------
    prices : np.ndarray
        Price series; leading NaNs are skipped
    period : int
        EMA period

    Returns
    -------
    np.ndarray
        EMA values (NaN before the seed index)
    """
    n = len(prices)
    result = np.full(n, np.nan)
    if period <= 0:
        return result

    start = first_valid_index(prices)
    if start < 0 or n - start < period:
        return result

    seed_idx = start + period - 1
    total = 0.0
    for j in range(start, seed_idx + 1):
        total += prices[j]
    prev = total / period
    result[seed_idx] = prev

    k = 2.0 / (period + 1)
    for i in range(seed_idx + 1, n):
        prev = prev + k * (prices[i] - prev)
        result[i] = prev

    return result


@njit
def smma(prices: np.ndarray, period: int) -> np.ndarray:
    """
    Smoothed (Wilder) Moving Average.

    Seeded with the SMA of the first window, then
    ``(prev * (period - 1) + price) / period``.

    Returns
    -------
    np.ndarray
        SMMA values (NaN before the seed index)
    """
    n = len(prices)
    result = np.full(n, np.nan)
    if period <= 0:
        return result

    start = first_valid_index(prices)
    if start < 0 or n - start < period:
        return result

    seed_idx = start + period - 1
    total = 0.0
    for j in range(start, seed_idx + 1):
        total += prices[j]
    prev = total / period
    result[seed_idx] = prev

    for i in range(seed_idx + 1, n):
        prev = (prev * (period - 1) + prices[i]) / period
        result[i] = prev

    return result


@njit
def wma(prices: np.ndarray, period: int) -> np.ndarray:
    """
    Linearly Weighted Moving Average (most recent bar weighted `period`).

    Returns
    -------
    np.ndarray
        WMA values (first period-1 values are NaN)
    """
    n = len(prices)
    result = np.full(n, np.nan)
    if period <= 0 or n < period:
        return result

    denom = period * (period + 1) / 2.0
    for i in range(period - 1, n):
        total = 0.0
        for w in range(1, period + 1):
            total += w * prices[i - period + w]
        result[i] = total / denom

    return result


@njit
def hull_ma(prices: np.ndarray, period: int) -> np.ndarray:
    """
    Hull Moving Average: WMA(2 * WMA(n/2) - WMA(n), sqrt(n)).

    Returns
    -------
    np.ndarray
        HMA values (warm-up of period-1 plus sqrt(period)-1)
    """
    n = len(prices)
    if period <= 0 or n < period:
        return np.full(n, np.nan)

    half = max(period // 2, 1)
    root = max(int(math.sqrt(period)), 1)

    wma_half = wma(prices, half)
    wma_full = wma(prices, period)
    raw = 2.0 * wma_half - wma_full

    return wma(raw, root)


@njit
def alma(prices: np.ndarray, period: int, offset: float = 0.85, sigma: float = 6.0) -> np.ndarray:
    """
    Arnaud Legoux Moving Average.

    Gaussian-weighted window centred at ``offset * (period - 1)`` with width
    ``period / sigma``.

    Parameters
    ----------
    prices : np.ndarray
        Price series
    period : int
        Window length
    offset : float
        Position of the Gaussian peak within the window (0 = oldest, 1 = newest)
    sigma : float
        Sharpness of the weight curve

    Returns
    -------
    np.ndarray
        ALMA values (first period-1 values are NaN)
    """
    n = len(prices)
    result = np.full(n, np.nan)
    if period <= 0 or n < period or sigma <= 0:
        return result

    m = offset * (period - 1)
    s = period / sigma
    weights = np.empty(period)
    norm = 0.0
    for j in range(period):
        weights[j] = math.exp(-((j - m) ** 2) / (2.0 * s * s))
        norm += weights[j]

    for i in range(period - 1, n):
        total = 0.0
        for j in range(period):
            total += weights[j] * prices[i - period + 1 + j]
        result[i] = total / norm

    return result


@njit
def tema(prices: np.ndarray, period: int) -> np.ndarray:
    """
    Triple Exponential Moving Average: 3*EMA1 - 3*EMA2 + EMA3.

    Returns
    -------
    np.ndarray
        TEMA values (warm-up of 3 * (period - 1))
    """
    ema1 = ema(prices, period)
    ema2 = ema(ema1, period)
    ema3 = ema(ema2, period)
    return 3.0 * ema1 - 3.0 * ema2 + ema3


@njit
def kama(prices: np.ndarray, period: int, fast_sc: int = 2, slow_sc: int = 30) -> np.ndarray:
    """
    Kaufman Adaptive Moving Average.

    The efficiency ratio (net change over summed absolute changes across
    `period` bars) scales the smoothing constant between the fast and slow
    EMA constants.

    Parameters
    ----------
    prices : np.ndarray
        Price series
    period : int
        Efficiency-ratio lookback
    fast_sc : int
        Fast EMA period (default: 2)
    slow_sc : int
        Slow EMA period (default: 30)

    Returns
    -------
    np.ndarray
        KAMA values (first period-1 values are NaN; seeded with the price
        at index period-1)
    """
    n = len(prices)
    result = np.full(n, np.nan)
    if period <= 0 or n < period:
        return result

    fast = 2.0 / (fast_sc + 1.0)
    slow = 2.0 / (slow_sc + 1.0)

    prev = prices[period - 1]
    result[period - 1] = prev

    for i in range(period, n):
        change = abs(prices[i] - prices[i - period])
        volatility = 0.0
        for j in range(i - period + 1, i + 1):
            volatility += abs(prices[j] - prices[j - 1])

        er = change / volatility if volatility != 0 else 0.0
        sc = (er * (fast - slow) + slow) ** 2
        prev = prev + sc * (prices[i] - prev)
        result[i] = prev

    return result
