"""
Rolling-window primitives shared by the indicator families.

Every helper here keeps the output the same length as the input and writes
NaN wherever a full window of defined values is not available. A NaN inside
a window makes that window's result NaN, so undefined values coming out of
an upstream stage never turn into numbers downstream.
"""

import numpy as np
from numba import njit


@njit
def first_valid_index(values: np.ndarray) -> int:
    """Index of the first non-NaN value, or -1 when every value is NaN."""
    for i in range(len(values)):
        if not np.isnan(values[i]):
            return i
    return -1


@njit
def rolling_sum(values: np.ndarray, period: int) -> np.ndarray:
    """
    Sum over a trailing window.

    Parameters
    ----------
    values : np.ndarray
        Input series
    period : int
        Window length

    Returns
    -------
    np.ndarray
        Window sums (first period-1 values are NaN)
    """
    n = len(values)
    result = np.full(n, np.nan)
    if period <= 0 or n < period:
        return result

    for i in range(period - 1, n):
        total = 0.0
        for j in range(i - period + 1, i + 1):
            total += values[j]
        result[i] = total

    return result


@njit
def rolling_mean(values: np.ndarray, period: int) -> np.ndarray:
    """Simple mean over a trailing window; NaN inside the window propagates."""
    n = len(values)
    result = np.full(n, np.nan)
    if period <= 0 or n < period:
        return result

    for i in range(period - 1, n):
        total = 0.0
        for j in range(i - period + 1, i + 1):
            total += values[j]
        result[i] = total / period

    return result


@njit
def rolling_std(values: np.ndarray, period: int) -> np.ndarray:
    """
    Population standard deviation over a trailing window.

    Parameters
    ----------
    values : np.ndarray
        Input series
    period : int
        Window length

    Returns
    -------
    np.ndarray
        Standard deviations (first period-1 values are NaN)
    """
    n = len(values)
    result = np.full(n, np.nan)
    if period <= 0 or n < period:
        return result

    for i in range(period - 1, n):
        total = 0.0
        for j in range(i - period + 1, i + 1):
            total += values[j]
        mean = total / period

        sq = 0.0
        for j in range(i - period + 1, i + 1):
            diff = values[j] - mean
            sq += diff * diff
        result[i] = np.sqrt(sq / period)

    return result


@njit
def highest(values: np.ndarray, period: int) -> np.ndarray:
    """
    Highest value over a trailing window.

    Parameters
    ----------
    values : np.ndarray
        Input series
    period : int
        Lookback window

    Returns
    -------
    np.ndarray
        Rolling maximum (first period-1 values are NaN)
    """
    n = len(values)
    result = np.full(n, np.nan)
    if period <= 0 or n < period:
        return result

    for i in range(period - 1, n):
        best = values[i - period + 1]
        has_nan = False
        for j in range(i - period + 1, i + 1):
            if np.isnan(values[j]):
                has_nan = True
                break
            if values[j] > best:
                best = values[j]
        if not has_nan:
            result[i] = best

    return result


@njit
def lowest(values: np.ndarray, period: int) -> np.ndarray:
    """Lowest value over a trailing window (first period-1 values are NaN)."""
    n = len(values)
    result = np.full(n, np.nan)
    if period <= 0 or n < period:
        return result

    for i in range(period - 1, n):
        best = values[i - period + 1]
        has_nan = False
        for j in range(i - period + 1, i + 1):
            if np.isnan(values[j]):
                has_nan = True
                break
            if values[j] < best:
                best = values[j]
        if not has_nan:
            result[i] = best

    return result


@njit
def shift_forward(values: np.ndarray, offset: int) -> np.ndarray:
    """Move every value `offset` positions later; the vacated head is NaN."""
    n = len(values)
    result = np.full(n, np.nan)
    for i in range(offset, n):
        result[i] = values[i - offset]
    return result


@njit
def crossover(series1: np.ndarray, series2: np.ndarray) -> np.ndarray:
    """
    Detect where series1 crosses above series2.

    Parameters
    ----------
    series1, series2 : np.ndarray
        Series of equal length

    Returns
    -------
    np.ndarray
        Boolean array; True where series1 was at or below series2 on the
        previous bar and is strictly above it on the current bar. Index 0 is
        always False. Mismatched lengths return an empty array.
    """
    n = len(series1)
    if n != len(series2):
        return np.zeros(0, dtype=np.bool_)

    result = np.zeros(n, dtype=np.bool_)
    for i in range(1, n):
        if series1[i - 1] <= series2[i - 1] and series1[i] > series2[i]:
            result[i] = True
    return result


@njit
def crossunder(series1: np.ndarray, series2: np.ndarray) -> np.ndarray:
    """Mirror of crossover: True where series1 crosses below series2."""
    n = len(series1)
    if n != len(series2):
        return np.zeros(0, dtype=np.bool_)

    result = np.zeros(n, dtype=np.bool_)
    for i in range(1, n):
        if series1[i - 1] >= series2[i - 1] and series1[i] < series2[i]:
            result[i] = True
    return result
