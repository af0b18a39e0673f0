"""
Trend-following indicators optimized with Numba.

Parabolic SAR, Supertrend and ADX are computed as explicit state machines:
each bar's output depends on state carried from the previous bar (trend
flag, extreme point, acceleration factor, carried bands, Wilder sums), so
they are iterated once, front to back.
"""

import numpy as np
from numba import njit
from typing import Tuple

from .moving_averages import ema, smma
from .rolling import highest, lowest, shift_forward
from .volatility import atr, true_range


@njit
def macd(
    prices: np.ndarray,
    fast_period: int = 12,
    slow_period: int = 26,
    signal_period: int = 9
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Moving Average Convergence Divergence.

    Parameters
    ----------
    prices : np.ndarray
        Price series
    fast_period, slow_period : int
        EMA periods of the MACD line
    signal_period : int
        EMA period of the signal line

    Returns
    -------
    tuple
        (macd, signal, histogram). The MACD line is NaN until both EMAs are
        defined; the signal EMA is seeded from the first defined MACD values
        and the histogram is NaN wherever either input is NaN.
    """
    line = ema(prices, fast_period) - ema(prices, slow_period)
    signal = ema(line, signal_period)
    return line, signal, line - signal


@njit
def adx(
    highs: np.ndarray,
    lows: np.ndarray,
    closes: np.ndarray,
    period: int = 14
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Average Directional Index with +DI and -DI (Wilder).

    State carried bar to bar: Wilder-smoothed sums of TR, +DM and -DM, then
    the Wilder average of DX.

    Returns
    -------
    tuple
        (adx, plus_di, minus_di). +DI/-DI start at index `period`, ADX at
        index 2*period - 1.
    """
    n = len(closes)
    adx_values = np.full(n, np.nan)
    plus_di = np.full(n, np.nan)
    minus_di = np.full(n, np.nan)
    if period <= 0 or n < period + 1:
        return adx_values, plus_di, minus_di

    tr = true_range(highs, lows, closes)
    plus_dm = np.zeros(n)
    minus_dm = np.zeros(n)
    for i in range(1, n):
        up_move = highs[i] - highs[i - 1]
        down_move = lows[i - 1] - lows[i]
        if up_move > down_move and up_move > 0:
            plus_dm[i] = up_move
        if down_move > up_move and down_move > 0:
            minus_dm[i] = down_move

    tr_sum = 0.0
    plus_sum = 0.0
    minus_sum = 0.0
    for i in range(1, period + 1):
        tr_sum += tr[i]
        plus_sum += plus_dm[i]
        minus_sum += minus_dm[i]

    dx = np.full(n, np.nan)
    for i in range(period, n):
        if i > period:
            tr_sum = tr_sum - tr_sum / period + tr[i]
            plus_sum = plus_sum - plus_sum / period + plus_dm[i]
            minus_sum = minus_sum - minus_sum / period + minus_dm[i]

        if tr_sum == 0:
            plus_di[i] = 0.0
            minus_di[i] = 0.0
        else:
            plus_di[i] = 100.0 * plus_sum / tr_sum
            minus_di[i] = 100.0 * minus_sum / tr_sum

        di_total = plus_di[i] + minus_di[i]
        dx[i] = 0.0 if di_total == 0 else 100.0 * abs(plus_di[i] - minus_di[i]) / di_total

    first_adx = 2 * period - 1
    if n > first_adx:
        total = 0.0
        for i in range(period, first_adx + 1):
            total += dx[i]
        prev = total / period
        adx_values[first_adx] = prev
        for i in range(first_adx + 1, n):
            prev = (prev * (period - 1) + dx[i]) / period
            adx_values[i] = prev

    return adx_values, plus_di, minus_di


@njit
def aroon(highs: np.ndarray, lows: np.ndarray, period: int = 25) -> Tuple[np.ndarray, np.ndarray]:
    """
    Aroon Up / Aroon Down.

    Measures how many bars have passed since the highest high / lowest low
    within the last period+1 bars.

    Returns
    -------
    tuple
        (aroon_up, aroon_down) in 0-100 (first `period` values are NaN)
    """
    n = len(highs)
    up = np.full(n, np.nan)
    down = np.full(n, np.nan)
    if period <= 0 or n < period + 1:
        return up, down

    for i in range(period, n):
        high_idx = i - period
        low_idx = i - period
        for j in range(i - period, i + 1):
            if highs[j] >= highs[high_idx]:
                high_idx = j
            if lows[j] <= lows[low_idx]:
                low_idx = j
        up[i] = 100.0 * (period - (i - high_idx)) / period
        down[i] = 100.0 * (period - (i - low_idx)) / period

    return up, down


@njit
def parabolic_sar(highs: np.ndarray, lows: np.ndarray, step: float = 0.02, max_step: float = 0.2) -> np.ndarray:
    """
    Parabolic Stop and Reverse.

    State: trend direction, extreme point (EP), acceleration factor (AF).
    On each bar SAR moves toward EP by AF, is clamped so it never enters the
    prior two bars' range, and flips to the EP when price penetrates it.

    Parameters
    ----------
    highs, lows : np.ndarray
        High and low prices
    step : float
        AF increment (default: 0.02)
    max_step : float
        AF ceiling (default: 0.2)

    Returns
    -------
    np.ndarray
        SAR values (index 0 is NaN)
    """
    n = len(highs)
    result = np.full(n, np.nan)
    if n < 2:
        return result

    rising = highs[1] >= highs[0]
    if rising:
        sar = lows[0]
        ep = highs[0]
    else:
        sar = highs[0]
        ep = lows[0]
    af = step

    for i in range(1, n):
        sar = sar + af * (ep - sar)

        if rising:
            sar = min(sar, lows[i - 1])
            if i >= 2:
                sar = min(sar, lows[i - 2])
            if lows[i] < sar:
                rising = False
                sar = ep
                ep = lows[i]
                af = step
            elif highs[i] > ep:
                ep = highs[i]
                af = min(af + step, max_step)
        else:
            sar = max(sar, highs[i - 1])
            if i >= 2:
                sar = max(sar, highs[i - 2])
            if highs[i] > sar:
                rising = True
                sar = ep
                ep = highs[i]
                af = step
            elif lows[i] < ep:
                ep = lows[i]
                af = min(af + step, max_step)

        result[i] = sar

    return result


@njit
def supertrend(
    highs: np.ndarray,
    lows: np.ndarray,
    closes: np.ndarray,
    period: int = 10,
    multiplier: float = 3.0
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Supertrend.

    Basic bands are hl2 +/- multiplier * ATR. The final upper band only moves
    down (and the final lower band only up) unless the previous close broke
    through it. The line follows the lower band in an uptrend and the upper
    band in a downtrend; a close through the active band flips the trend.

    Returns
    -------
    tuple
        (supertrend, trend_up). The line is NaN until ATR is defined;
        trend_up is False on those bars.
    """
    n = len(closes)
    line = np.full(n, np.nan)
    trend_up = np.zeros(n, dtype=np.bool_)
    band = atr(highs, lows, closes, period)

    start = -1
    for i in range(n):
        if not np.isnan(band[i]):
            start = i
            break
    if start < 0:
        return line, trend_up

    hl2 = (highs[start] + lows[start]) / 2.0
    final_upper = hl2 + multiplier * band[start]
    final_lower = hl2 - multiplier * band[start]
    rising = True
    line[start] = final_lower
    trend_up[start] = True

    for i in range(start + 1, n):
        hl2 = (highs[i] + lows[i]) / 2.0
        basic_upper = hl2 + multiplier * band[i]
        basic_lower = hl2 - multiplier * band[i]

        if basic_upper < final_upper or closes[i - 1] > final_upper:
            final_upper = basic_upper
        if basic_lower > final_lower or closes[i - 1] < final_lower:
            final_lower = basic_lower

        if rising and closes[i] < final_lower:
            rising = False
        elif not rising and closes[i] > final_upper:
            rising = True

        line[i] = final_lower if rising else final_upper
        trend_up[i] = rising

    return line, trend_up


@njit
def vortex(highs: np.ndarray, lows: np.ndarray, closes: np.ndarray, period: int = 14) -> Tuple[np.ndarray, np.ndarray]:
    """
    Vortex Indicator.

    Returns
    -------
    tuple
        (vi_plus, vi_minus) = (sum|H - prevL|, sum|L - prevH|) / sum(TR) over
        `period` bars (first `period` values are NaN)
    """
    n = len(closes)
    vi_plus = np.full(n, np.nan)
    vi_minus = np.full(n, np.nan)
    if period <= 0 or n < period + 1:
        return vi_plus, vi_minus

    tr = true_range(highs, lows, closes)
    for i in range(period, n):
        vm_plus = 0.0
        vm_minus = 0.0
        tr_sum = 0.0
        for j in range(i - period + 1, i + 1):
            vm_plus += abs(highs[j] - lows[j - 1])
            vm_minus += abs(lows[j] - highs[j - 1])
            tr_sum += tr[j]
        if tr_sum == 0:
            vi_plus[i] = 0.0
            vi_minus[i] = 0.0
        else:
            vi_plus[i] = vm_plus / tr_sum
            vi_minus[i] = vm_minus / tr_sum

    return vi_plus, vi_minus


@njit
def ichimoku(
    highs: np.ndarray,
    lows: np.ndarray,
    closes: np.ndarray,
    conversion_period: int = 9,
    base_period: int = 26,
    span_b_period: int = 52,
    displacement: int = 26
) -> Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    """
    Ichimoku Cloud.

    Outputs keep the input length: the leading spans are plotted
    `displacement` bars ahead, so their projection beyond the last bar is
    dropped, and the lagging span is NaN for the final `displacement` bars.

    Returns
    -------
    tuple
        (tenkan_sen, kijun_sen, senkou_span_a, senkou_span_b, chikou_span)
    """
    n = len(closes)
    tenkan = (highest(highs, conversion_period) + lowest(lows, conversion_period)) / 2.0
    kijun = (highest(highs, base_period) + lowest(lows, base_period)) / 2.0
    span_b_raw = (highest(highs, span_b_period) + lowest(lows, span_b_period)) / 2.0

    span_a = shift_forward((tenkan + kijun) / 2.0, displacement)
    span_b = shift_forward(span_b_raw, displacement)

    chikou = np.full(n, np.nan)
    for i in range(0, n - displacement):
        chikou[i] = closes[i + displacement]

    return tenkan, kijun, span_a, span_b, chikou


@njit
def williams_alligator(prices: np.ndarray) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Williams Alligator: SMMA(13) shifted 8, SMMA(8) shifted 5, SMMA(5) shifted 3.

    Returns
    -------
    tuple
        (jaw, teeth, lips)
    """
    jaw = shift_forward(smma(prices, 13), 8)
    teeth = shift_forward(smma(prices, 8), 5)
    lips = shift_forward(smma(prices, 5), 3)
    return jaw, teeth, lips
