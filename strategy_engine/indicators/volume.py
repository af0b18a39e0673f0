"""
Volume-based indicators optimized with Numba.

The money-flow family shares one building block, the money flow
multiplier ((C - L) - (H - C)) / (H - L), which is 0 on bars whose high
equals their low.
"""

import numpy as np
from numba import njit
from typing import Tuple

from .moving_averages import ema, sma
from .rolling import rolling_sum


@njit
def money_flow_multiplier(highs: np.ndarray, lows: np.ndarray, closes: np.ndarray) -> np.ndarray:
    """Close location value per bar; 0 where high equals low."""
    n = len(closes)
    result = np.zeros(n)
    for i in range(n):
        rng = highs[i] - lows[i]
        if rng != 0:
            result[i] = ((closes[i] - lows[i]) - (highs[i] - closes[i])) / rng
    return result


@njit
def money_flow_volume(highs: np.ndarray, lows: np.ndarray, closes: np.ndarray, volumes: np.ndarray) -> np.ndarray:
    """Money flow multiplier times volume, per bar (no warm-up)."""
    return money_flow_multiplier(highs, lows, closes) * volumes


@njit
def accumulation_distribution(highs: np.ndarray, lows: np.ndarray, closes: np.ndarray, volumes: np.ndarray) -> np.ndarray:
    """
    Accumulation/Distribution line.

    Running total of money flow volume, starting from 0.
    """
    n = len(closes)
    mfv = money_flow_volume(highs, lows, closes, volumes)
    result = np.empty(n)
    running = 0.0
    for i in range(n):
        running += mfv[i]
        result[i] = running
    return result


@njit
def chaikin_oscillator(
    highs: np.ndarray,
    lows: np.ndarray,
    closes: np.ndarray,
    volumes: np.ndarray,
    fast_period: int = 3,
    slow_period: int = 10
) -> np.ndarray:
    """Chaikin Oscillator: EMA(A/D, fast) - EMA(A/D, slow)."""
    ad_line = accumulation_distribution(highs, lows, closes, volumes)
    return ema(ad_line, fast_period) - ema(ad_line, slow_period)


@njit
def chaikin_money_flow(
    highs: np.ndarray,
    lows: np.ndarray,
    closes: np.ndarray,
    volumes: np.ndarray,
    period: int = 20
) -> np.ndarray:
    """
    Chaikin Money Flow.

    Returns
    -------
    np.ndarray
        sum(MFV) / sum(volume) over `period` bars (first period-1 values are
        NaN; 0 when the window has no volume)
    """
    n = len(closes)
    mfv_sum = rolling_sum(money_flow_volume(highs, lows, closes, volumes), period)
    vol_sum = rolling_sum(volumes, period)
    result = np.full(n, np.nan)
    for i in range(n):
        if np.isnan(vol_sum[i]):
            continue
        result[i] = 0.0 if vol_sum[i] == 0 else mfv_sum[i] / vol_sum[i]
    return result


@njit
def obv(closes: np.ndarray, volumes: np.ndarray) -> np.ndarray:
    """
    On-Balance Volume.

    Starts at the first bar's volume; each later bar adds its volume on an
    up close, subtracts it on a down close and carries the total otherwise.
    """
    n = len(closes)
    result = np.empty(n)
    if n == 0:
        return result

    running = volumes[0]
    result[0] = running
    for i in range(1, n):
        if closes[i] > closes[i - 1]:
            running += volumes[i]
        elif closes[i] < closes[i - 1]:
            running -= volumes[i]
        result[i] = running
    return result


@njit
def vwap(highs: np.ndarray, lows: np.ndarray, closes: np.ndarray, volumes: np.ndarray) -> np.ndarray:
    """
    Cumulative Volume Weighted Average Price of the typical price.

    Returns
    -------
    np.ndarray
        VWAP values; the typical price itself while cumulative volume is zero
    """
    n = len(closes)
    result = np.empty(n)
    cum_pv = 0.0
    cum_vol = 0.0
    for i in range(n):
        typical = (highs[i] + lows[i] + closes[i]) / 3.0
        cum_pv += typical * volumes[i]
        cum_vol += volumes[i]
        result[i] = cum_pv / cum_vol if cum_vol > 0 else typical
    return result


@njit
def mfi(
    highs: np.ndarray,
    lows: np.ndarray,
    closes: np.ndarray,
    volumes: np.ndarray,
    period: int = 14
) -> np.ndarray:
    """
    Money Flow Index.

    Parameters
    ----------
    highs, lows, closes, volumes : np.ndarray
        OHLCV data
    period : int
        Lookback window

    Returns
    -------
    np.ndarray
        Values 0-100 (first `period` values are NaN; 100 when there is no
        negative flow, 50 when there is no flow at all)
    """
    n = len(closes)
    result = np.full(n, np.nan)
    if period <= 0 or n < period + 1:
        return result

    typical = (highs + lows + closes) / 3.0
    for i in range(period, n):
        positive = 0.0
        negative = 0.0
        for j in range(i - period + 1, i + 1):
            flow = typical[j] * volumes[j]
            if typical[j] > typical[j - 1]:
                positive += flow
            elif typical[j] < typical[j - 1]:
                negative += flow
        if negative == 0:
            result[i] = 50.0 if positive == 0 else 100.0
        else:
            result[i] = 100.0 - 100.0 / (1.0 + positive / negative)

    return result


@njit
def _raw_force(closes: np.ndarray, volumes: np.ndarray) -> np.ndarray:
    n = len(closes)
    raw = np.full(n, np.nan)
    for i in range(1, n):
        raw[i] = (closes[i] - closes[i - 1]) * volumes[i]
    return raw


@njit
def force_index(closes: np.ndarray, volumes: np.ndarray, period: int = 13) -> np.ndarray:
    """Force Index: EMA of (close change * volume); first `period` values are NaN."""
    return ema(_raw_force(closes, volumes), period)


@njit
def elder_force_index(
    closes: np.ndarray,
    volumes: np.ndarray,
    short_period: int = 2,
    long_period: int = 13
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Elder's dual-period Force Index.

    Returns
    -------
    tuple
        (short, long) EMAs of the raw force
    """
    raw = _raw_force(closes, volumes)
    return ema(raw, short_period), ema(raw, long_period)


@njit
def emv(highs: np.ndarray, lows: np.ndarray, volumes: np.ndarray, period: int = 14) -> np.ndarray:
    """
    Ease of Movement, smoothed by an SMA.

    One-bar EMV = midpoint move / box ratio with box ratio
    (volume / 1e8) / (high - low). Bars with zero range or zero volume
    contribute 0.
    """
    n = len(highs)
    raw = np.full(n, np.nan)
    for i in range(1, n):
        move = (highs[i] + lows[i]) / 2.0 - (highs[i - 1] + lows[i - 1]) / 2.0
        rng = highs[i] - lows[i]
        if rng == 0 or volumes[i] == 0:
            raw[i] = 0.0
        else:
            raw[i] = move / ((volumes[i] / 100000000.0) / rng)
    return sma(raw, period)


@njit
def klinger_oscillator(
    highs: np.ndarray,
    lows: np.ndarray,
    closes: np.ndarray,
    volumes: np.ndarray,
    fast_period: int = 34,
    slow_period: int = 55,
    signal_period: int = 13
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Klinger Volume Oscillator.

    State carried bar to bar: trend direction of H+L+C (held when
    unchanged) and the cumulative measurement CM, which restarts from the
    previous bar's range whenever the trend flips.

    Returns
    -------
    tuple
        (oscillator, signal) where oscillator = EMA(VF, fast) - EMA(VF, slow)
        and signal = EMA(oscillator, signal_period)
    """
    n = len(closes)
    force = np.full(n, np.nan)
    if n < 2:
        return force.copy(), force

    trend = 1
    prev_dm = highs[0] - lows[0]
    cm = prev_dm
    for i in range(1, n):
        current = highs[i] + lows[i] + closes[i]
        previous = highs[i - 1] + lows[i - 1] + closes[i - 1]
        new_trend = trend
        if current > previous:
            new_trend = 1
        elif current < previous:
            new_trend = -1

        dm = highs[i] - lows[i]
        if new_trend == trend:
            cm = cm + dm
        else:
            cm = prev_dm + dm
        trend = new_trend
        prev_dm = dm

        if cm == 0:
            force[i] = 0.0
        else:
            force[i] = volumes[i] * abs(2.0 * (dm / cm - 1.0)) * trend * 100.0

    oscillator = ema(force, fast_period) - ema(force, slow_period)
    return oscillator, ema(oscillator, signal_period)


@njit
def volume_oscillator(volumes: np.ndarray, fast_period: int = 5, slow_period: int = 10) -> np.ndarray:
    """
    Volume Oscillator in percent: 100 * (EMAfast - EMAslow) / EMAslow.

    Returns
    -------
    np.ndarray
        Oscillator values (0 where the slow EMA is zero)
    """
    n = len(volumes)
    fast = ema(volumes, fast_period)
    slow = ema(volumes, slow_period)
    result = np.full(n, np.nan)
    for i in range(n):
        if np.isnan(fast[i]) or np.isnan(slow[i]):
            continue
        result[i] = 0.0 if slow[i] == 0 else (fast[i] - slow[i]) / slow[i] * 100.0
    return result


@njit
def volume_profile(
    highs: np.ndarray,
    lows: np.ndarray,
    closes: np.ndarray,
    volumes: np.ndarray,
    period: int = 100,
    levels: int = 20
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Volume traded at each price level over the last `period` bars.

    The low-high range of the window is split into `levels` equal bins and
    each bar's volume is assigned to the bin holding its typical price.

    Returns
    -------
    tuple
        (prices, volumes): bin mid-prices and the volume in each bin. A
        window with zero price range collapses to a single level; an empty
        input returns empty arrays.
    """
    n = len(closes)
    if n == 0 or period <= 0 or levels <= 0:
        return np.empty(0), np.empty(0)

    start = max(0, n - period)
    lo = lows[start]
    hi = highs[start]
    for i in range(start, n):
        if lows[i] < lo:
            lo = lows[i]
        if highs[i] > hi:
            hi = highs[i]

    if hi == lo:
        total = 0.0
        for i in range(start, n):
            total += volumes[i]
        prices = np.empty(1)
        prices[0] = lo
        bucket = np.empty(1)
        bucket[0] = total
        return prices, bucket

    width = (hi - lo) / levels
    prices = np.empty(levels)
    bucket = np.zeros(levels)
    for b in range(levels):
        prices[b] = lo + width * (b + 0.5)

    for i in range(start, n):
        typical = (highs[i] + lows[i] + closes[i]) / 3.0
        idx = int((typical - lo) / width)
        if idx >= levels:
            idx = levels - 1
        if idx < 0:
            idx = 0
        bucket[idx] += volumes[i]

    return prices, bucket


@njit
def williams_ad(highs: np.ndarray, lows: np.ndarray, closes: np.ndarray) -> np.ndarray:
    """
    Williams Accumulation/Distribution.

    Running total starting at 0: on an up close add close - min(low,
    prev_close); on a down close add close - max(high, prev_close).
    """
    n = len(closes)
    result = np.zeros(n)
    running = 0.0
    for i in range(1, n):
        if closes[i] > closes[i - 1]:
            running += closes[i] - min(lows[i], closes[i - 1])
        elif closes[i] < closes[i - 1]:
            running += closes[i] - max(highs[i], closes[i - 1])
        result[i] = running
    return result
