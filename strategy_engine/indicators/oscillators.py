"""
Momentum oscillators optimized with Numba.

Bounded oscillators guard zero-width ranges with a neutral constant
instead of dividing by zero:
- Stochastic %K and Stochastic RSI: 50
- Williams %R: -50 (mid-point of its -100..0 scale)
- CCI, CMO, TSI, ROC: 0
"""

import numpy as np
from numba import njit
from typing import Tuple

from .moving_averages import ema, sma, wma
from .rolling import highest, lowest


@njit
def rsi(prices: np.ndarray, period: int = 14) -> np.ndarray:
    """
    Relative Strength Index with Wilder smoothing.

    Parameters
    ----------
    prices : np.ndarray
        Price series
    period : int
        RSI period

    Returns
    -------
    np.ndarray
        RSI values 0-100 (first `period` values are NaN; an average loss of
        zero gives 100)
    """
    n = len(prices)
    result = np.full(n, np.nan)
    if period <= 0 or n < period + 1:
        return result

    avg_gain = 0.0
    avg_loss = 0.0
    for i in range(1, period + 1):
        change = prices[i] - prices[i - 1]
        if change > 0:
            avg_gain += change
        else:
            avg_loss -= change
    avg_gain /= period
    avg_loss /= period

    if avg_loss == 0:
        result[period] = 100.0
    else:
        result[period] = 100.0 - 100.0 / (1.0 + avg_gain / avg_loss)

    for i in range(period + 1, n):
        change = prices[i] - prices[i - 1]
        gain = change if change > 0 else 0.0
        loss = -change if change < 0 else 0.0
        avg_gain = (avg_gain * (period - 1) + gain) / period
        avg_loss = (avg_loss * (period - 1) + loss) / period

        if avg_loss == 0:
            result[i] = 100.0
        else:
            result[i] = 100.0 - 100.0 / (1.0 + avg_gain / avg_loss)

    return result


@njit
def stochastic(
    highs: np.ndarray,
    lows: np.ndarray,
    closes: np.ndarray,
    k_period: int = 14,
    d_period: int = 3
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Stochastic oscillator.

    Parameters
    ----------
    highs, lows, closes : np.ndarray
        OHLC price data
    k_period : int
        %K lookback
    d_period : int
        %D smoothing (SMA of %K)

    Returns
    -------
    tuple
        (k, d); %K is 50 where the window's high equals its low
    """
    n = len(closes)
    k = np.full(n, np.nan)
    if k_period <= 0 or n < k_period:
        return k, np.full(n, np.nan)

    hh = highest(highs, k_period)
    ll = lowest(lows, k_period)
    for i in range(k_period - 1, n):
        rng = hh[i] - ll[i]
        if rng == 0:
            k[i] = 50.0
        else:
            k[i] = (closes[i] - ll[i]) / rng * 100.0

    d = sma(k, d_period)
    return k, d


@njit
def stochastic_rsi(
    prices: np.ndarray,
    rsi_period: int = 14,
    stoch_period: int = 14,
    k_period: int = 3,
    d_period: int = 3
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Stochastic oscillator applied to RSI.

    Returns
    -------
    tuple
        (k, d) where k = SMA(stoch(RSI), k_period) and d = SMA(k, d_period);
        a flat RSI window maps to 50
    """
    n = len(prices)
    rsi_values = rsi(prices, rsi_period)
    stoch = np.full(n, np.nan)

    rsi_high = highest(rsi_values, stoch_period)
    rsi_low = lowest(rsi_values, stoch_period)
    for i in range(n):
        if np.isnan(rsi_high[i]):
            continue
        rng = rsi_high[i] - rsi_low[i]
        if rng == 0:
            stoch[i] = 50.0
        else:
            stoch[i] = (rsi_values[i] - rsi_low[i]) / rng * 100.0

    k = sma(stoch, k_period)
    d = sma(k, d_period)
    return k, d


@njit
def williams_r(highs: np.ndarray, lows: np.ndarray, closes: np.ndarray, period: int = 14) -> np.ndarray:
    """
    Williams %R.

    Returns
    -------
    np.ndarray
        Values in [-100, 0] (first period-1 values are NaN; -50 for a flat
        window)
    """
    n = len(closes)
    result = np.full(n, np.nan)
    if period <= 0 or n < period:
        return result

    hh = highest(highs, period)
    ll = lowest(lows, period)
    for i in range(period - 1, n):
        rng = hh[i] - ll[i]
        if rng == 0:
            result[i] = -50.0
        else:
            result[i] = (hh[i] - closes[i]) / rng * -100.0

    return result


@njit
def cci(highs: np.ndarray, lows: np.ndarray, closes: np.ndarray, period: int = 20) -> np.ndarray:
    """
    Commodity Channel Index.

    Uses the typical price (H+L+C)/3 and the mean absolute deviation around
    its SMA, scaled by Lambert's constant 0.015.

    Returns
    -------
    np.ndarray
        CCI values (first period-1 values are NaN; 0 when the mean deviation
        is zero)
    """
    n = len(closes)
    result = np.full(n, np.nan)
    if period <= 0 or n < period:
        return result

    tp = (highs + lows + closes) / 3.0
    for i in range(period - 1, n):
        total = 0.0
        for j in range(i - period + 1, i + 1):
            total += tp[j]
        mean = total / period

        dev = 0.0
        for j in range(i - period + 1, i + 1):
            dev += abs(tp[j] - mean)
        dev /= period

        if dev == 0:
            result[i] = 0.0
        else:
            result[i] = (tp[i] - mean) / (0.015 * dev)

    return result


@njit
def advanced_cci(
    highs: np.ndarray,
    lows: np.ndarray,
    closes: np.ndarray,
    period: int = 20,
    smooth_period: int = 5
) -> np.ndarray:
    """CCI smoothed by an SMA; keeps the input length and the combined warm-up."""
    return sma(cci(highs, lows, closes, period), smooth_period)


@njit
def ultimate_oscillator(
    highs: np.ndarray,
    lows: np.ndarray,
    closes: np.ndarray,
    period1: int = 7,
    period2: int = 14,
    period3: int = 28
) -> np.ndarray:
    """
    Ultimate Oscillator.

    Buying pressure BP = close - min(low, prev_close) and true range
    TR = max(high, prev_close) - min(low, prev_close) are averaged over
    three windows and combined as 100 * (4*A1 + 2*A2 + A3) / 7. The first
    bar has no previous close and uses its own low/high.

    Returns
    -------
    np.ndarray
        Values 0-100 (first max(period)-1 values are NaN)
    """
    n = len(closes)
    longest = max(period1, period2, period3)
    result = np.full(n, np.nan)
    if min(period1, period2, period3) <= 0 or n < longest:
        return result

    bp = np.empty(n)
    tr = np.empty(n)
    bp[0] = closes[0] - lows[0]
    tr[0] = highs[0] - lows[0]
    for i in range(1, n):
        low_ref = min(lows[i], closes[i - 1])
        high_ref = max(highs[i], closes[i - 1])
        bp[i] = closes[i] - low_ref
        tr[i] = high_ref - low_ref

    for i in range(longest - 1, n):
        averages = np.zeros(3)
        periods = (period1, period2, period3)
        for p_idx in range(3):
            p = periods[p_idx]
            bp_sum = 0.0
            tr_sum = 0.0
            for j in range(i - p + 1, i + 1):
                bp_sum += bp[j]
                tr_sum += tr[j]
            if tr_sum != 0:
                averages[p_idx] = bp_sum / tr_sum
        result[i] = 100.0 * (4.0 * averages[0] + 2.0 * averages[1] + averages[2]) / 7.0

    return result


@njit
def awesome_oscillator(highs: np.ndarray, lows: np.ndarray) -> np.ndarray:
    """
    Awesome Oscillator: SMA(5) - SMA(34) of the median price.

    Returns
    -------
    np.ndarray
        AO values (first 33 values are NaN; fewer than 34 bars is all NaN)
    """
    median = (highs + lows) / 2.0
    return sma(median, 5) - sma(median, 34)


@njit
def accelerator_oscillator(highs: np.ndarray, lows: np.ndarray, closes: np.ndarray) -> np.ndarray:
    """Accelerator Oscillator: AO - SMA(AO, 5)."""
    ao = awesome_oscillator(highs, lows)
    return ao - sma(ao, 5)


@njit
def cmo(prices: np.ndarray, period: int = 14) -> np.ndarray:
    """
    Chande Momentum Oscillator.

    Returns
    -------
    np.ndarray
        Values in [-100, 100] (first `period` values are NaN; 0 when there
        is no movement)
    """
    n = len(prices)
    result = np.full(n, np.nan)
    if period <= 0 or n < period + 1:
        return result

    for i in range(period, n):
        up = 0.0
        down = 0.0
        for j in range(i - period + 1, i + 1):
            change = prices[j] - prices[j - 1]
            if change > 0:
                up += change
            else:
                down -= change
        total = up + down
        result[i] = 0.0 if total == 0 else (up - down) / total * 100.0

    return result


@njit
def roc(prices: np.ndarray, period: int) -> np.ndarray:
    """
    Rate of Change in percent: (p[i] - p[i-period]) / p[i-period] * 100.

    Returns
    -------
    np.ndarray
        ROC values (first `period` values are NaN; 0 for a zero base price)
    """
    n = len(prices)
    result = np.full(n, np.nan)
    if period <= 0 or n < period + 1:
        return result

    for i in range(period, n):
        base = prices[i - period]
        if base == 0:
            result[i] = 0.0
        else:
            result[i] = (prices[i] - base) / base * 100.0

    return result


@njit
def price_roc(prices: np.ndarray, period: int) -> np.ndarray:
    """Absolute price momentum p[i] - p[i-period] (first `period` values are NaN)."""
    n = len(prices)
    result = np.full(n, np.nan)
    if period <= 0 or n < period + 1:
        return result

    for i in range(period, n):
        result[i] = prices[i] - prices[i - period]

    return result


@njit
def tsi(prices: np.ndarray, long_period: int = 25, short_period: int = 13) -> np.ndarray:
    """
    True Strength Index.

    Momentum and absolute momentum are each smoothed twice by EMAs (long
    then short); TSI = 100 * smoothed / smoothed_abs.

    Returns
    -------
    np.ndarray
        TSI values in [-100, 100] (0 where the smoothed absolute momentum is
        zero)
    """
    n = len(prices)
    momentum = np.full(n, np.nan)
    abs_momentum = np.full(n, np.nan)
    for i in range(1, n):
        momentum[i] = prices[i] - prices[i - 1]
        abs_momentum[i] = abs(momentum[i])

    num = ema(ema(momentum, long_period), short_period)
    den = ema(ema(abs_momentum, long_period), short_period)

    result = np.full(n, np.nan)
    for i in range(n):
        if np.isnan(num[i]) or np.isnan(den[i]):
            continue
        result[i] = 0.0 if den[i] == 0 else 100.0 * num[i] / den[i]

    return result


@njit
def stc(
    prices: np.ndarray,
    fast_period: int = 23,
    slow_period: int = 50,
    cycle_period: int = 10,
    factor: float = 0.5
) -> np.ndarray:
    """
    Schaff Trend Cycle.

    A double stochastic of the MACD line, each pass smoothed with
    ``prev + factor * (value - prev)``.

    Parameters
    ----------
    prices : np.ndarray
        Price series
    fast_period, slow_period : int
        MACD EMA periods
    cycle_period : int
        Stochastic lookback
    factor : float
        Smoothing factor in (0, 1]

    Returns
    -------
    np.ndarray
        Values 0-100
    """
    macd_line = ema(prices, fast_period) - ema(prices, slow_period)
    first = _smoothed_stochastic(macd_line, cycle_period, factor)
    return _smoothed_stochastic(first, cycle_period, factor)


@njit
def _smoothed_stochastic(values: np.ndarray, period: int, factor: float) -> np.ndarray:
    n = len(values)
    result = np.full(n, np.nan)
    hi = highest(values, period)
    lo = lowest(values, period)

    prev = np.nan
    for i in range(n):
        if np.isnan(hi[i]):
            continue
        rng = hi[i] - lo[i]
        raw = 50.0 if rng == 0 else (values[i] - lo[i]) / rng * 100.0
        if np.isnan(prev):
            prev = raw
        else:
            prev = prev + factor * (raw - prev)
        result[i] = prev

    return result


@njit
def kst(
    prices: np.ndarray,
    roc1: int = 10,
    roc2: int = 15,
    roc3: int = 20,
    roc4: int = 30,
    sma1: int = 10,
    sma2: int = 10,
    sma3: int = 10,
    sma4: int = 15
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Know Sure Thing.

    KST = 1*SMA(ROC1) + 2*SMA(ROC2) + 3*SMA(ROC3) + 4*SMA(ROC4); the signal
    line is SMA(KST, 9).

    Returns
    -------
    tuple
        (kst, signal)
    """
    rcma1 = sma(roc(prices, roc1), sma1)
    rcma2 = sma(roc(prices, roc2), sma2)
    rcma3 = sma(roc(prices, roc3), sma3)
    rcma4 = sma(roc(prices, roc4), sma4)
    line = rcma1 + 2.0 * rcma2 + 3.0 * rcma3 + 4.0 * rcma4
    return line, sma(line, 9)


@njit
def rvi(
    opens: np.ndarray,
    highs: np.ndarray,
    lows: np.ndarray,
    closes: np.ndarray,
    period: int = 10
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Relative Vigor Index.

    Close-open and high-low ranges are each weighted 1-2-2-1 over four bars,
    summed across `period` bars and divided. The signal line applies the same
    1-2-2-1 weighting to the RVI itself.

    Returns
    -------
    tuple
        (rvi, signal)
    """
    n = len(closes)
    num = np.full(n, np.nan)
    den = np.full(n, np.nan)
    for i in range(3, n):
        num[i] = ((closes[i] - opens[i]) + 2.0 * (closes[i - 1] - opens[i - 1])
                  + 2.0 * (closes[i - 2] - opens[i - 2]) + (closes[i - 3] - opens[i - 3])) / 6.0
        den[i] = ((highs[i] - lows[i]) + 2.0 * (highs[i - 1] - lows[i - 1])
                  + 2.0 * (highs[i - 2] - lows[i - 2]) + (highs[i - 3] - lows[i - 3])) / 6.0

    line = np.full(n, np.nan)
    if period > 0:
        for i in range(period + 2, n):
            num_sum = 0.0
            den_sum = 0.0
            for j in range(i - period + 1, i + 1):
                num_sum += num[j]
                den_sum += den[j]
            line[i] = 0.0 if den_sum == 0 else num_sum / den_sum

    signal = np.full(n, np.nan)
    for i in range(3, n):
        signal[i] = (line[i] + 2.0 * line[i - 1] + 2.0 * line[i - 2] + line[i - 3]) / 6.0

    return line, signal


@njit
def ppo(
    prices: np.ndarray,
    fast_period: int = 12,
    slow_period: int = 26,
    signal_period: int = 9
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Percentage Price Oscillator.

    Returns
    -------
    tuple
        (ppo, signal, histogram) where ppo = 100 * (EMAfast - EMAslow) / EMAslow
    """
    n = len(prices)
    fast = ema(prices, fast_period)
    slow = ema(prices, slow_period)

    line = np.full(n, np.nan)
    for i in range(n):
        if np.isnan(fast[i]) or np.isnan(slow[i]):
            continue
        line[i] = 0.0 if slow[i] == 0 else (fast[i] - slow[i]) / slow[i] * 100.0

    signal = ema(line, signal_period)
    return line, signal, line - signal


@njit
def coppock_curve(
    prices: np.ndarray,
    roc1_period: int = 14,
    roc2_period: int = 11,
    wma_period: int = 10
) -> np.ndarray:
    """Coppock Curve: WMA(ROC(roc1) + ROC(roc2), wma_period)."""
    return wma(roc(prices, roc1_period) + roc(prices, roc2_period), wma_period)
