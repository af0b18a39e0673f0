"""
Tests for the indicator kernels.
Covers exact values on small series, zero-range guards and the shape of
multi-output indicators.
"""

import pytest
import numpy as np
import sys
from pathlib import Path

# Add project to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent.parent))

from strategy_engine.indicators import (
    sma,
    ema,
    smma,
    wma,
    rsi,
    roc,
    price_roc,
    stochastic,
    williams_r,
    cci,
    atr,
    true_range,
    bollinger,
    donchian,
    price_channel,
    macd,
    obv,
    vwap,
    bop,
    heikin_ashi,
    pivot_points,
    fibonacci,
    crossover,
    crossunder,
    highest,
    lowest,
    volume_profile,
    supertrend,
    ichimoku,
    linear_regression,
    linear_regression_slope,
)


def _arr(values):
    return np.array(values, dtype=np.float64)


class TestMovingAverages:
    """Exact values for the basic averages."""

    def test_sma_small_series(self):
        result = sma(_arr([100, 102, 101, 103, 105]), 3)

        assert len(result) == 5
        assert np.isnan(result[0]) and np.isnan(result[1])
        assert result[2] == pytest.approx(101.0)
        assert result[3] == pytest.approx(102.0)
        assert result[4] == pytest.approx(103.0)

    def test_ema_seeded_with_sma(self):
        prices = _arr([1, 2, 3, 4, 5, 6])
        result = ema(prices, 3)

        assert np.isnan(result[0]) and np.isnan(result[1])
        assert result[2] == pytest.approx(2.0)
        # k = 0.5
        assert result[3] == pytest.approx(3.0)
        assert result[4] == pytest.approx(4.0)
        assert result[5] == pytest.approx(5.0)

    def test_ema_skips_leading_nan(self):
        prices = _arr([np.nan, np.nan, 2, 4, 6, 8])
        result = ema(prices, 2)

        assert np.all(np.isnan(result[:3]))
        assert result[3] == pytest.approx(3.0)

    def test_smma_wilder_recursion(self):
        result = smma(_arr([2, 4, 6, 8]), 2)

        assert np.isnan(result[0])
        assert result[1] == pytest.approx(3.0)
        assert result[2] == pytest.approx((3.0 + 6.0) / 2.0)
        assert result[3] == pytest.approx((4.5 + 8.0) / 2.0)

    def test_wma_weights_recent_bars(self):
        result = wma(_arr([1, 2, 3]), 3)
        # (1*1 + 2*2 + 3*3) / 6
        assert result[2] == pytest.approx(14.0 / 6.0)

    def test_insufficient_data_is_all_nan(self):
        prices = _arr([1, 2])
        for fn in (sma, ema, smma, wma):
            result = fn(prices, 5)
            assert len(result) == 2
            assert np.all(np.isnan(result))


class TestOscillators:
    """RSI, ROC, Stochastic, Williams %R and CCI."""

    def test_rsi_all_gains_is_100(self):
        result = rsi(_arr([1, 2, 3, 4, 5, 6]), 3)

        assert np.all(np.isnan(result[:3]))
        assert np.all(result[3:] == 100.0)

    def test_rsi_bounded(self):
        prices = _arr([44, 44.3, 44.1, 44.5, 43.9, 44.8, 45.1, 44.7, 45.3, 45.0])
        result = rsi(prices, 5)
        defined = result[~np.isnan(result)]

        assert len(defined) == 5
        assert np.all((defined >= 0) & (defined <= 100))

    def test_roc_percent_change(self):
        result = roc(_arr([100, 110, 121]), 1)

        assert np.isnan(result[0])
        assert result[1] == pytest.approx(10.0)
        assert result[2] == pytest.approx(10.0)

    def test_price_roc_is_absolute_change(self):
        result = price_roc(_arr([100, 110, 121]), 2)

        assert np.all(np.isnan(result[:2]))
        assert result[2] == pytest.approx(21.0)

    def test_stochastic_flat_window_is_50(self):
        flat = _arr([10.0] * 6)
        k, d = stochastic(flat, flat, flat, 3, 2)

        assert np.all(np.isnan(k[:2]))
        assert np.all(k[2:] == 50.0)
        assert np.isnan(d[2])
        assert d[3] == pytest.approx(50.0)

    def test_williams_r_flat_window_is_minus_50(self):
        flat = _arr([5.0] * 4)
        result = williams_r(flat, flat, flat, 2)

        assert np.isnan(result[0])
        assert np.all(result[1:] == -50.0)

    def test_williams_r_range(self):
        highs = _arr([10, 12, 14])
        lows = _arr([8, 9, 10])
        closes = _arr([9, 12, 10])
        result = williams_r(highs, lows, closes, 3)

        # (14 - 10) / (14 - 8) * -100
        assert result[2] == pytest.approx(-400.0 / 6.0)

    def test_cci_flat_is_zero(self):
        flat = _arr([3.0] * 5)
        result = cci(flat, flat, flat, 3)

        assert np.all(np.isnan(result[:2]))
        assert np.all(result[2:] == 0.0)


class TestVolatility:
    """ATR, Bollinger and channels."""

    def test_true_range_uses_previous_close(self):
        tr = true_range(_arr([10, 12]), _arr([9, 11]), _arr([9.5, 11.5]))

        assert np.isnan(tr[0])
        assert tr[1] == pytest.approx(2.5)

    def test_atr_first_value_is_mean_true_range(self):
        highs = _arr([10, 11, 12, 13])
        lows = _arr([9, 10, 11, 12])
        closes = _arr([9.5, 10.5, 11.5, 12.5])
        result = atr(highs, lows, closes, 2)

        assert np.all(np.isnan(result[:2]))
        assert result[2] == pytest.approx(1.5)
        assert result[3] == pytest.approx(1.5)

    def test_bollinger_bands_on_flat_series(self):
        upper, middle, lower = bollinger(_arr([5.0] * 4), 2, 2.0)

        assert np.isnan(middle[0])
        assert np.allclose(upper[1:], 5.0)
        assert np.allclose(lower[1:], 5.0)

    def test_donchian_eleven_points(self):
        highs = _arr([10, 11, 12, 11, 13, 14, 12, 15, 16, 14, 13])
        lows = highs - 2.0
        upper, middle, lower = donchian(highs, lows, 5)

        for series in (upper, middle, lower):
            assert len(series) == 11
            assert np.all(np.isnan(series[:4]))
            assert not np.any(np.isnan(series[4:]))
        assert upper[4] == 13.0
        assert lower[4] == 8.0
        assert middle[4] == pytest.approx(10.5)

    def test_price_channel_excludes_current_bar(self):
        highs = _arr([1, 2, 3, 10])
        lows = _arr([0, 1, 2, 3])
        upper, _, lower = price_channel(highs, lows, 3)

        assert np.all(np.isnan(upper[:3]))
        assert upper[3] == 3.0
        assert lower[3] == 0.0


class TestTrendAndVolume:
    """MACD, Supertrend, Ichimoku, OBV, VWAP, BOP."""

    def test_macd_histogram_is_difference(self):
        prices = np.linspace(100, 140, 60)
        line, signal, hist = macd(prices, 12, 26, 9)

        defined = ~np.isnan(hist)
        assert defined.any()
        assert np.allclose(hist[defined], line[defined] - signal[defined])
        assert np.all(np.isnan(line[:25]))

    def test_supertrend_nan_until_atr_defined(self):
        n = 30
        closes = np.linspace(100, 130, n)
        line, trend_up = supertrend(closes + 1, closes - 1, closes, 5, 3.0)

        assert np.all(np.isnan(line[:5]))
        assert not np.any(np.isnan(line[5:]))
        assert trend_up.dtype == np.bool_
        assert trend_up[-1]

    def test_ichimoku_keeps_length(self):
        n = 80
        closes = np.linspace(50, 90, n)
        parts = ichimoku(closes + 1, closes - 1, closes, 9, 26, 52, 26)

        assert len(parts) == 5
        for series in parts:
            assert len(series) == n
        chikou = parts[4]
        assert np.all(np.isnan(chikou[-26:]))

    def test_obv_starts_at_first_volume(self):
        result = obv(_arr([10, 11, 10, 10]), _arr([100, 50, 30, 20]))
        assert list(result) == [100.0, 150.0, 120.0, 120.0]

    def test_vwap_constant_price(self):
        prices = _arr([7.0, 7.0, 7.0])
        result = vwap(prices, prices, prices, _arr([1, 2, 3]))
        assert np.allclose(result, 7.0)

    def test_bop_flat_bar_is_zero(self):
        result = bop(_arr([1, 2]), _arr([1, 4]), _arr([1, 0]), _arr([1, 3]))

        assert result[0] == 0.0
        assert result[1] == pytest.approx(0.25)

    def test_volume_profile_conserves_volume(self):
        highs = _arr([10, 11, 12, 13])
        lows = _arr([9, 10, 11, 12])
        closes = _arr([9.5, 10.5, 11.5, 12.5])
        volumes = _arr([5, 6, 7, 8])
        prices, buckets = volume_profile(highs, lows, closes, volumes, 100, 4)

        assert len(prices) == 4
        assert buckets.sum() == pytest.approx(26.0)


class TestComposite:
    """Heikin-Ashi, pivots, Fibonacci, regression."""

    def test_heikin_ashi_first_candle(self):
        o, h, l, c = heikin_ashi(_arr([10]), _arr([12]), _arr([9]), _arr([11]))

        assert c[0] == pytest.approx(10.5)
        assert o[0] == pytest.approx(10.5)
        assert h[0] == 12.0
        assert l[0] == 9.0

    def test_pivot_points_classic(self):
        parts = pivot_points(_arr([12]), _arr([8]), _arr([10]))
        pivot, r1, r2, r3, s1, s2, s3 = (p[0] for p in parts)

        assert pivot == pytest.approx(10.0)
        assert r1 == pytest.approx(12.0)
        assert s1 == pytest.approx(8.0)
        assert r2 == pytest.approx(14.0)
        assert s2 == pytest.approx(6.0)

    def test_fibonacci_levels(self):
        levels = fibonacci(200.0, 100.0)

        assert list(levels) == ["0.0", "23.6", "38.2", "50.0", "61.8", "78.6", "100.0"]
        assert levels["0.0"] == pytest.approx(200.0)
        assert levels["50.0"] == pytest.approx(150.0)
        assert levels["100.0"] == pytest.approx(100.0)

    def test_fibonacci_rejects_inverted_range(self):
        with pytest.raises(ValueError):
            fibonacci(100.0, 100.0)

    def test_linear_regression_on_line(self):
        prices = _arr([1, 2, 3, 4, 5])
        fitted = linear_regression(prices, 3)
        slope = linear_regression_slope(prices, 3)

        assert np.all(np.isnan(fitted[:2]))
        assert fitted[4] == pytest.approx(5.0)
        assert slope[4] == pytest.approx(1.0)


class TestCrossDetection:
    """crossover / crossunder and rolling extremes."""

    def test_crossover_and_crossunder(self):
        fast = _arr([1, 2, 4, 3, 1])
        slow = _arr([2, 2, 3, 3, 2])

        assert list(crossover(fast, slow)) == [False, False, True, False, False]
        assert list(crossunder(fast, slow)) == [False, False, False, False, True]

    def test_mismatched_lengths_return_empty(self):
        assert len(crossover(_arr([1, 2]), _arr([1, 2, 3]))) == 0

    def test_highest_lowest(self):
        values = _arr([3, 1, 4, 1, 5])

        assert list(highest(values, 2)[1:]) == [3.0, 4.0, 4.0, 5.0]
        assert list(lowest(values, 2)[1:]) == [1.0, 1.0, 1.0, 1.0]
