"""
Property-based tests for the indicator kernels.
Checks output length, warm-up boundaries, insufficient input and
determinism across random price series for every indicator builtin.
"""

import numpy as np
import pytest
import sys
from pathlib import Path
from hypothesis import given, settings, strategies as st

# Add project to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent.parent))

from strategy_engine import indicators as ind
from strategy_engine.runtime.builtins import BuiltinRegistry


price_lists = st.lists(
    st.floats(min_value=1.0, max_value=1000.0, allow_nan=False, allow_infinity=False),
    min_size=1,
    max_size=60,
)
long_price_lists = st.lists(
    st.floats(min_value=1.0, max_value=1000.0, allow_nan=False, allow_infinity=False),
    min_size=1,
    max_size=150,
)
periods = st.integers(min_value=1, max_value=20)


def _bars(values):
    """(open, high, low, close, volume) built around a close series."""
    close = np.array(values, dtype=np.float64)
    high = close + 1.0
    low = close - 1.0
    open_ = np.concatenate((close[:1], close[:-1]))
    volume = 1.0 + 1000.0 * np.abs(np.sin(close))
    return open_, high, low, close, volume


def _outputs(result):
    if isinstance(result, tuple):
        return list(result)
    return [result]


# =============================================================================
# Warm-up table
# =============================================================================
# name, kernel call (o, h, l, c, v, p), leading NaN count per output, min period
# Multi-parameter indicators derive their other parameters from p.

PERIOD_TABLE = [
    # Moving averages
    ("sma", lambda o, h, l, c, v, p: ind.sma(c, p), lambda p: (p - 1,), 1),
    ("ema", lambda o, h, l, c, v, p: ind.ema(c, p), lambda p: (p - 1,), 1),
    ("smma", lambda o, h, l, c, v, p: ind.smma(c, p), lambda p: (p - 1,), 1),
    ("wma", lambda o, h, l, c, v, p: ind.wma(c, p), lambda p: (p - 1,), 1),
    ("hull_ma", lambda o, h, l, c, v, p: ind.hull_ma(c, p),
     lambda p: (p + max(int(np.sqrt(p)), 1) - 2,), 1),
    ("alma", lambda o, h, l, c, v, p: ind.alma(c, p, 0.85, 6.0), lambda p: (p - 1,), 1),
    ("tema", lambda o, h, l, c, v, p: ind.tema(c, p), lambda p: (3 * (p - 1),), 1),
    ("kama", lambda o, h, l, c, v, p: ind.kama(c, p, 2, 30), lambda p: (p - 1,), 1),

    # Oscillators
    ("rsi", lambda o, h, l, c, v, p: ind.rsi(c, p), lambda p: (p,), 1),
    ("stochastic", lambda o, h, l, c, v, p: ind.stochastic(h, l, c, p, 3),
     lambda p: (p - 1, p + 1), 1),
    ("stochastic_rsi", lambda o, h, l, c, v, p: ind.stochastic_rsi(c, p, p, 3, 3),
     lambda p: (2 * p + 1, 2 * p + 3), 1),
    ("williams_r", lambda o, h, l, c, v, p: ind.williams_r(h, l, c, p), lambda p: (p - 1,), 1),
    ("cci", lambda o, h, l, c, v, p: ind.cci(h, l, c, p), lambda p: (p - 1,), 1),
    ("advanced_cci", lambda o, h, l, c, v, p: ind.advanced_cci(h, l, c, p, 3), lambda p: (p + 1,), 1),
    ("ultimate_oscillator", lambda o, h, l, c, v, p: ind.ultimate_oscillator(h, l, c, p, 2 * p, 3 * p),
     lambda p: (3 * p - 1,), 1),
    ("cmo", lambda o, h, l, c, v, p: ind.cmo(c, p), lambda p: (p,), 1),
    ("roc", lambda o, h, l, c, v, p: ind.roc(c, p), lambda p: (p,), 1),
    ("price_roc", lambda o, h, l, c, v, p: ind.price_roc(c, p), lambda p: (p,), 1),
    ("tsi", lambda o, h, l, c, v, p: ind.tsi(c, p + 2, p), lambda p: (2 * p + 1,), 1),
    ("stc", lambda o, h, l, c, v, p: ind.stc(c, p, 2 * p, 3, 0.5), lambda p: (2 * p + 3,), 1),
    ("kst", lambda o, h, l, c, v, p: ind.kst(c, p, p + 1, p + 2, p + 3, 2, 2, 2, 3),
     lambda p: (p + 5, p + 13), 1),
    ("rvi", lambda o, h, l, c, v, p: ind.rvi(o, h, l, c, p), lambda p: (p + 2, p + 5), 1),
    ("ppo", lambda o, h, l, c, v, p: ind.ppo(c, p, 2 * p, 3),
     lambda p: (2 * p - 1, 2 * p + 1, 2 * p + 1), 1),
    ("coppock_curve", lambda o, h, l, c, v, p: ind.coppock_curve(c, p, p + 1, 3), lambda p: (p + 3,), 1),

    # Bands and volatility
    ("atr", lambda o, h, l, c, v, p: ind.atr(h, l, c, p), lambda p: (p,), 1),
    ("stddev", lambda o, h, l, c, v, p: ind.stddev(c, p), lambda p: (p - 1,), 1),
    ("bollinger", lambda o, h, l, c, v, p: ind.bollinger(c, p, 2.0), lambda p: (p - 1,) * 3, 1),
    ("bollinger_percent_b", lambda o, h, l, c, v, p: ind.bollinger_percent_b(c, p, 2.0),
     lambda p: (p - 1,), 1),
    ("bollinger_band_width", lambda o, h, l, c, v, p: ind.bollinger_band_width(c, p, 2.0),
     lambda p: (p - 1,), 1),
    ("keltner", lambda o, h, l, c, v, p: ind.keltner(h, l, c, p, 2.0), lambda p: (p, p - 1, p), 1),
    ("donchian", lambda o, h, l, c, v, p: ind.donchian(h, l, p), lambda p: (p - 1,) * 3, 1),
    ("price_channel", lambda o, h, l, c, v, p: ind.price_channel(h, l, p), lambda p: (p,) * 3, 1),
    ("chandelier_exit", lambda o, h, l, c, v, p: ind.chandelier_exit(h, l, c, p, 3.0),
     lambda p: (p, p), 1),
    ("chande_kroll_stop", lambda o, h, l, c, v, p: ind.chande_kroll_stop(h, l, c, p, 3.0),
     lambda p: (2 * p - 1, 2 * p - 1), 1),
    ("standard_error", lambda o, h, l, c, v, p: ind.standard_error(c, p), lambda p: (p - 1,), 3),
    ("volatility_index", lambda o, h, l, c, v, p: ind.volatility_index(h, l, c, p), lambda p: (p,), 1),

    # Trend
    ("macd", lambda o, h, l, c, v, p: ind.macd(c, p, 2 * p, 3),
     lambda p: (2 * p - 1, 2 * p + 1, 2 * p + 1), 1),
    ("adx", lambda o, h, l, c, v, p: ind.adx(h, l, c, p), lambda p: (2 * p - 1, p, p), 1),
    ("aroon", lambda o, h, l, c, v, p: ind.aroon(h, l, p), lambda p: (p, p), 1),
    # trend direction flags are booleans; only the line carries NaN
    ("supertrend", lambda o, h, l, c, v, p: ind.supertrend(h, l, c, p, 3.0)[0], lambda p: (p,), 1),
    ("vortex", lambda o, h, l, c, v, p: ind.vortex(h, l, c, p), lambda p: (p, p), 1),
    # the lagging span is undefined at the end, not the start
    ("ichimoku", lambda o, h, l, c, v, p: ind.ichimoku(h, l, c, p, 2 * p, 3 * p, 2 * p)[:4],
     lambda p: (p - 1, 2 * p - 1, 4 * p - 1, 5 * p - 1), 1),

    # Volume
    ("mfi", lambda o, h, l, c, v, p: ind.mfi(h, l, c, v, p), lambda p: (p,), 1),
    ("chaikin_oscillator", lambda o, h, l, c, v, p: ind.chaikin_oscillator(h, l, c, v, p, 2 * p),
     lambda p: (2 * p - 1,), 1),
    ("chaikin_money_flow", lambda o, h, l, c, v, p: ind.chaikin_money_flow(h, l, c, v, p),
     lambda p: (p - 1,), 1),
    ("force_index", lambda o, h, l, c, v, p: ind.force_index(c, v, p), lambda p: (p,), 1),
    ("elder_force_index", lambda o, h, l, c, v, p: ind.elder_force_index(c, v, p, 2 * p),
     lambda p: (p, 2 * p), 1),
    ("emv", lambda o, h, l, c, v, p: ind.emv(h, l, v, p), lambda p: (p,), 1),
    ("klinger_oscillator", lambda o, h, l, c, v, p: ind.klinger_oscillator(h, l, c, v, p, 2 * p, 3),
     lambda p: (2 * p, 2 * p + 2), 1),
    ("volume_oscillator", lambda o, h, l, c, v, p: ind.volume_oscillator(v, p, 2 * p),
     lambda p: (2 * p - 1,), 1),

    # Composite
    ("elder_ray", lambda o, h, l, c, v, p: ind.elder_ray(h, l, c, p), lambda p: (p - 1, p - 1), 1),
    ("detrended", lambda o, h, l, c, v, p: ind.detrended(c, p), lambda p: (p + p // 2,), 1),
    ("mass_index", lambda o, h, l, c, v, p: ind.mass_index(h, l, p, 3), lambda p: (2 * p,), 1),
    ("linear_regression", lambda o, h, l, c, v, p: ind.linear_regression(c, p), lambda p: (p - 1,), 1),
    ("linear_regression_slope", lambda o, h, l, c, v, p: ind.linear_regression_slope(c, p),
     lambda p: (p - 1,), 1),
    ("correlation_coefficient", lambda o, h, l, c, v, p: ind.correlation_coefficient(c, p),
     lambda p: (p - 1,), 2),
    ("highest", lambda o, h, l, c, v, p: ind.highest(c, p), lambda p: (p - 1,), 1),
    ("lowest", lambda o, h, l, c, v, p: ind.lowest(c, p), lambda p: (p - 1,), 1),
]

# Indicators with fixed windows: name, kernel call (o, h, l, c, v), leading NaN per output
FIXED_TABLE = [
    ("awesome_oscillator", lambda o, h, l, c, v: ind.awesome_oscillator(h, l), (33,)),
    ("accelerator_oscillator", lambda o, h, l, c, v: ind.accelerator_oscillator(h, l, c), (37,)),
    ("williams_alligator", lambda o, h, l, c, v: ind.williams_alligator(c), (20, 12, 7)),
    ("parabolic_sar", lambda o, h, l, c, v: ind.parabolic_sar(h, l, 0.02, 0.2), (1,)),
    ("obv", lambda o, h, l, c, v: ind.obv(c, v), (0,)),
    ("vwap", lambda o, h, l, c, v: ind.vwap(h, l, c, v), (0,)),
    ("accumulation_distribution", lambda o, h, l, c, v: ind.accumulation_distribution(h, l, c, v), (0,)),
    ("money_flow_volume", lambda o, h, l, c, v: ind.money_flow_volume(h, l, c, v), (0,)),
    ("williams_ad", lambda o, h, l, c, v: ind.williams_ad(h, l, c), (0,)),
    ("bop", lambda o, h, l, c, v: ind.bop(o, h, l, c), (0,)),
    ("heikin_ashi", lambda o, h, l, c, v: ind.heikin_ashi(o, h, l, c), (0,) * 4),
    ("pivot_points", lambda o, h, l, c, v: ind.pivot_points(h, l, c), (0,) * 7),
]

# Builtins whose results are not series aligned with the input
NON_SERIES = {"volume_profile", "fibonacci", "crossover", "crossunder"}

PERIOD_IDS = [entry[0] for entry in PERIOD_TABLE]
FIXED_IDS = [entry[0] for entry in FIXED_TABLE]


def _assert_warmup(name, outputs, expected, n):
    assert len(outputs) == len(expected), name
    for k, (out, skip) in enumerate(zip(outputs, expected)):
        label = f"{name}[{k}]"
        assert len(out) == n, label
        if n <= skip:
            assert np.all(np.isnan(out)), label
            continue
        assert np.all(np.isnan(out[:skip])), label
        assert np.all(np.isfinite(out[skip:])), label


class TestCoverage:

    def test_every_series_builtin_has_a_warmup_entry(self):
        covered = set(PERIOD_IDS) | set(FIXED_IDS) | NON_SERIES
        registered = set(BuiltinRegistry().indicator_names)

        assert registered - covered == set()
        assert covered - registered == set()


class TestWarmup:
    """NaN exactly during warm-up, finite afterwards."""

    @pytest.mark.parametrize("name, call, warmups, min_period", PERIOD_TABLE, ids=PERIOD_IDS)
    @given(values=long_price_lists, period=periods)
    @settings(max_examples=25, deadline=None)
    def test_period_warmup(self, name, call, warmups, min_period, values, period):
        period = max(period, min_period)
        outputs = _outputs(call(*_bars(values), period))

        _assert_warmup(name, outputs, warmups(period), len(values))

    @pytest.mark.parametrize("name, call, warmups", FIXED_TABLE, ids=FIXED_IDS)
    @given(values=long_price_lists)
    @settings(max_examples=25, deadline=None)
    def test_fixed_warmup(self, name, call, warmups, values):
        outputs = _outputs(call(*_bars(values)))

        _assert_warmup(name, outputs, warmups, len(values))

    @given(values=price_lists, period=periods)
    @settings(max_examples=50, deadline=None)
    def test_atr_positive(self, values, period):
        _, highs, lows, closes, _ = _bars(values)
        result = ind.atr(highs, lows, closes, period)

        assert np.all(result[period:] > 0)

    @given(values=price_lists, period=periods)
    @settings(max_examples=50, deadline=None)
    def test_bounded_oscillators(self, values, period):
        _, highs, lows, closes, _ = _bars(values)

        wr = ind.williams_r(highs, lows, closes, period)
        defined = wr[~np.isnan(wr)]
        assert np.all((defined >= -100.0) & (defined <= 0.0))

        strength = ind.rsi(closes, period)
        defined = strength[~np.isnan(strength)]
        assert np.all((defined >= 0.0) & (defined <= 100.0))


class TestInsufficientData:
    """Inputs no longer than the warm-up give all-NaN outputs of equal length."""

    @pytest.mark.parametrize("name, call, warmups, min_period", PERIOD_TABLE, ids=PERIOD_IDS)
    @given(values=long_price_lists, period=periods)
    @settings(max_examples=25, deadline=None)
    def test_too_short(self, name, call, warmups, min_period, values, period):
        period = max(period, min_period)
        short = values[:min(warmups(period))]
        outputs = _outputs(call(*_bars(short), period))

        for k, out in enumerate(outputs):
            assert len(out) == len(short), f"{name}[{k}]"
            assert np.all(np.isnan(out)), f"{name}[{k}]"

    @pytest.mark.parametrize("name, call, warmups, min_period", PERIOD_TABLE, ids=PERIOD_IDS)
    def test_empty_input(self, name, call, warmups, min_period):
        for out in _outputs(call(*_bars([]), max(min_period, 3))):
            assert len(out) == 0, name

    @pytest.mark.parametrize("name, call, warmups", FIXED_TABLE, ids=FIXED_IDS)
    def test_empty_input_fixed(self, name, call, warmups):
        for out in _outputs(call(*_bars([]))):
            assert len(out) == 0, name


class TestDeterminism:
    """Same input gives the same output and the input is left untouched."""

    @pytest.mark.parametrize("name, call, warmups, min_period", PERIOD_TABLE, ids=PERIOD_IDS)
    @given(values=price_lists, period=periods)
    @settings(max_examples=15, deadline=None)
    def test_idempotent(self, name, call, warmups, min_period, values, period):
        period = max(period, min_period)
        bars = _bars(values)
        before = [series.copy() for series in bars]

        first = _outputs(call(*bars, period))
        second = _outputs(call(*bars, period))

        for a, b in zip(first, second):
            np.testing.assert_array_equal(a, b)
        for series, saved in zip(bars, before):
            np.testing.assert_array_equal(series, saved)

    @pytest.mark.parametrize("name, call, warmups", FIXED_TABLE, ids=FIXED_IDS)
    @given(values=price_lists)
    @settings(max_examples=15, deadline=None)
    def test_idempotent_fixed(self, name, call, warmups, values):
        bars = _bars(values)
        before = [series.copy() for series in bars]

        first = _outputs(call(*bars))
        second = _outputs(call(*bars))

        for a, b in zip(first, second):
            np.testing.assert_array_equal(a, b)
        for series, saved in zip(bars, before):
            np.testing.assert_array_equal(series, saved)
