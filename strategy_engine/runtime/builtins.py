"""
Builtin Registry.

Binds every indicator kernel and a handful of utilities to the names strategy
scripts call. Builtins validate what scripts hand them before anything reaches
a Numba kernel:

- series are lists or tuples of numbers, ``None`` standing for NaN
- periods are positive integers, bools are never numbers
- optional parameters fall back to their default when omitted or zero

Indicator results come back as lists with ``None`` in the warm-up positions;
multi-output indicators come back as insertion-ordered dicts keyed by
component name.
"""

import math
from dataclasses import dataclass
from types import SimpleNamespace
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union

import numpy as np

from strategy_engine import indicators as ind
from strategy_engine.logging_config import get_logger
from strategy_engine.runtime.errors import BuiltinArgumentError

logger = get_logger(__name__)

# (level, message) -> None
LogSink = Callable[[str, str], None]

LOG_LEVELS = ("debug", "info", "warning", "error")

Number = Union[int, float]


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def to_series(builtin: str, arg: str, value: Any) -> np.ndarray:
    """Convert a script list into a float64 array (None -> NaN)."""
    if not isinstance(value, (list, tuple)):
        raise BuiltinArgumentError(builtin, f"{arg} must be a list of numbers")

    out = np.empty(len(value), dtype=np.float64)
    for i, item in enumerate(value):
        if item is None:
            out[i] = np.nan
        elif _is_number(item):
            out[i] = float(item)
        else:
            raise BuiltinArgumentError(
                builtin, f"{arg}[{i}] must be a number, got {type(item).__name__}"
            )
    return out


def to_script_list(values: np.ndarray) -> List[Any]:
    """Convert a kernel output back into a script list (NaN -> None)."""
    if values.dtype == np.bool_:
        return [bool(v) for v in values]
    return [None if math.isnan(v) else float(v) for v in values]


@dataclass(frozen=True)
class Param:
    """Numeric builtin parameter. A default of None makes it required."""
    name: str
    default: Optional[Number] = None
    kind: type = int


def _coerce_param(builtin: str, param: Param, value: Any) -> Number:
    if value is None or (_is_number(value) and value == 0):
        if param.default is None:
            noun = "integer" if param.kind is int else "number"
            raise BuiltinArgumentError(builtin, f"{param.name} must be a positive {noun}")
        return param.default

    if param.kind is int:
        if not isinstance(value, int) or isinstance(value, bool):
            raise BuiltinArgumentError(builtin, f"{param.name} must be an integer")
        if value < 0:
            raise BuiltinArgumentError(builtin, f"{param.name} must be a positive integer")
        return value

    if not _is_number(value):
        raise BuiltinArgumentError(builtin, f"{param.name} must be a number")
    if value < 0:
        raise BuiltinArgumentError(builtin, f"{param.name} must be positive")
    return float(value)


class IndicatorBuiltin:
    """
    Script-callable wrapper around one indicator kernel.

    Parameters
    ----------
    name : str
        Name scripts call
    kernel : callable
        Indicator function taking arrays then numeric parameters
    series : tuple of str
        Names of the series arguments, in order
    params : tuple of Param
        Numeric parameters following the series
    outputs : tuple of str
        Component names for tuple-returning kernels; empty for one series
    same_length : bool
        Reject series of different lengths
    finalize : callable, optional
        Converts the raw kernel result instead of the default conversion
    """

    def __init__(
        self,
        name: str,
        kernel: Callable,
        series: Tuple[str, ...],
        params: Tuple[Param, ...] = (),
        outputs: Tuple[str, ...] = (),
        same_length: bool = True,
        finalize: Optional[Callable[[Any], Any]] = None,
    ):
        self.name = name
        self.kernel = kernel
        self.series = series
        self.params = params
        self.outputs = outputs
        self.same_length = same_length
        self.finalize = finalize

    def __repr__(self) -> str:
        return f"<builtin {self.name}>"

    def bind(self, args: Sequence[Any], kwargs: Dict[str, Any]) -> Dict[str, Any]:
        """Map positional and keyword arguments to parameter names."""
        names = list(self.series) + [p.name for p in self.params]
        if len(args) > len(names):
            raise BuiltinArgumentError(
                self.name, f"takes at most {len(names)} arguments ({len(args)} given)"
            )

        bound = dict(zip(names, args))
        for key, value in kwargs.items():
            if key not in names:
                raise BuiltinArgumentError(self.name, f"unexpected keyword argument '{key}'")
            if key in bound:
                raise BuiltinArgumentError(self.name, f"got multiple values for '{key}'")
            bound[key] = value

        for arg in self.series:
            if arg not in bound:
                raise BuiltinArgumentError(self.name, f"missing required argument '{arg}'")
        return bound

    def __call__(self, *args, **kwargs):
        bound = self.bind(args, kwargs)

        arrays = [to_series(self.name, arg, bound[arg]) for arg in self.series]
        if self.same_length and len({len(a) for a in arrays}) > 1:
            raise BuiltinArgumentError(self.name, "series must have equal length")

        values = [_coerce_param(self.name, p, bound.get(p.name)) for p in self.params]
        result = self.kernel(*arrays, *values)

        if self.finalize is not None:
            return self.finalize(result)
        if self.outputs:
            return {key: to_script_list(part) for key, part in zip(self.outputs, result)}
        return to_script_list(result)


# =============================================================================
# Adapters
# =============================================================================

def _emv(highs, lows, closes, volumes, period):
    return ind.emv(highs, lows, volumes, period)


def _volume_profile_dict(result) -> Dict[float, float]:
    prices, volumes = result
    return {float(p): float(v) for p, v in zip(prices, volumes)}


def _fibonacci(high=None, low=None):
    if not _is_number(high) or not _is_number(low):
        raise BuiltinArgumentError("fibonacci", "high and low must be numbers")
    try:
        return ind.fibonacci(float(high), float(low))
    except ValueError as e:
        raise BuiltinArgumentError("fibonacci", str(e)) from e


# =============================================================================
# Indicator table
# =============================================================================

P = "prices"
HLC = ("high", "low", "close")
HLCV = ("high", "low", "close", "volume")
OHLC = ("open", "high", "low", "close")
HL = ("high", "low")
CV = ("close", "volume")


def _period(default: Optional[int] = None) -> Param:
    return Param("period", default)


def _build_indicator_builtins() -> List[IndicatorBuiltin]:
    single = [
        # name, kernel
        ("sma", ind.sma),
        ("ema", ind.ema),
        ("smma", ind.smma),
        ("wma", ind.wma),
        ("hull_ma", ind.hull_ma),
        ("tema", ind.tema),
        ("rsi", ind.rsi),
        ("roc", ind.roc),
        ("price_roc", ind.price_roc),
        ("stddev", ind.stddev),
        ("highest", ind.highest),
        ("lowest", ind.lowest),
        ("detrended", ind.detrended),
        ("standard_error", ind.standard_error),
        ("linear_regression", ind.linear_regression),
        ("linear_regression_slope", ind.linear_regression_slope),
        ("correlation_coefficient", ind.correlation_coefficient),
    ]
    table = [IndicatorBuiltin(name, kernel, (P,), (_period(),)) for name, kernel in single]

    table += [
        # Moving averages
        IndicatorBuiltin("alma", ind.alma, (P,), (_period(), Param("offset", 0.85, float), Param("sigma", 6.0, float))),
        IndicatorBuiltin("kama", ind.kama, (P,), (_period(), Param("fast_sc"), Param("slow_sc"))),
        IndicatorBuiltin("williams_alligator", ind.williams_alligator, (P,), outputs=("jaw", "teeth", "lips")),

        # Oscillators
        IndicatorBuiltin("macd", ind.macd, (P,),
                         (Param("fast", 12), Param("slow", 26), Param("signal", 9)),
                         outputs=("macd", "signal", "histogram")),
        IndicatorBuiltin("stochastic", ind.stochastic, HLC,
                         (Param("k_period", 14), Param("d_period", 3)), outputs=("k", "d")),
        IndicatorBuiltin("stochastic_rsi", ind.stochastic_rsi, (P,),
                         (Param("rsi_period"), Param("stoch_period"), Param("k_period"), Param("d_period")),
                         outputs=("k", "d")),
        IndicatorBuiltin("williams_r", ind.williams_r, HLC, (_period(14),)),
        IndicatorBuiltin("cci", ind.cci, HLC, (_period(20),)),
        IndicatorBuiltin("advanced_cci", ind.advanced_cci, HLC, (_period(), Param("smooth_period"))),
        IndicatorBuiltin("ultimate_oscillator", ind.ultimate_oscillator, HLC,
                         (Param("period1"), Param("period2"), Param("period3"))),
        IndicatorBuiltin("awesome_oscillator", ind.awesome_oscillator, HL),
        IndicatorBuiltin("accelerator_oscillator", ind.accelerator_oscillator, HLC),
        IndicatorBuiltin("cmo", ind.cmo, (P,), (_period(14),)),
        IndicatorBuiltin("tsi", ind.tsi, (P,), (Param("long_period"), Param("short_period"))),
        IndicatorBuiltin("stc", ind.stc, (P,),
                         (Param("fast_period", 23), Param("slow_period", 50),
                          Param("cycle_period", 10), Param("factor", 0.5, float))),
        IndicatorBuiltin("kst", ind.kst, (P,),
                         (Param("roc1", 10), Param("roc2", 15), Param("roc3", 20), Param("roc4", 30),
                          Param("sma1", 10), Param("sma2", 10), Param("sma3", 10), Param("sma4", 15)),
                         outputs=("kst", "signal")),
        IndicatorBuiltin("coppock_curve", ind.coppock_curve, (P,),
                         (Param("roc1_period", 14), Param("roc2_period", 11), Param("wma_period", 10))),
        IndicatorBuiltin("rvi", ind.rvi, OHLC, (_period(),), outputs=("rvi", "signal")),
        IndicatorBuiltin("ppo", ind.ppo, (P,),
                         (Param("fast_period"), Param("slow_period"), Param("signal_period")),
                         outputs=("ppo", "signal", "histogram")),

        # Bands and volatility
        IndicatorBuiltin("bollinger", ind.bollinger, (P,),
                         (_period(20), Param("multiplier", 2.0, float)),
                         outputs=("upper", "middle", "lower")),
        IndicatorBuiltin("bollinger_percent_b", ind.bollinger_percent_b, (P,),
                         (_period(), Param("multiplier", 2.0, float))),
        IndicatorBuiltin("bollinger_band_width", ind.bollinger_band_width, (P,),
                         (_period(), Param("multiplier", 2.0, float))),
        IndicatorBuiltin("atr", ind.atr, HLC, (_period(14),)),
        IndicatorBuiltin("keltner", ind.keltner, HLC,
                         (_period(), Param("multiplier", 2.0, float)),
                         outputs=("upper", "middle", "lower")),
        IndicatorBuiltin("donchian", ind.donchian, HL, (_period(),),
                         outputs=("upper", "middle", "lower")),
        IndicatorBuiltin("price_channel", ind.price_channel, HL, (_period(20),),
                         outputs=("upper", "middle", "lower")),
        IndicatorBuiltin("chandelier_exit", ind.chandelier_exit, HLC,
                         (_period(22), Param("multiplier", 3.0, float)),
                         outputs=("long_exit", "short_exit")),
        IndicatorBuiltin("chande_kroll_stop", ind.chande_kroll_stop, HLC,
                         (_period(10), Param("multiplier", 3.0, float)),
                         outputs=("long_stop", "short_stop")),
        IndicatorBuiltin("volatility_index", ind.volatility_index, HLC, (_period(),)),

        # Trend
        IndicatorBuiltin("adx", ind.adx, HLC, (_period(),), outputs=("adx", "plus_di", "minus_di")),
        IndicatorBuiltin("aroon", ind.aroon, HL, (_period(),), outputs=("aroon_up", "aroon_down")),
        IndicatorBuiltin("parabolic_sar", ind.parabolic_sar, HL,
                         (Param("step", 0.02, float), Param("max_step", 0.2, float))),
        IndicatorBuiltin("supertrend", ind.supertrend, HLC,
                         (_period(), Param("multiplier", None, float)),
                         outputs=("supertrend", "trend")),
        IndicatorBuiltin("vortex", ind.vortex, HLC, (_period(),), outputs=("vi_plus", "vi_minus")),
        IndicatorBuiltin("ichimoku", ind.ichimoku, HLC,
                         (Param("conversion_period", 9), Param("base_period", 26),
                          Param("span_b_period", 52), Param("displacement", 26)),
                         outputs=("tenkan_sen", "kijun_sen", "senkou_span_a", "senkou_span_b", "chikou_span")),

        # Volume
        IndicatorBuiltin("obv", ind.obv, CV),
        IndicatorBuiltin("vwap", ind.vwap, HLCV),
        IndicatorBuiltin("mfi", ind.mfi, HLCV, (_period(14),)),
        IndicatorBuiltin("accumulation_distribution", ind.accumulation_distribution, HLCV),
        IndicatorBuiltin("money_flow_volume", ind.money_flow_volume, HLCV),
        IndicatorBuiltin("chaikin_oscillator", ind.chaikin_oscillator, HLCV,
                         (Param("fast_period"), Param("slow_period"))),
        IndicatorBuiltin("chaikin_money_flow", ind.chaikin_money_flow, HLCV, (_period(),)),
        IndicatorBuiltin("force_index", ind.force_index, CV, (_period(13),)),
        IndicatorBuiltin("elder_force_index", ind.elder_force_index, CV,
                         (Param("short_period", 2), Param("long_period", 13)), outputs=("short", "long")),
        IndicatorBuiltin("emv", _emv, HLCV, (_period(14),)),
        IndicatorBuiltin("klinger_oscillator", ind.klinger_oscillator, HLCV,
                         (Param("fast_period", 34), Param("slow_period", 55), Param("signal_period", 13)),
                         outputs=("oscillator", "signal")),
        IndicatorBuiltin("volume_oscillator", ind.volume_oscillator, ("volume",),
                         (Param("fast_period", 5), Param("slow_period", 10))),
        IndicatorBuiltin("volume_profile", ind.volume_profile, HLCV,
                         (_period(100), Param("levels", 20)), finalize=_volume_profile_dict),
        IndicatorBuiltin("williams_ad", ind.williams_ad, HLC),

        # Composite
        IndicatorBuiltin("elder_ray", ind.elder_ray, HLC, (_period(),), outputs=("bull_power", "bear_power")),
        IndicatorBuiltin("mass_index", ind.mass_index, HL,
                         (_period(9), Param("sum_period", 25))),
        IndicatorBuiltin("bop", ind.bop, OHLC),
        IndicatorBuiltin("heikin_ashi", ind.heikin_ashi, OHLC, outputs=("open", "high", "low", "close")),
        IndicatorBuiltin("pivot_points", ind.pivot_points, HLC,
                         outputs=("pivot", "r1", "r2", "r3", "s1", "s2", "s3")),
        IndicatorBuiltin("crossover", ind.crossover, ("series1", "series2"), same_length=False),
        IndicatorBuiltin("crossunder", ind.crossunder, ("series1", "series2"), same_length=False),
    ]
    return table


# =============================================================================
# Utilities
# =============================================================================

def _len(*args):
    if len(args) != 1:
        raise BuiltinArgumentError("len", "takes exactly one argument")
    try:
        return len(args[0])
    except TypeError as e:
        raise BuiltinArgumentError("len", str(e)) from e


def _range(*args):
    if not 1 <= len(args) <= 3:
        raise BuiltinArgumentError("range", "takes 1 to 3 arguments")
    for arg in args:
        if not isinstance(arg, int) or isinstance(arg, bool):
            raise BuiltinArgumentError("range", "arguments must be integers")
    if len(args) == 3 and args[2] == 0:
        raise BuiltinArgumentError("range", "step cannot be zero")
    return list(range(*args))


def _round(x=None, precision=0):
    """Round half away from zero; precision 0 returns an int."""
    if not _is_number(x):
        raise BuiltinArgumentError("round", "requires a number")
    if not isinstance(precision, int) or isinstance(precision, bool):
        raise BuiltinArgumentError("round", "precision must be an integer")

    factor = 10.0 ** precision
    scaled = abs(x) * factor
    rounded = math.copysign(math.floor(scaled + 0.5), x) / factor
    if precision == 0:
        return int(rounded)
    return rounded


def _math_abs(*args):
    if len(args) != 1:
        raise BuiltinArgumentError("abs", "takes exactly one argument")
    if not _is_number(args[0]):
        raise BuiltinArgumentError("abs", "requires a number")
    return abs(args[0])


def _math_sqrt(x):
    if not _is_number(x) or x < 0:
        raise BuiltinArgumentError("sqrt", "requires a non-negative number")
    return math.sqrt(x)


def _math_floor(x):
    if not _is_number(x):
        raise BuiltinArgumentError("floor", "requires a number")
    return math.floor(x)


def _math_ceil(x):
    if not _is_number(x):
        raise BuiltinArgumentError("ceil", "requires a number")
    return math.ceil(x)


MATH_NAMESPACE = SimpleNamespace(
    abs=_math_abs,
    sqrt=_math_sqrt,
    floor=_math_floor,
    ceil=_math_ceil,
)


class BuiltinRegistry:
    """
    Names available to strategy scripts.

    The indicator table is built once; ``bind`` adds the logging utilities
    wired to one actor's log sink.

    Examples
    --------
    >>> registry = BuiltinRegistry()
    >>> builtins = registry.bind(log_sink=lambda level, msg: None, strategy="rsi")
    >>> builtins["sma"]([1, 2, 3], 2)
    [None, 1.5, 2.5]
    """

    def __init__(self):
        self._indicators: Dict[str, Callable] = {b.name: b for b in _build_indicator_builtins()}
        self._indicators["fibonacci"] = _fibonacci
        self._utilities: Dict[str, Any] = {
            "len": _len,
            "range": _range,
            "round": _round,
            "math": MATH_NAMESPACE,
        }

    @property
    def indicator_names(self) -> List[str]:
        return sorted(self._indicators)

    def names(self) -> List[str]:
        return sorted(list(self._indicators) + list(self._utilities) + ["log", "print"])

    def get(self, name: str) -> Callable:
        if name in self._indicators:
            return self._indicators[name]
        return self._utilities[name]

    def bind(self, log_sink: Optional[LogSink] = None, strategy: str = "") -> Dict[str, Any]:
        """
        Full builtin mapping for one execution.

        Args:
            log_sink: Receives (level, message) for every script log/print
            strategy: Strategy name attached to structlog events

        Returns:
            Name -> callable mapping
        """
        def emit(level: str, message: str) -> None:
            getattr(logger, level)("strategy_log", source="strategy", strategy=strategy, message=message)
            if log_sink is not None:
                log_sink(level, message)

        def log(message=None, level="info"):
            if message is None:
                raise BuiltinArgumentError("log", "missing required argument 'message'")
            if level not in LOG_LEVELS:
                raise BuiltinArgumentError("log", f"level must be one of {', '.join(LOG_LEVELS)}")
            emit(level, str(message))

        def print_(*args, **kwargs):
            sep = kwargs.get("sep") or " "
            emit("debug", sep.join(str(a) for a in args))

        mapping: Dict[str, Any] = dict(self._indicators)
        mapping.update(self._utilities)
        mapping["log"] = log
        mapping["print"] = print_
        return mapping
