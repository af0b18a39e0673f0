"""
Strategy script runtime.

Components:
- sandbox: RestrictedPython compile/execute/call
- builtins: indicator and utility names exposed to scripts
- engine: script resolution, binding, execution and callbacks
- signals: script output -> Signal
- validator: callback capability detection
- errors: exception taxonomy
"""

from .errors import (
    StrategyError,
    StrategyLoadError,
    StrategyCompileError,
    StrategyValidationError,
    StrategyExecutionError,
    ScriptTimeoutError,
    BuiltinArgumentError,
)
from .sandbox import Program, Sandbox
from .builtins import BuiltinRegistry, IndicatorBuiltin, Param
from .signals import CallbackResult, LegacyResult, normalize_signal
from .engine import (
    ScriptPayload,
    StrategyContext,
    StrategyEngine,
    kline_payload,
    orderbook_payload,
    ticker_payload,
)
from .validator import Callbacks, validate_callbacks

__all__ = [
    'StrategyError',
    'StrategyLoadError',
    'StrategyCompileError',
    'StrategyValidationError',
    'StrategyExecutionError',
    'ScriptTimeoutError',
    'BuiltinArgumentError',
    'Program',
    'Sandbox',
    'BuiltinRegistry',
    'IndicatorBuiltin',
    'Param',
    'CallbackResult',
    'LegacyResult',
    'normalize_signal',
    'ScriptPayload',
    'StrategyContext',
    'StrategyEngine',
    'kline_payload',
    'orderbook_payload',
    'ticker_payload',
    'Callbacks',
    'validate_callbacks',
]
