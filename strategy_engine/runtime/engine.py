"""
Script runtime: load, compile, bind and run strategy scripts.

Every run follows the same path:
1. Resolve <name>.star on the search paths and compile it (cached per name)
2. Bind builtins plus the invocation's context into fresh globals
3. Execute the module body, then call the requested callback if any
4. Normalize the callback's mapping, or the top-level variables, to a Signal

User-code failures are wrapped in StrategyExecutionError carrying the
strategy name and phase. Nothing is retried.
"""

import copy
import inspect
import os
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from strategy_engine.constants import (
    DEFAULT_INTERVAL,
    DEFAULT_SEARCH_PATHS,
    SCRIPT_EXTENSION,
    SERIES_NAMES,
)
from strategy_engine.interfaces.market_data import (
    Kline,
    OrderBook,
    Ticker,
    format_script_timestamp,
)
from strategy_engine.interfaces.signal import Signal
from strategy_engine.logging_config import get_logger
from strategy_engine.runtime.builtins import BuiltinRegistry, LogSink
from strategy_engine.runtime.errors import (
    ScriptTimeoutError,
    StrategyCompileError,
    StrategyError,
    StrategyExecutionError,
    StrategyLoadError,
)
from strategy_engine.runtime.sandbox import Program, Sandbox
from strategy_engine.runtime.signals import CallbackResult, LegacyResult, normalize_signal

logger = get_logger(__name__)


class ScriptPayload(dict):
    """Event payload handed to callbacks; keys double as attributes."""

    def __getattr__(self, name: str) -> Any:
        try:
            return self[name]
        except KeyError:
            raise AttributeError(name)


@dataclass(frozen=True)
class StrategyContext:
    """
    Snapshot passed to one script invocation.

    ``state`` is owned by the actor and shared by reference, so whatever a
    script stores there is visible on its next invocation.
    """
    symbol: str
    exchange: str
    klines: Tuple[Kline, ...] = ()
    order_book: Optional[OrderBook] = None
    config: Mapping[str, Any] = field(default_factory=dict)
    state: Dict[str, Any] = field(default_factory=dict)
    log_sink: Optional[LogSink] = None


# =============================================================================
# Payload builders
# =============================================================================

def kline_payload(kline: Kline) -> ScriptPayload:
    return ScriptPayload(
        timestamp=format_script_timestamp(kline.timestamp),
        open=kline.open,
        high=kline.high,
        low=kline.low,
        close=kline.close,
        volume=kline.volume,
    )


def orderbook_payload(book: OrderBook) -> ScriptPayload:
    return ScriptPayload(
        symbol=book.symbol,
        timestamp=format_script_timestamp(book.timestamp),
        bids=[ScriptPayload(price=lvl.price, quantity=lvl.quantity) for lvl in book.bids],
        asks=[ScriptPayload(price=lvl.price, quantity=lvl.quantity) for lvl in book.asks],
    )


def ticker_payload(ticker: Ticker) -> ScriptPayload:
    return ScriptPayload(
        symbol=ticker.symbol,
        price=ticker.price,
        volume=ticker.volume,
        timestamp=format_script_timestamp(ticker.timestamp),
    )


class StrategyEngine:
    """
    Runs strategy scripts for any number of actors.

    Parameters
    ----------
    search_paths : sequence of str
        Directories tried in order for <name>.star
    base_dir : str, optional
        Directory the search paths are relative to (default: cwd)
    default_interval : str
        Interval reported for scripts that declare none
    time_budget_seconds : float, optional
        Wall-clock budget per execution; overruns raise ScriptTimeoutError
    cache_programs : bool
        Compile each script once and reuse the Program
    """

    def __init__(
        self,
        search_paths: Sequence[str] = DEFAULT_SEARCH_PATHS,
        base_dir: Optional[str] = None,
        default_interval: str = DEFAULT_INTERVAL,
        time_budget_seconds: Optional[float] = None,
        cache_programs: bool = True,
        registry: Optional[BuiltinRegistry] = None,
        sandbox: Optional[Sandbox] = None,
    ):
        self.search_paths = tuple(search_paths)
        self.base_dir = Path(base_dir) if base_dir else None
        self.default_interval = default_interval
        self.time_budget_seconds = time_budget_seconds
        self.cache_programs = cache_programs
        self.registry = registry or BuiltinRegistry()
        self.sandbox = sandbox or Sandbox()
        self._programs: Dict[str, Program] = {}

    @classmethod
    def from_settings(cls, settings) -> "StrategyEngine":
        """Build from an EngineSettings model."""
        return cls(
            search_paths=settings.search_paths,
            base_dir=settings.base_dir,
            default_interval=settings.default_interval,
            time_budget_seconds=settings.time_budget_seconds,
            cache_programs=settings.cache_programs,
        )

    # ===== Loading

    def candidate_paths(self, name: str) -> List[Path]:
        base = self.base_dir or Path(os.getcwd())
        filename = f"{name}{SCRIPT_EXTENSION}"
        return [base / directory / filename for directory in self.search_paths]

    def load_script(self, name: str) -> str:
        """
        Read the source of a strategy script.

        Raises:
            StrategyLoadError: If no candidate path exists
        """
        for path in self.candidate_paths(name):
            if path.is_file():
                try:
                    return path.read_text(encoding="utf-8")
                except OSError as e:
                    raise StrategyLoadError(f"failed to load strategy {name}: {e}") from e
        raise StrategyLoadError(f"strategy script not found: {name}")

    def compile(self, name: str) -> Program:
        """Compile a script, reusing the cached Program when enabled."""
        if self.cache_programs and name in self._programs:
            return self._programs[name]

        source = self.load_script(name)
        try:
            program = self.sandbox.load(name, source, filename=f"{name}{SCRIPT_EXTENSION}")
        except SyntaxError as e:
            raise StrategyCompileError(name, str(e)) from e

        if self.cache_programs:
            self._programs[name] = program
        logger.debug("strategy_compiled", strategy=name)
        return program

    def invalidate(self, name: Optional[str] = None) -> None:
        """Drop one cached Program, or all of them."""
        if name is None:
            self._programs.clear()
        else:
            self._programs.pop(name, None)

    # ===== Globals

    def prepare_globals(self, ctx: StrategyContext, strategy: str = "") -> Dict[str, Any]:
        """Builtins plus the context names a script can read."""
        glb: Dict[str, Any] = {
            "__builtins__": self.registry.bind(log_sink=ctx.log_sink, strategy=strategy),
            "symbol": ctx.symbol,
            "exchange": ctx.exchange,
            "config": copy.deepcopy(dict(ctx.config)),
            "state": ctx.state,
        }

        if ctx.klines:
            glb["klines"] = [k.as_record() for k in ctx.klines]
            for series in SERIES_NAMES:
                glb[series] = [float(getattr(k, series)) for k in ctx.klines]

        book = ctx.order_book
        if book is not None and book.has_both_sides:
            glb["bid"] = book.best_bid
            glb["ask"] = book.best_ask
            glb["spread"] = book.best_ask - book.best_bid

        return glb

    def inspection_globals(self, strategy: str = "") -> Dict[str, Any]:
        """Globals for a definitions-only run: empty market data, config and state."""
        glb: Dict[str, Any] = {
            "__builtins__": self.registry.bind(strategy=strategy),
            "symbol": "",
            "exchange": "",
            "config": {},
            "state": {},
            "klines": [],
        }
        for series in SERIES_NAMES:
            glb[series] = []
        return glb

    # ===== Execution

    def _timed(self, name: str, phase: str, fn: Callable[[], Any]) -> Any:
        start = time.perf_counter()
        try:
            result = fn()
        except StrategyError:
            raise
        except Exception as e:
            raise StrategyExecutionError(name, phase, e) from e

        elapsed = time.perf_counter() - start
        budget = self.time_budget_seconds
        if budget is not None and elapsed > budget:
            raise ScriptTimeoutError(name, phase, elapsed, budget)
        return result

    def run_module(self, name: str, glb: Dict[str, Any], phase: str = "strategy execution") -> Dict[str, Any]:
        """Execute the module body; returns the resulting globals."""
        program = self.compile(name)
        return self._timed(name, phase, lambda: self.sandbox.execute(program, glb))

    def definitions(self, name: str) -> Dict[str, Any]:
        """Execute a script with inspection globals and return what it defines."""
        return self.run_module(name, self.inspection_globals(name), phase="definition")

    def execute_strategy(self, name: str, ctx: StrategyContext) -> Signal:
        """Legacy full execution; the signal comes from top-level variables."""
        result = self.run_module(name, self.prepare_globals(ctx, name))
        signal = normalize_signal(LegacyResult.from_globals(result))
        logger.debug(
            "strategy_executed",
            strategy=name,
            action=signal.action,
            quantity=signal.quantity,
            reason=signal.reason,
        )
        return signal

    def _execute_callback(
        self,
        name: str,
        ctx: StrategyContext,
        callback: str,
        payload_name: str,
        payload: ScriptPayload,
    ) -> Signal:
        glb = self.prepare_globals(ctx, name)
        glb[payload_name] = payload
        result = self.run_module(name, glb)

        fn = result.get(callback)
        if inspect.isfunction(fn):
            returned = self._timed(
                name, f"{callback} callback", lambda: self.sandbox.call(fn, payload)
            )
            if isinstance(returned, Mapping):
                return normalize_signal(CallbackResult(dict(returned)))

        return normalize_signal(LegacyResult.from_globals(result))

    def execute_kline_callback(self, name: str, ctx: StrategyContext, kline: Kline) -> Signal:
        return self._execute_callback(name, ctx, "on_kline", "kline", kline_payload(kline))

    def execute_orderbook_callback(self, name: str, ctx: StrategyContext, book: OrderBook) -> Signal:
        return self._execute_callback(name, ctx, "on_orderbook", "orderbook", orderbook_payload(book))

    def execute_ticker_callback(self, name: str, ctx: StrategyContext, ticker: Ticker) -> Signal:
        return self._execute_callback(name, ctx, "on_ticker", "ticker", ticker_payload(ticker))

    def _execute_lifecycle(self, name: str, ctx: StrategyContext, callback: str) -> None:
        result = self.run_module(name, self.prepare_globals(ctx, name))
        fn = result.get(callback)
        if not inspect.isfunction(fn):
            return
        self._timed(name, f"{callback} callback", lambda: self.sandbox.call(fn))

    def execute_start_callback(self, name: str, ctx: StrategyContext) -> None:
        """Call on_start() if the script defines it."""
        self._execute_lifecycle(name, ctx, "on_start")

    def execute_stop_callback(self, name: str, ctx: StrategyContext) -> None:
        """Call on_stop() if the script defines it."""
        self._execute_lifecycle(name, ctx, "on_stop")

    # ===== Settings

    def declared_interval(self, name: str) -> Optional[str]:
        """
        Interval the script declares, or None.

        Checks settings()["interval"] first, then a top-level ``interval``
        variable. A failing script or settings() logs a warning and counts as
        undeclared; a missing or malformed script raises.
        """
        try:
            result = self.definitions(name)
        except (StrategyCompileError, StrategyLoadError):
            raise
        except StrategyError as e:
            logger.warning("strategy_interval_fallback", strategy=name, error=str(e))
            return None

        settings_fn = result.get("settings")
        if inspect.isfunction(settings_fn):
            try:
                declared = self._timed(name, "settings callback", lambda: self.sandbox.call(settings_fn))
            except StrategyExecutionError as e:
                logger.warning("strategy_interval_fallback", strategy=name, error=str(e))
                return None
            if isinstance(declared, Mapping):
                interval = declared.get("interval")
                if isinstance(interval, str) and interval:
                    return interval

        interval = result.get("interval")
        if isinstance(interval, str) and interval:
            return interval
        return None

    def get_strategy_interval(self, name: str) -> str:
        """Declared interval, or the engine default."""
        return self.declared_interval(name) or self.default_interval
