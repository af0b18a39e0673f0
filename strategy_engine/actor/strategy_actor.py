"""
Strategy Actor.

One actor runs one strategy script for one (symbol, exchange). It owns the
kline buffer, the cached order book, the log buffer and the script's
``state`` mapping, and drains its mailbox strictly in order on a single
asyncio task. Script execution is synchronous inside that task, so a slow
script only delays its own mailbox.

Lifecycle:
    Idle --Start--> Initializing --min_bars klines--> Running --Stop--> Idle

Script failures are caught here, logged and treated as hold; the actor keeps
processing messages.
"""

import asyncio
import dataclasses
from collections import deque
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Deque, Dict, List, Optional, Tuple

from strategy_engine.actor.log_buffer import LogEntry, StrategyLogBuffer
from strategy_engine.actor.messages import (
    ExecuteTick,
    GetLogs,
    KlineData,
    OrderBookData,
    Start,
    Status,
    Stop,
    StrategyStatus,
    TickerData,
)
from strategy_engine.config_schemas import ActorSettings
from strategy_engine.interfaces.collaborators import (
    HistoricalKlinesRequest,
    MarketDataSource,
    OrderManager,
    OrderRequest,
    PriceUpdate,
    RiskCheck,
    RiskManager,
    SubscribeKlines,
)
from strategy_engine.interfaces.market_data import Kline, OrderBook
from strategy_engine.interfaces.signal import Signal
from strategy_engine.logging_config import get_strategy_logger
from strategy_engine.runtime.engine import StrategyContext, StrategyEngine
from strategy_engine.runtime.errors import StrategyError
from strategy_engine.runtime.validator import Callbacks, validate_callbacks


class ActorState(Enum):
    """Strategy lifecycle state."""
    IDLE = "idle"
    INITIALIZING = "initializing"
    RUNNING = "running"


class StrategyActor:
    """
    Message-driven owner of one strategy deployment.

    Parameters
    ----------
    name : str
        Strategy script name
    symbol : str
        Traded symbol; events for other symbols are dropped
    exchange : str
        Exchange name
    engine : StrategyEngine
        Script runtime
    market_data : MarketDataSource, optional
        Receives subscriptions and historical requests
    order_manager : OrderManager, optional
        Receives order requests and price updates
    risk_manager : RiskManager, optional
        Receives a risk check for every order request
    config : dict, optional
        User configuration exposed to the script as ``config``
    settings : ActorSettings, optional
        Buffer sizes and timing

    Examples
    --------
    >>> actor = StrategyActor("rsi", "BTCUSDT", "bybit", engine, order_manager=om)
    >>> await actor.start()
    >>> actor.tell(Start())
    >>> status = await actor.ask(Status())
    """

    def __init__(
        self,
        name: str,
        symbol: str,
        exchange: str,
        engine: StrategyEngine,
        market_data: Optional[MarketDataSource] = None,
        order_manager: Optional[OrderManager] = None,
        risk_manager: Optional[RiskManager] = None,
        config: Optional[Dict[str, Any]] = None,
        settings: Optional[ActorSettings] = None,
    ):
        self.name = name
        self.symbol = symbol
        self.exchange = exchange
        self.engine = engine
        self.market_data = market_data
        self.order_manager = order_manager
        self.risk_manager = risk_manager
        self.config: Dict[str, Any] = dict(config or {})
        self.settings = settings or ActorSettings()

        self.logger = get_strategy_logger(__name__, name, symbol, exchange)

        self._state = ActorState.IDLE
        self._interval: Optional[str] = None
        self._callbacks = Callbacks()
        self._klines: Deque[Kline] = deque(maxlen=self.settings.kline_buffer_size)
        self._order_book: Optional[OrderBook] = None
        self._logs = StrategyLogBuffer(self.settings.log_buffer_size)
        self._script_state: Dict[str, Any] = {}

        self._mailbox: "asyncio.Queue[Any]" = asyncio.Queue()
        self._consumer: Optional[asyncio.Task] = None
        self._ticker: Optional[asyncio.Task] = None

        self._handlers: Dict[type, Callable[[Any], None]] = {
            Start: self._on_start,
            Stop: self._on_stop,
            KlineData: self._on_kline,
            OrderBookData: self._on_orderbook,
            TickerData: self._on_ticker,
            ExecuteTick: self._on_execute_tick,
            GetLogs: self._on_get_logs,
            Status: self._on_status,
        }

    # ===== Introspection

    @property
    def state(self) -> ActorState:
        return self._state

    @property
    def running(self) -> bool:
        return self._state == ActorState.RUNNING

    @property
    def interval(self) -> Optional[str]:
        return self._interval

    @property
    def callbacks(self) -> Callbacks:
        return self._callbacks

    @property
    def klines(self) -> Tuple[Kline, ...]:
        return tuple(self._klines)

    @property
    def order_book(self) -> Optional[OrderBook]:
        return self._order_book

    @property
    def script_state(self) -> Dict[str, Any]:
        return self._script_state

    @property
    def ticking(self) -> bool:
        """True while the periodic ExecuteTick task is scheduled."""
        return self._ticker is not None and not self._ticker.done()

    # ===== Mailbox

    async def start(self) -> None:
        """Spawn the mailbox consumer."""
        if self._consumer is not None and not self._consumer.done():
            return
        self._consumer = asyncio.create_task(self._consume(), name=f"strategy-{self.name}-{self.symbol}")

    async def shutdown(self) -> None:
        """Stop ticking and cancel the consumer; queued messages are dropped."""
        self._cancel_ticker()
        if self._consumer is not None:
            self._consumer.cancel()
            try:
                await self._consumer
            except asyncio.CancelledError:
                pass
            self._consumer = None

    def tell(self, message: Any) -> None:
        """Enqueue a message without waiting."""
        self._mailbox.put_nowait(message)

    async def ask(self, message: Any) -> Any:
        """Enqueue a request and wait for the actor's reply."""
        reply = asyncio.get_running_loop().create_future()
        self.tell(dataclasses.replace(message, reply=reply))
        return await reply

    async def drain(self) -> None:
        """Wait until every message enqueued so far has been handled."""
        await self._mailbox.join()

    async def _consume(self) -> None:
        while True:
            message = await self._mailbox.get()
            try:
                self.handle(message)
            except Exception as e:
                self.logger.exception("actor_message_failed", message=type(message).__name__)
                self._record("error", "message handling failed", error=str(e))
            finally:
                self._mailbox.task_done()

    def handle(self, message: Any) -> None:
        """Process one message synchronously."""
        handler = self._handlers.get(type(message))
        if handler is None:
            self.logger.debug("unknown_message", message=type(message).__name__)
            return
        handler(message)

    # ===== Helpers

    def _record(self, level: str, message: str, **context: Any) -> LogEntry:
        getattr(self.logger, level)(message.replace(" ", "_"), **context)
        return self._logs.append(level, message, context)

    def _script_log(self, level: str, message: str) -> None:
        self._logs.append(level, message, {"source": "strategy"})

    def _context(self) -> StrategyContext:
        return StrategyContext(
            symbol=self.symbol,
            exchange=self.exchange,
            klines=tuple(self._klines),
            order_book=self._order_book,
            config=self.config,
            state=self._script_state,
            log_sink=self._script_log,
        )

    def _notify(self, fn: Optional[Callable[[Any], None]], payload: Any) -> None:
        """Fire-and-forget call to a collaborator; failures are logged."""
        if fn is None:
            return
        try:
            fn(payload)
        except Exception as e:
            self._record(
                "error",
                "collaborator call failed",
                collaborator=type(payload).__name__,
                error=str(e),
            )

    def _resolve_interval(self) -> str:
        declared = None
        try:
            declared = self.engine.declared_interval(self.name)
        except StrategyError as e:
            self._record("warning", "interval resolution failed", error=str(e))
        if declared:
            return declared

        configured = self.config.get("interval")
        if isinstance(configured, str) and configured:
            return configured
        return self.engine.default_interval

    def _start_ticker(self) -> None:
        self._cancel_ticker()
        self._ticker = asyncio.create_task(self._tick_loop())

    def _cancel_ticker(self) -> None:
        if self._ticker is not None:
            self._ticker.cancel()
            self._ticker = None

    async def _tick_loop(self) -> None:
        while True:
            await asyncio.sleep(self.settings.tick_interval_seconds)
            self.tell(ExecuteTick())

    # ===== Lifecycle

    def _on_start(self, message: Start) -> None:
        if self._state != ActorState.IDLE:
            self._record("warning", "start ignored", state=self._state.value)
            return

        # Pick up an edited script on every start
        self.engine.invalidate(self.name)
        try:
            self._callbacks = validate_callbacks(self.engine, self.name)
        except StrategyError as e:
            self._record("error", "strategy start failed", error=str(e))
            return

        self._klines.clear()
        self._order_book = None
        self._interval = self._resolve_interval()

        if self._callbacks.has_on_start:
            try:
                self.engine.execute_start_callback(self.name, self._context())
            except StrategyError as e:
                self._record("error", "on_start failed", error=str(e))

        self._notify(
            self.market_data.subscribe_klines if self.market_data else None,
            SubscribeKlines(self.symbol, self._interval),
        )
        self._notify(
            self.market_data.request_historical_klines if self.market_data else None,
            HistoricalKlinesRequest(self.symbol, self._interval, self.settings.effective_historical_limit),
        )

        self._state = ActorState.INITIALIZING
        self._record("info", "strategy initializing", interval=self._interval)

    def _on_stop(self, message: Stop) -> None:
        if self._state == ActorState.IDLE:
            return

        if self._callbacks.has_on_stop:
            try:
                self.engine.execute_stop_callback(self.name, self._context())
            except StrategyError as e:
                self._record("error", "on_stop failed", error=str(e))

        self._cancel_ticker()
        self._klines.clear()
        self._order_book = None
        self._state = ActorState.IDLE
        self._record("info", "strategy stopped")

    def _enter_running(self) -> None:
        self._state = ActorState.RUNNING
        self._start_ticker()
        self._record("info", "strategy running", klines_buffered=len(self._klines))

    # ===== Market events

    def _on_kline(self, message: KlineData) -> None:
        if self._state == ActorState.IDLE:
            return
        kline = message.kline
        if kline.symbol != self.symbol or kline.interval != self._interval:
            self.logger.debug(
                "kline_dropped",
                received_symbol=kline.symbol,
                received_interval=kline.interval,
                interval=self._interval,
            )
            return

        self._klines.append(kline)
        self._notify(
            self.order_manager.update_price if self.order_manager else None,
            PriceUpdate(self.symbol, kline.close),
        )

        if self._state == ActorState.INITIALIZING and len(self._klines) >= self.settings.min_bars:
            self._enter_running()

        if self.running and self._callbacks.has_on_kline:
            self._dispatch(
                "on_kline",
                lambda: self.engine.execute_kline_callback(self.name, self._context(), kline),
            )

    def _on_orderbook(self, message: OrderBookData) -> None:
        if self._state == ActorState.IDLE:
            return
        book = message.order_book
        if book.symbol != self.symbol or not book.has_both_sides:
            return

        self._order_book = book
        self._notify(
            self.order_manager.update_price if self.order_manager else None,
            PriceUpdate(self.symbol, book.mid_price),
        )

        if self.running and self._callbacks.has_on_orderbook:
            self._dispatch(
                "on_orderbook",
                lambda: self.engine.execute_orderbook_callback(self.name, self._context(), book),
            )

    def _on_ticker(self, message: TickerData) -> None:
        if self._state == ActorState.IDLE:
            return
        ticker = message.ticker
        if ticker.symbol != self.symbol:
            return

        self._notify(
            self.order_manager.update_price if self.order_manager else None,
            PriceUpdate(self.symbol, ticker.price),
        )

        if self.running and self._callbacks.has_on_ticker:
            self._dispatch(
                "on_ticker",
                lambda: self.engine.execute_ticker_callback(self.name, self._context(), ticker),
            )

    def _on_execute_tick(self, message: ExecuteTick) -> None:
        if not self.running or not self._klines:
            return
        # Event-driven scripts are not run on the legacy tick
        if self._callbacks.has_event_callback:
            return
        self._dispatch(
            "tick",
            lambda: self.engine.execute_strategy(self.name, self._context()),
        )

    # ===== Signals

    def _dispatch(self, trigger: str, execute: Callable[[], Signal]) -> None:
        try:
            signal = execute()
        except StrategyError as e:
            self._record("error", "strategy execution failed", trigger=trigger, error=str(e))
            return
        self._route(signal, trigger)

    def _route(self, signal: Signal, trigger: str) -> None:
        if not signal.is_actionable:
            return

        self._record(
            "info",
            "signal generated",
            trigger=trigger,
            action=signal.action,
            quantity=signal.quantity,
            price=signal.price,
            reason=signal.reason,
        )
        self._notify(
            self.order_manager.submit_order if self.order_manager else None,
            OrderRequest(
                symbol=self.symbol,
                side=signal.action,
                type=signal.order_type,
                quantity=signal.quantity,
                price=signal.price,
                reason=signal.reason,
            ),
        )
        self._notify(
            self.risk_manager.check_signal if self.risk_manager else None,
            RiskCheck(
                symbol=self.symbol,
                action=signal.action,
                quantity=signal.quantity,
                price=signal.price,
            ),
        )

    # ===== Requests

    def _on_get_logs(self, message: GetLogs) -> None:
        entries: List[LogEntry] = self._logs.recent(message.limit)
        if message.reply is not None and not message.reply.done():
            message.reply.set_result(entries)

    def _on_status(self, message: Status) -> None:
        status = StrategyStatus(
            strategy_name=self.name,
            symbol=self.symbol,
            exchange=self.exchange,
            state=self._state.value,
            running=self.running,
            klines_buffered=len(self._klines),
            has_orderbook=self._order_book is not None,
            timestamp=datetime.now(timezone.utc),
        )
        if message.reply is not None and not message.reply.done():
            message.reply.set_result(status)
