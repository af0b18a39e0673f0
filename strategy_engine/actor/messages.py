"""
Messages accepted by a StrategyActor mailbox.

Commands and market events are fire-and-forget. Requests (GetLogs, Status)
carry an asyncio.Future that the actor resolves with the answer.
"""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from strategy_engine.interfaces.market_data import Kline, OrderBook, Ticker


# =============================================================================
# Commands
# =============================================================================


@dataclass(frozen=True)
class Start:
    """Validate the script, subscribe to bars and begin initializing."""
    pass


@dataclass(frozen=True)
class Stop:
    """Run on_stop, stop ticking and return to Idle."""
    pass


@dataclass(frozen=True)
class ExecuteTick:
    """Periodic legacy execution trigger."""
    pass


# =============================================================================
# Market events
# =============================================================================


@dataclass(frozen=True)
class KlineData:
    kline: Kline


@dataclass(frozen=True)
class OrderBookData:
    order_book: OrderBook


@dataclass(frozen=True)
class TickerData:
    ticker: Ticker


# =============================================================================
# Requests
# =============================================================================


@dataclass(frozen=True)
class StrategyStatus:
    """Snapshot answered to a Status request."""
    strategy_name: str
    symbol: str
    exchange: str
    state: str
    running: bool
    klines_buffered: int
    has_orderbook: bool
    timestamp: datetime


@dataclass
class GetLogs:
    """Ask for the most recent `limit` log entries, oldest first."""
    limit: int = 100
    reply: Optional[asyncio.Future] = field(default=None, compare=False)


@dataclass
class Status:
    """Ask for a StrategyStatus."""
    reply: Optional[asyncio.Future] = field(default=None, compare=False)
