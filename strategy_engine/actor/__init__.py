"""
Strategy actors: per-deployment lifecycle, buffering and signal routing.
"""

from .log_buffer import LogEntry, StrategyLogBuffer
from .messages import (
    Start,
    Stop,
    ExecuteTick,
    KlineData,
    OrderBookData,
    TickerData,
    GetLogs,
    Status,
    StrategyStatus,
)
from .strategy_actor import ActorState, StrategyActor

__all__ = [
    'LogEntry',
    'StrategyLogBuffer',
    'Start',
    'Stop',
    'ExecuteTick',
    'KlineData',
    'OrderBookData',
    'TickerData',
    'GetLogs',
    'Status',
    'StrategyStatus',
    'ActorState',
    'StrategyActor',
]
