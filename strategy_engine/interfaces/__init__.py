"""
Core interfaces for the strategy execution subsystem.

Market data types flow into strategy actors, Signals flow out of the script
runtime, and the collaborator Protocols describe everything the actor talks
to outside this package.
"""

# Market data - inbound events
from .market_data import (
    Kline,
    PriceLevel,
    OrderBook,
    Ticker,
    SCRIPT_TIMESTAMP_FORMAT,
    format_script_timestamp,
    unix_seconds,
    create_order_book,
)

# Signal types - strategy decisions
from .signal import (
    Signal,
    SignalAction,
    OrderType,
    hold_signal,
    create_order_signal,
)

# Collaborators - outbound messages and protocols
from .collaborators import (
    SubscribeKlines,
    HistoricalKlinesRequest,
    OrderRequest,
    RiskCheck,
    PriceUpdate,
    MarketDataSource,
    OrderManager,
    RiskManager,
)

__all__ = [
    'Kline',
    'PriceLevel',
    'OrderBook',
    'Ticker',
    'SCRIPT_TIMESTAMP_FORMAT',
    'format_script_timestamp',
    'unix_seconds',
    'create_order_book',
    'Signal',
    'SignalAction',
    'OrderType',
    'hold_signal',
    'create_order_signal',
    'SubscribeKlines',
    'HistoricalKlinesRequest',
    'OrderRequest',
    'RiskCheck',
    'PriceUpdate',
    'MarketDataSource',
    'OrderManager',
    'RiskManager',
]
