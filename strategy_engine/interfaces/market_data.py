"""
Market Data Types.

Immutable market events delivered to strategy actors by the market-data
collaborator:
- Kline: one OHLCV bar for a symbol at a fixed interval
- OrderBook: a depth snapshot, best level first on each side
- Ticker: last-trade summary

Timestamps are timezone-aware UTC datetimes.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple


# ISO-8601 layout used for every timestamp handed to scripts
SCRIPT_TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


def format_script_timestamp(ts: datetime) -> str:
    """Render a timestamp the way event payloads expose it (UTC, second precision)."""
    if ts.tzinfo is not None:
        ts = ts.astimezone(timezone.utc)
    return ts.strftime(SCRIPT_TIMESTAMP_FORMAT)


def unix_seconds(ts: datetime) -> int:
    """Whole seconds since the epoch; naive datetimes are taken as UTC."""
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return int(ts.timestamp())


@dataclass(frozen=True)
class Kline:
    """
    OHLCV candlestick bar.

    Attributes
    ----------
    timestamp : datetime
        Bar open time
    open, high, low, close : float
        Bar prices
    volume : float
        Traded volume
    symbol : str
        Instrument symbol (e.g., "BTCUSDT")
    interval : str
        Bar interval (e.g., "1m", "5m")
    """
    timestamp: datetime
    open: float
    high: float
    low: float
    close: float
    volume: float
    symbol: str = ""
    interval: str = ""

    def as_record(self) -> Dict[str, Any]:
        """Row exposed in the script's `klines` collection."""
        return {
            "timestamp": unix_seconds(self.timestamp),
            "open": self.open,
            "high": self.high,
            "low": self.low,
            "close": self.close,
            "volume": self.volume,
        }


@dataclass(frozen=True)
class PriceLevel:
    """Single depth level."""
    price: float
    quantity: float


@dataclass(frozen=True)
class OrderBook:
    """Order book snapshot; bids descending, asks ascending."""
    symbol: str
    timestamp: datetime
    bids: Tuple[PriceLevel, ...] = field(default_factory=tuple)
    asks: Tuple[PriceLevel, ...] = field(default_factory=tuple)

    @property
    def has_both_sides(self) -> bool:
        return bool(self.bids) and bool(self.asks)

    @property
    def best_bid(self) -> Optional[float]:
        return self.bids[0].price if self.bids else None

    @property
    def best_ask(self) -> Optional[float]:
        return self.asks[0].price if self.asks else None

    @property
    def mid_price(self) -> Optional[float]:
        """Midpoint of the best levels, None when either side is empty."""
        if not self.has_both_sides:
            return None
        return (self.bids[0].price + self.asks[0].price) / 2.0


@dataclass(frozen=True)
class Ticker:
    """24h ticker summary."""
    symbol: str
    price: float
    volume: float
    timestamp: datetime
    change: float = 0.0
    change_percent: float = 0.0


# =============================================================================
# Factory Functions
# =============================================================================

def create_order_book(
    symbol: str,
    bids: Tuple[Tuple[float, float], ...],
    asks: Tuple[Tuple[float, float], ...],
    timestamp: Optional[datetime] = None,
) -> OrderBook:
    """
    Build an OrderBook from (price, quantity) pairs.

    Parameters
    ----------
    symbol : str
        Instrument symbol
    bids, asks : sequence of (price, quantity)
        Depth levels, best first
    timestamp : datetime, optional
        Snapshot time (default: now, UTC)
    """
    return OrderBook(
        symbol=symbol,
        timestamp=timestamp or datetime.now(timezone.utc),
        bids=tuple(PriceLevel(float(p), float(q)) for p, q in bids),
        asks=tuple(PriceLevel(float(p), float(q)) for p, q in asks),
    )
