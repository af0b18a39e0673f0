"""
Collaborator Protocols and Outbound Messages.

A strategy actor talks to three external components, all fire-and-forget:
- MarketDataSource: kline subscriptions and historical backfill
- OrderManager: order requests and price updates for stop/trailing orders
- RiskManager: notification of every actionable signal

Exchange connectivity, order placement and risk evaluation live behind
these interfaces and are not part of this package.
"""

from dataclasses import dataclass
from typing import Protocol


# =============================================================================
# Outbound Messages
# =============================================================================


@dataclass(frozen=True)
class SubscribeKlines:
    """Register interest in bars for (symbol, interval)."""
    symbol: str
    interval: str


@dataclass(frozen=True)
class HistoricalKlinesRequest:
    """Ask for the most recent `limit` bars to prefill the buffer."""
    symbol: str
    interval: str
    limit: int


@dataclass(frozen=True)
class OrderRequest:
    """Order derived from a non-hold signal."""
    symbol: str
    side: str
    type: str
    quantity: float
    price: float
    reason: str


@dataclass(frozen=True)
class RiskCheck:
    """Risk notification sent alongside every order request."""
    symbol: str
    action: str
    quantity: float
    price: float


@dataclass(frozen=True)
class PriceUpdate:
    """Latest observed price for a symbol (close, mid or last trade)."""
    symbol: str
    price: float


# =============================================================================
# Protocols (minimal interfaces)
# =============================================================================


class MarketDataSource(Protocol):
    """Source of live and historical klines."""

    def subscribe_klines(self, request: SubscribeKlines) -> None:
        ...

    def request_historical_klines(self, request: HistoricalKlinesRequest) -> None:
        """
        Request a backfill.

        The source answers asynchronously by delivering KlineData messages to
        the requesting actor, oldest first.
        """
        ...


class OrderManager(Protocol):
    """Receives order requests and price updates."""

    def submit_order(self, order: OrderRequest) -> None:
        ...

    def update_price(self, update: PriceUpdate) -> None:
        ...


class RiskManager(Protocol):
    """Receives a notification for every order a strategy requests."""

    def check_signal(self, check: RiskCheck) -> None:
        ...
