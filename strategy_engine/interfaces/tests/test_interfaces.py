"""
Tests for market data types and signals.
"""

import pytest
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

# Add project to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent.parent))

from strategy_engine.interfaces import (
    Kline,
    OrderType,
    SignalAction,
    create_order_book,
    create_order_signal,
    format_script_timestamp,
    hold_signal,
    unix_seconds,
)


class TestMarketData:

    def test_script_timestamp_is_utc(self):
        ts = datetime(2024, 3, 1, 14, 30, 5, tzinfo=timezone(timedelta(hours=2)))
        assert format_script_timestamp(ts) == "2024-03-01T12:30:05Z"

    def test_unix_seconds_naive_is_utc(self):
        assert unix_seconds(datetime(1970, 1, 2)) == 86400

    def test_kline_record(self):
        kline = Kline(
            timestamp=datetime(2024, 1, 1, tzinfo=timezone.utc),
            open=1.0, high=2.0, low=0.5, close=1.5, volume=10.0,
            symbol="BTCUSDT", interval="1m",
        )
        record = kline.as_record()

        assert record["timestamp"] == 1704067200
        assert record["close"] == 1.5
        assert "symbol" not in record

    def test_order_book_sides(self):
        book = create_order_book("BTCUSDT", bids=((99, 1), (98, 2)), asks=((101, 1),))

        assert book.has_both_sides
        assert book.best_bid == 99.0
        assert book.best_ask == 101.0
        assert book.mid_price == 100.0

    def test_one_sided_book(self):
        book = create_order_book("BTCUSDT", bids=(), asks=((101, 1),))

        assert not book.has_both_sides
        assert book.best_bid is None
        assert book.mid_price is None


class TestSignal:

    def test_hold_signal(self):
        signal = hold_signal("waiting")

        assert signal.is_hold
        assert not signal.is_actionable
        assert signal.reason == "waiting"

    def test_order_signal(self):
        signal = create_order_signal(
            SignalAction.SELL, 2, reason="exit", price=10, order_type=OrderType.LIMIT
        )

        assert signal.to_dict() == {
            "action": "sell",
            "quantity": 2.0,
            "price": 10.0,
            "type": "limit",
            "reason": "exit",
        }

    def test_order_signal_rejects_hold(self):
        with pytest.raises(ValueError):
            create_order_signal(SignalAction.HOLD, 1)

    def test_order_signal_rejects_non_positive_quantity(self):
        with pytest.raises(ValueError):
            create_order_signal(SignalAction.BUY, 0)
