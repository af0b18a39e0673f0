"""Tests for the bounded strategy log buffer."""

import pytest
import sys
from datetime import datetime, timezone
from pathlib import Path

# Add project to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent.parent))

from strategy_engine.actor.log_buffer import StrategyLogBuffer


class TestStrategyLogBuffer:

    def test_evicts_oldest(self):
        buf = StrategyLogBuffer(capacity=3)
        for i in range(5):
            buf.append("info", f"m{i}")

        assert len(buf) == 3
        assert [e.message for e in buf.recent(10)] == ["m2", "m3", "m4"]

    def test_recent_limit(self):
        buf = StrategyLogBuffer(capacity=10)
        for i in range(4):
            buf.append("debug", str(i))

        assert [e.message for e in buf.recent(2)] == ["2", "3"]
        assert buf.recent(0) == []
        assert buf.recent(-1) == []

    def test_entry_fields(self):
        buf = StrategyLogBuffer()
        ts = datetime(2024, 5, 1, tzinfo=timezone.utc)
        context = {"trigger": "on_kline"}

        entry = buf.append("error", "boom", context, timestamp=ts)
        context["trigger"] = "changed"

        assert entry.timestamp == ts
        assert entry.level == "error"
        assert entry.context == {"trigger": "on_kline"}

    def test_default_timestamp_is_utc(self):
        entry = StrategyLogBuffer().append("info", "x")
        assert entry.timestamp.tzinfo is not None

    def test_rejects_non_positive_capacity(self):
        with pytest.raises(ValueError):
            StrategyLogBuffer(capacity=0)
