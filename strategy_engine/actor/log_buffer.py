"""Bounded per-actor log history."""

from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Deque, Dict, List, Optional

from strategy_engine.constants import LOG_BUFFER_SIZE


@dataclass(frozen=True)
class LogEntry:
    timestamp: datetime
    level: str
    message: str
    context: Dict[str, Any] = field(default_factory=dict)


class StrategyLogBuffer:
    """
    Circular buffer of LogEntry; the oldest entry is evicted when full.

    Examples
    --------
    >>> buf = StrategyLogBuffer(capacity=2)
    >>> for msg in ("a", "b", "c"):
    ...     buf.append("info", msg)
    >>> [e.message for e in buf.recent(10)]
    ['b', 'c']
    """

    def __init__(self, capacity: int = LOG_BUFFER_SIZE):
        if capacity <= 0:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self.capacity = capacity
        self._entries: Deque[LogEntry] = deque(maxlen=capacity)

    def __len__(self) -> int:
        return len(self._entries)

    def append(
        self,
        level: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        timestamp: Optional[datetime] = None,
    ) -> LogEntry:
        entry = LogEntry(
            timestamp=timestamp or datetime.now(timezone.utc),
            level=level,
            message=message,
            context=dict(context or {}),
        )
        self._entries.append(entry)
        return entry

    def recent(self, limit: int) -> List[LogEntry]:
        """Last `limit` entries, oldest first."""
        if limit <= 0:
            return []
        entries = list(self._entries)
        return entries[-limit:]
