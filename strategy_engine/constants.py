"""
Central constants for the strategy execution subsystem.

Single source of truth for script discovery, buffer sizes, lifecycle
thresholds and the script-facing names the runtime recognizes.
"""

# Script discovery
SCRIPT_EXTENSION = ".star"
DEFAULT_SEARCH_PATHS = ("strategy", ".", "strategies")  # Tried in this order

# Interval used when a script declares none
DEFAULT_INTERVAL = "1m"

# Actor sizing
KLINE_BUFFER_SIZE = 100   # Bars kept per actor
LOG_BUFFER_SIZE = 100     # Log entries kept per actor
MIN_BARS_FOR_RUNNING = 10  # Bars needed before Initializing -> Running
TICK_INTERVAL_SECONDS = 30.0

# Script-facing names
CALLBACK_NAMES = (
    "settings",
    "on_start",
    "on_stop",
    "on_kline",
    "on_orderbook",
    "on_ticker",
)
LEGACY_SIGNAL_FIELDS = ("action", "quantity", "price", "type", "reason")
SERIES_NAMES = ("open", "high", "low", "close", "volume")
