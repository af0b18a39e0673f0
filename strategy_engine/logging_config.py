"""
Structured logging configuration using structlog.

Provides JSON-structured logs that are queryable and include:
- Timestamp
- Log level
- Component name
- Strategy context (strategy, symbol, exchange) bound per actor

"""

import structlog
import logging
import sys
from typing import Optional


def configure_structlog(log_level: str = "INFO", log_file: Optional[str] = None):
    """
    Configure structlog for the application.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional file path for log output
    """
    # Set up standard logging
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout if not log_file else open(log_file, 'a'),
        level=getattr(logging, log_level.upper()),
    )

    # Configure structlog
    structlog.configure(
        processors=[
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer()
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.BoundLogger:
    """
    Get a configured structlog logger.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger
    """
    return structlog.get_logger(name)


def get_strategy_logger(name: str, strategy: str, symbol: str, exchange: str) -> structlog.BoundLogger:
    """
    Logger with the strategy identity bound to every event.

    Args:
        name: Logger name (typically __name__)
        strategy: Strategy script name
        symbol: Traded symbol
        exchange: Exchange name

    Returns:
        Bound structlog logger
    """
    return get_logger(name).bind(strategy=strategy, symbol=symbol, exchange=exchange)
