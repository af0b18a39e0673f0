"""
Callback Lifecycle Validator.

Finds out which lifecycle and event callbacks a script defines, without
invoking any of them. The actor uses the result to decide what to dispatch.
"""

import inspect
from dataclasses import dataclass

from strategy_engine.constants import CALLBACK_NAMES
from strategy_engine.logging_config import get_logger
from strategy_engine.runtime.errors import StrategyError, StrategyLoadError, StrategyValidationError

logger = get_logger(__name__)


@dataclass(frozen=True)
class Callbacks:
    """Capability set of one strategy script."""
    has_settings: bool = False
    has_on_start: bool = False
    has_on_stop: bool = False
    has_on_kline: bool = False
    has_on_orderbook: bool = False
    has_on_ticker: bool = False

    @property
    def has_event_callback(self) -> bool:
        """True if any market-event callback is defined."""
        return self.has_on_kline or self.has_on_orderbook or self.has_on_ticker


def validate_callbacks(engine, name: str) -> Callbacks:
    """
    Execute a script once and report the callbacks it defines.

    The module body runs with builtins, empty config and state, and empty
    market-data lists; no callback is called.

    Args:
        engine: StrategyEngine used to load and execute the script
        name: Strategy name

    Returns:
        Callbacks capability set

    Raises:
        StrategyLoadError: If the script cannot be found
        StrategyValidationError: If the script fails to compile or execute
    """
    try:
        defined = engine.definitions(name)
    except StrategyLoadError:
        raise
    except StrategyError as e:
        raise StrategyValidationError(f"strategy validation failed: {e}") from e

    callbacks = Callbacks(**{
        f"has_{key}": inspect.isfunction(defined.get(key)) for key in CALLBACK_NAMES
    })

    logger.debug(
        "strategy_callbacks_validated",
        strategy=name,
        has_on_kline=callbacks.has_on_kline,
        has_on_orderbook=callbacks.has_on_orderbook,
        has_on_ticker=callbacks.has_on_ticker,
        has_settings=callbacks.has_settings,
    )
    return callbacks
