"""
Signal normalization.

A script produces its decision in one of two ways: an event callback returns
a mapping (CallbackResult), or the module body assigns top-level variables
(LegacyResult). Both resolve to a Signal through ``normalize_signal``.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Union

from strategy_engine.constants import LEGACY_SIGNAL_FIELDS
from strategy_engine.interfaces.signal import Signal, SignalAction, OrderType


@dataclass(frozen=True)
class CallbackResult:
    """Mapping returned by an event callback."""
    fields: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class LegacyResult:
    """Top-level variables left by a full script execution."""
    fields: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_globals(cls, glb: Mapping[str, Any]) -> "LegacyResult":
        return cls({k: glb[k] for k in LEGACY_SIGNAL_FIELDS if k in glb})


ScriptResult = Union[CallbackResult, LegacyResult]


def _is_real(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def normalize_signal(result: ScriptResult) -> Signal:
    """
    Convert a script result into a Signal.

    Starts from hold/market/0/0/"" and copies each recognized field whose
    value has the right type; anything else is ignored. Unrecognized action
    or type strings are kept as written.

    Parameters
    ----------
    result : CallbackResult or LegacyResult
        Raw script output

    Returns
    -------
    Signal
    """
    values: Dict[str, Any] = {
        "action": SignalAction.HOLD.value,
        "quantity": 0.0,
        "price": 0.0,
        "order_type": OrderType.MARKET.value,
        "reason": "",
    }

    fields = result.fields
    for key, target in (("action", "action"), ("type", "order_type"), ("reason", "reason")):
        value = fields.get(key)
        if isinstance(value, str):
            values[target] = value

    for key in ("quantity", "price"):
        value = fields.get(key)
        if _is_real(value):
            values[key] = float(value)

    return Signal(**values)
