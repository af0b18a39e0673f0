"""
Signal Types for Strategy Decisions.

Design principles:
- Signal = the trading decision one script invocation produced
- Every invocation yields exactly one Signal; "hold" means do nothing
- Strings are kept as the script wrote them; the order manager owns the
  decision to reject an action or order type it does not support

"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict


class SignalAction(Enum):
    """
    What the strategy wants to do.

    BUY: Open or add to a long position
    SELL: Reduce, close or go short
    HOLD: No order
    """
    BUY = "buy"
    SELL = "sell"
    HOLD = "hold"


class OrderType(Enum):
    """How the resulting order should be placed."""
    MARKET = "market"
    LIMIT = "limit"


@dataclass(frozen=True)
class Signal:
    """
    Trading decision returned by a strategy invocation.

    Attributes
    ----------
    action : str
        "buy", "sell" or "hold"
    quantity : float
        Order size in base units (0 for hold)
    price : float
        Limit price; 0 for market orders
    order_type : str
        "market" or "limit"
    reason : str
        Human-readable explanation written by the script

    Examples
    --------
    >>> Signal(action="buy", quantity=0.01, price=100.0, order_type="limit",
    ...        reason="rsi_oversold")
    """
    action: str = SignalAction.HOLD.value
    quantity: float = 0.0
    price: float = 0.0
    order_type: str = OrderType.MARKET.value
    reason: str = ""

    @property
    def is_hold(self) -> bool:
        return self.action == SignalAction.HOLD.value

    @property
    def is_actionable(self) -> bool:
        """True if this signal should produce an order request."""
        return not self.is_hold

    def to_dict(self) -> Dict[str, Any]:
        """Field mapping in the shape scripts return it."""
        return {
            "action": self.action,
            "quantity": self.quantity,
            "price": self.price,
            "type": self.order_type,
            "reason": self.reason,
        }


# =============================================================================
# Factory Functions
# =============================================================================

def hold_signal(reason: str = "") -> Signal:
    """The default decision: no order."""
    return Signal(reason=reason)


def create_order_signal(
    action: SignalAction,
    quantity: float,
    reason: str = "",
    price: float = 0.0,
    order_type: OrderType = OrderType.MARKET,
) -> Signal:
    """
    Create a buy or sell signal.

    Parameters
    ----------
    action : SignalAction
        BUY or SELL
    quantity : float
        Order size, must be positive
    reason : str
        Why the order is placed
    price : float
        Limit price (ignored for market orders)
    order_type : OrderType
        MARKET or LIMIT

    Returns
    -------
    Signal
    """
    if action == SignalAction.HOLD:
        raise ValueError("Use hold_signal() for HOLD")
    if quantity <= 0:
        raise ValueError(f"quantity must be positive, got {quantity}")

    return Signal(
        action=action.value,
        quantity=float(quantity),
        price=float(price),
        order_type=order_type.value,
        reason=reason,
    )
