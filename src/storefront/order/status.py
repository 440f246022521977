"""Order status transition policies.

The workflow always accepts any enumerated status by default. Installations
that want to forbid moving backwards (e.g. ``shipped`` to ``pending``) switch
on the forward-only policy with::

    [custom.order_workflow]
    strict_transitions = true
"""

from collections.abc import Mapping
from enum import Enum

from protean.exceptions import ValidationError


class OrderStatus(Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


TERMINAL_STATES = frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED, OrderStatus.REFUNDED})

SIDE_BRANCHES = frozenset({OrderStatus.CANCELLED, OrderStatus.REFUNDED})

_FULFILLMENT_ORDER = {
    OrderStatus.PENDING: 0,
    OrderStatus.CONFIRMED: 1,
    OrderStatus.PROCESSING: 2,
    OrderStatus.SHIPPED: 3,
    OrderStatus.DELIVERED: 4,
}


class PermissiveTransitions:
    """Any enumerated status may follow any other."""

    strict = False

    def check(self, current: OrderStatus, target: OrderStatus) -> None:
        return None


class ForwardOnlyTransitions:
    """Fulfillment only moves forward; cancel and refund branch off any open state.

    Terminal states accept only a repeat of themselves, which records a
    redundant history entry without changing the order.
    """

    strict = True

    def check(self, current: OrderStatus, target: OrderStatus) -> None:
        if current == target:
            return
        if current in TERMINAL_STATES:
            raise ValidationError(
                {"order_status": [f"Order is {current.value} and cannot move to {target.value}"]}
            )
        if target in SIDE_BRANCHES:
            return
        if _FULFILLMENT_ORDER[target] < _FULFILLMENT_ORDER[current]:
            raise ValidationError(
                {"order_status": [f"Cannot move an order back from {current.value} to {target.value}"]}
            )


def policy_from_config(settings: Mapping | None):
    if (settings or {}).get("strict_transitions", False):
        return ForwardOnlyTransitions()
    return PermissiveTransitions()


def parse_status(value) -> OrderStatus:
    if isinstance(value, OrderStatus):
        return value
    try:
        return OrderStatus(str(value).strip().lower())
    except ValueError:
        allowed = ", ".join(status.value for status in OrderStatus)
        raise ValidationError({"order_status": [f"Unknown status {value!r}; expected one of {allowed}"]}) from None
