"""Per-user state tracking for Locust load test scenarios.

Each Locust user instance keeps its own state; nothing is shared across
users.
"""

import uuid
from dataclasses import dataclass, field


@dataclass
class CheckoutState:
    """Tracks one shopper's cart and the order it becomes."""

    user_id: str = field(default_factory=lambda: f"lt-user-{uuid.uuid4().hex[:8]}")
    session_key: str = field(default_factory=lambda: f"lt-session-{uuid.uuid4().hex[:8]}")
    cart_items: list[dict] = field(default_factory=list)
    order_id: str | None = None
    order_number: str | None = None


@dataclass
class FulfillmentState:
    """Tracks an order being pushed through fulfillment by an admin."""

    order_id: str | None = None
    current_status: str = "pending"
