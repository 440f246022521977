"""In-process order ledger for tests and local development."""

import threading

from storefront.errors import DuplicateOrderNumber, OrderNotFound, PersistenceFailure
from storefront.order.ledger.port import OrderLedger, page_bounds


class InMemoryOrderLedger(OrderLedger):
    def __init__(self) -> None:
        self._orders: dict[str, object] = {}
        self._lock = threading.Lock()
        self.fail_adds = False
        self.fail_updates = False

    def configure(self, fail_adds: bool = False, fail_updates: bool = False) -> None:
        """Simulate storage outages on writes."""
        self.fail_adds = fail_adds
        self.fail_updates = fail_updates

    def add(self, order):
        if self.fail_adds:
            raise PersistenceFailure("Order storage unavailable", order_number=order.order_number)
        with self._lock:
            if any(existing.order_number == order.order_number for existing in self._orders.values()):
                raise DuplicateOrderNumber(
                    f"Order number {order.order_number} is already taken",
                    order_number=order.order_number,
                )
            self._orders[str(order.id)] = order
        return order

    def get(self, order_id: str):
        with self._lock:
            order = self._orders.get(str(order_id))
        if order is None:
            raise OrderNotFound(str(order_id))
        return order

    def update(self, order_id: str, change):
        if self.fail_updates:
            raise PersistenceFailure("Order storage unavailable", order_id=str(order_id))
        with self._lock:
            order = self._orders.get(str(order_id))
            if order is None:
                raise OrderNotFound(str(order_id))
            change(order)
        return order

    def list_for_user(self, user_id: str, page: int = 1, limit: int = 10):
        offset, limit = page_bounds(page, limit)
        with self._lock:
            owned = [order for order in self._orders.values() if str(order.user_id) == str(user_id)]
        owned.sort(key=lambda order: order.created_at, reverse=True)
        return owned[offset : offset + limit], len(owned)

    def find_by_number(self, order_number: str):
        with self._lock:
            return next((order for order in self._orders.values() if order.order_number == order_number), None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._orders)
