"""Order ledger port: where placed orders are persisted and looked up.

Adapters enforce order-number uniqueness (``DuplicateOrderNumber``), report
unreachable storage as ``PersistenceFailure`` and missing orders as
``OrderNotFound``. Orders are never deleted.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable


class OrderLedger(ABC):
    @abstractmethod
    def add(self, order):
        """Persist a new order. Raises ``DuplicateOrderNumber`` if the number is taken."""

    @abstractmethod
    def get(self, order_id: str):
        """Return the order or raise ``OrderNotFound``."""

    @abstractmethod
    def update(self, order_id: str, change: Callable) -> object:
        """Load the order, apply ``change(order)`` and persist the result."""

    @abstractmethod
    def list_for_user(self, user_id: str, page: int = 1, limit: int = 10) -> tuple[list, int]:
        """Return one page of the user's orders, newest first, and the user's total count."""

    @abstractmethod
    def find_by_number(self, order_number: str):
        """Return the order with ``order_number``, or None."""


def page_bounds(page: int, limit: int) -> tuple[int, int]:
    """Offset and limit for a 1-based page."""
    page = max(int(page), 1)
    limit = max(int(limit), 1)
    return (page - 1) * limit, limit
