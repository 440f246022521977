"""Cart storage port.

A storage keeps one cart per session key. Adapters may raise
``MalformedCartData`` when a stored payload cannot be decoded and
``PersistenceFailure`` when the backing store is unavailable.
"""

from abc import ABC, abstractmethod
from collections.abc import Sequence

from storefront.cart.line_item import LineItem


class CartStorage(ABC):
    @abstractmethod
    def load_cart(self, session_key: str) -> list[LineItem]:
        """Return the stored items, or an empty list when nothing is stored."""

    @abstractmethod
    def save_cart(self, session_key: str, items: Sequence[LineItem]) -> None:
        """Replace the stored items for ``session_key``."""

    def clear_cart(self, session_key: str) -> None:
        self.save_cart(session_key, [])
