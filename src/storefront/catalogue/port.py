"""Catalogue port: authoritative product data and stock mutation.

Order placement reads prices and stock through this port and never trusts
what the client last displayed. ``decrement_stock`` must be atomic per
product: the stock check and the write happen as one step, so concurrent
orders cannot oversell.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, replace


@dataclass(frozen=True)
class SizeStock:
    size: str
    stock: int


@dataclass(frozen=True)
class ProductRecord:
    """Read model of a stock-bearing product."""

    product_id: str
    name: str
    price_minor: int
    images: tuple[str, ...] = ()
    sizes: tuple[SizeStock, ...] = ()
    stock: int = 0

    def stock_for(self, size: str) -> int:
        return next((entry.stock for entry in self.sizes if entry.size == size), 0)

    def available_for(self, size: str) -> int:
        """Units that can be sold in ``size``, bounded by the aggregate counter."""
        return min(self.stock_for(size), self.stock)

    def with_stock_change(self, size: str, delta: int) -> "ProductRecord":
        sizes = tuple(
            SizeStock(entry.size, entry.stock + delta) if entry.size == size else entry for entry in self.sizes
        )
        if not any(entry.size == size for entry in self.sizes):
            sizes = sizes + (SizeStock(size, delta),)
        return replace(self, sizes=sizes, stock=self.stock + delta)


class CatalogueGateway(ABC):
    @abstractmethod
    def get_product(self, product_id: str) -> ProductRecord:
        """Return the product or raise ``ProductNotFound``."""

    @abstractmethod
    def decrement_stock(self, product_id: str, size: str, quantity: int) -> ProductRecord:
        """Atomically take ``quantity`` units of ``size``.

        Raises ``InsufficientStock`` when fewer units remain, leaving stock
        untouched, and ``PersistenceFailure`` when the store cannot be reached
        in time.
        """

    @abstractmethod
    def restore_stock(self, product_id: str, size: str, quantity: int) -> ProductRecord:
        """Return ``quantity`` units of ``size`` to stock."""
