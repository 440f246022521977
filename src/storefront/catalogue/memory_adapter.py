"""In-process catalogue for tests and local development."""

from storefront.catalogue.port import CatalogueGateway, ProductRecord
from storefront.errors import InsufficientStock, PersistenceFailure, ProductNotFound
from storefront.utils.locks import KeyedLocks


class InMemoryCatalogue(CatalogueGateway):
    def __init__(self, products=(), locks: KeyedLocks | None = None) -> None:
        self._products: dict[str, ProductRecord] = {}
        self._locks = locks or KeyedLocks()
        self.unavailable = False
        for product in products:
            self.add_product(product)

    def configure(self, unavailable: bool = False) -> None:
        """Simulate a catalogue that cannot be reached."""
        self.unavailable = unavailable

    def _check_available(self) -> None:
        if self.unavailable:
            raise PersistenceFailure("Catalogue unavailable")

    def add_product(self, product: ProductRecord) -> ProductRecord:
        self._products[product.product_id] = product
        return product

    def get_product(self, product_id: str) -> ProductRecord:
        self._check_available()
        try:
            return self._products[product_id]
        except KeyError:
            raise ProductNotFound(product_id) from None

    def decrement_stock(self, product_id: str, size: str, quantity: int) -> ProductRecord:
        with self._locks.hold(product_id):
            product = self.get_product(product_id)
            available = product.available_for(size)
            if quantity > available:
                raise InsufficientStock(
                    product_id=product_id,
                    size=size,
                    requested=quantity,
                    available=available,
                    product_name=product.name,
                )
            updated = self._products[product_id] = product.with_stock_change(size, -quantity)
            return updated

    def restore_stock(self, product_id: str, size: str, quantity: int) -> ProductRecord:
        with self._locks.hold(product_id):
            product = self.get_product(product_id)
            updated = self._products[product_id] = product.with_stock_change(size, quantity)
            return updated
