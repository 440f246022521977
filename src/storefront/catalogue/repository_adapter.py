"""Catalogue backed by the ``StockedProduct`` repository.

Stock changes run load-check-save under a per-product lock, so the
conditional decrement behaves as a single atomic step for every caller that
goes through this adapter. Writers in other processes are caught by the
aggregate's version check: the change is re-applied to a freshly loaded
product a bounded number of times before giving up.
"""

import structlog
from protean.domain import Domain
from protean.exceptions import ExpectedVersionError, ObjectNotFoundError
from sqlalchemy.exc import SQLAlchemyError

from storefront.catalogue.port import CatalogueGateway, ProductRecord
from storefront.catalogue.product import StockedProduct
from storefront.errors import PersistenceFailure, ProductNotFound
from storefront.utils.locks import KeyedLocks

logger = structlog.get_logger(__name__)


class RepositoryCatalogue(CatalogueGateway):
    def __init__(self, domain: Domain, locks: KeyedLocks | None = None, conflict_attempts: int = 5) -> None:
        self._domain = domain
        self._locks = locks or KeyedLocks()
        self.conflict_attempts = max(int(conflict_attempts), 1)

    def _repository(self):
        return self._domain.repository_for(StockedProduct)

    def _load(self, product_id: str) -> StockedProduct:
        try:
            return self._repository().get(product_id)
        except ObjectNotFoundError:
            raise ProductNotFound(product_id) from None
        except SQLAlchemyError as exc:
            raise PersistenceFailure(f"Could not load product {product_id}: {exc}", product_id=product_id) from exc

    def _save(self, product: StockedProduct) -> None:
        try:
            self._repository().add(product)
        except SQLAlchemyError as exc:
            raise PersistenceFailure(f"Could not save product {product.id}: {exc}", product_id=str(product.id)) from exc

    def _change_stock(self, product_id: str, change) -> StockedProduct:
        with self._locks.hold(product_id):
            for attempt in range(1, self.conflict_attempts + 1):
                product = self._load(product_id)
                change(product)
                try:
                    self._save(product)
                except ExpectedVersionError as exc:
                    logger.warning(
                        "Stock write conflict, reloading",
                        product_id=product_id,
                        attempt=attempt,
                        error=str(exc),
                    )
                    continue
                return product

        raise PersistenceFailure(
            f"Stock for {product_id} kept changing underneath us after {self.conflict_attempts} attempts",
            product_id=product_id,
        )

    def add_product(self, product: StockedProduct) -> ProductRecord:
        self._save(product)
        return product.to_record()

    def get_product(self, product_id: str) -> ProductRecord:
        return self._load(product_id).to_record()

    def decrement_stock(self, product_id: str, size: str, quantity: int) -> ProductRecord:
        product = self._change_stock(product_id, lambda product: product.reserve(size, quantity))
        logger.debug("Stock decremented", product_id=product_id, size=size, quantity=quantity)
        return product.to_record()

    def restore_stock(self, product_id: str, size: str, quantity: int) -> ProductRecord:
        product = self._change_stock(product_id, lambda product: product.release(size, quantity))
        logger.debug("Stock restored", product_id=product_id, size=size, quantity=quantity)
        return product.to_record()
