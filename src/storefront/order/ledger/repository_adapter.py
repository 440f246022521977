"""Order ledger backed by the ``Order`` aggregate repository.

Order numbers are unique at the storage level (``unique=True`` on the field);
the explicit check under a lock turns a collision into
``DuplicateOrderNumber`` before the provider reports it. Updates re-apply
their change to a freshly loaded order when another writer got there first.
"""

import structlog
from protean.domain import Domain
from protean.exceptions import ExpectedVersionError, ObjectNotFoundError, ValidationError
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from storefront.errors import DuplicateOrderNumber, OrderNotFound, PersistenceFailure
from storefront.order.ledger.port import OrderLedger, page_bounds
from storefront.order.order import Order
from storefront.order.repository import OrderRepository  # noqa: F401
from storefront.utils.locks import KeyedLocks

logger = structlog.get_logger(__name__)

_NUMBERING_LOCK_KEY = "order-number"


class RepositoryOrderLedger(OrderLedger):
    def __init__(self, domain: Domain, locks: KeyedLocks | None = None, conflict_attempts: int = 5) -> None:
        self._domain = domain
        self._locks = locks or KeyedLocks()
        self.conflict_attempts = max(int(conflict_attempts), 1)

    def _repository(self):
        return self._domain.repository_for(Order)

    def add(self, order: Order) -> Order:
        with self._locks.hold(_NUMBERING_LOCK_KEY):
            if self.find_by_number(order.order_number) is not None:
                raise DuplicateOrderNumber(
                    f"Order number {order.order_number} is already taken",
                    order_number=order.order_number,
                )
            try:
                self._repository().add(order)
            except ValidationError as exc:
                if "order_number" in exc.messages:
                    raise DuplicateOrderNumber(
                        f"Order number {order.order_number} is already taken",
                        order_number=order.order_number,
                    ) from exc
                raise
            except IntegrityError as exc:
                raise DuplicateOrderNumber(
                    f"Order number {order.order_number} is already taken",
                    order_number=order.order_number,
                ) from exc
            except SQLAlchemyError as exc:
                raise PersistenceFailure(f"Could not save order: {exc}", order_number=order.order_number) from exc
        return order

    def get(self, order_id: str) -> Order:
        try:
            return self._repository().get(order_id)
        except ObjectNotFoundError:
            raise OrderNotFound(str(order_id)) from None
        except SQLAlchemyError as exc:
            raise PersistenceFailure(f"Could not load order: {exc}", order_id=str(order_id)) from exc

    def update(self, order_id: str, change) -> Order:
        with self._locks.hold(str(order_id)):
            for attempt in range(1, self.conflict_attempts + 1):
                order = self.get(order_id)
                change(order)
                try:
                    self._repository().add(order)
                except ExpectedVersionError as exc:
                    logger.warning(
                        "Order write conflict, reloading",
                        order_id=str(order_id),
                        attempt=attempt,
                        error=str(exc),
                    )
                    continue
                except SQLAlchemyError as exc:
                    raise PersistenceFailure(f"Could not update order: {exc}", order_id=str(order_id)) from exc
                return order

        raise PersistenceFailure(
            f"Order {order_id} kept changing underneath us after {self.conflict_attempts} attempts",
            order_id=str(order_id),
        )

    def list_for_user(self, user_id: str, page: int = 1, limit: int = 10) -> tuple[list[Order], int]:
        offset, limit = page_bounds(page, limit)
        try:
            return self._repository().page_for_user(user_id, offset, limit)
        except SQLAlchemyError as exc:
            raise PersistenceFailure(f"Could not list orders: {exc}", user_id=str(user_id)) from exc

    def find_by_number(self, order_number: str) -> Order | None:
        try:
            return self._repository().find_by_number(order_number)
        except SQLAlchemyError as exc:
            raise PersistenceFailure(f"Could not look up order: {exc}", order_number=order_number) from exc
