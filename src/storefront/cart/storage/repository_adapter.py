"""Cart storage backed by the ``ShoppingCart`` aggregate repository."""

from collections.abc import Sequence

from protean.domain import Domain
from protean.exceptions import ObjectNotFoundError
from sqlalchemy.exc import SQLAlchemyError

from storefront.cart.cart import ShoppingCart
from storefront.cart.line_item import LineItem, decode_line_items, encode_line_items
from storefront.cart.storage.port import CartStorage
from storefront.errors import PersistenceFailure


class RepositoryCartStorage(CartStorage):
    def __init__(self, domain: Domain) -> None:
        self._domain = domain

    def _repository(self):
        return self._domain.repository_for(ShoppingCart)

    def _find(self, session_key: str) -> ShoppingCart | None:
        try:
            return self._repository().get(session_key)
        except ObjectNotFoundError:
            return None
        except SQLAlchemyError as exc:
            raise PersistenceFailure(f"Could not load cart: {exc}", session_key=session_key) from exc

    def load_cart(self, session_key: str) -> list[LineItem]:
        cart = self._find(session_key)
        if cart is None:
            return []
        return decode_line_items(cart.items)

    def save_cart(self, session_key: str, items: Sequence[LineItem]) -> None:
        cart = self._find(session_key) or ShoppingCart.open(session_key)
        cart.replace_items(encode_line_items(items), sum(item.quantity for item in items))
        try:
            self._repository().add(cart)
        except SQLAlchemyError as exc:
            raise PersistenceFailure(f"Could not save cart: {exc}", session_key=session_key) from exc
