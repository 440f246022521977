"""Cart store: the session's authoritative cart with write-through persistence.

Every dispatched action runs through ``reduce_cart`` and the result is written
to the cart storage. Storage failures are logged and never raised; the
in-memory cart stays authoritative for the session.
"""

import structlog

from storefront.cart.actions import AddItem, ClearCart, LoadCart, RemoveItem, SetQuantity
from storefront.cart.line_item import DEFAULT_SIZE, LineItem
from storefront.cart.reducer import CartItems, reduce_cart
from storefront.cart.storage.port import CartStorage
from storefront.errors import StorefrontError
from storefront.pricing.engine import price_items

logger = structlog.get_logger(__name__)


class CartStore:
    def __init__(self, storage: CartStorage, session_key: str) -> None:
        self._storage = storage
        self.session_key = session_key
        self._items: CartItems = ()

    @classmethod
    def restored(cls, storage: CartStorage, session_key: str) -> "CartStore":
        store = cls(storage, session_key)
        store.restore()
        return store

    @property
    def items(self) -> CartItems:
        return self._items

    def restore(self) -> CartItems:
        """Load the persisted cart, falling back to an empty one.

        Restoring does not write back: a storage outage must not overwrite
        the persisted cart with an empty one.
        """
        try:
            loaded = self._storage.load_cart(self.session_key)
        except StorefrontError as exc:
            logger.warning(
                "Could not restore cart, starting empty",
                session_key=self.session_key,
                kind=exc.kind,
                error=exc.message,
            )
            loaded = []
        self._items = reduce_cart(self._items, LoadCart(loaded))
        return self._items

    def dispatch(self, action) -> CartItems:
        self._items = reduce_cart(self._items, action)
        self._write_through()
        return self._items

    def _write_through(self) -> None:
        try:
            self._storage.save_cart(self.session_key, list(self._items))
        except Exception as exc:
            logger.warning(
                "cart.persist_failed",
                session_key=self.session_key,
                error=str(exc),
                exc_info=True,
            )

    # -------------------------------------------------------------------
    # Shortcuts
    # -------------------------------------------------------------------
    def add_item(self, product, size: str = DEFAULT_SIZE, quantity: int = 1) -> CartItems:
        return self.dispatch(AddItem.from_product(product, size=size, quantity=quantity))

    def remove_item(self, product_id: str, size: str) -> CartItems:
        return self.dispatch(RemoveItem(product_id=product_id, size=size))

    def set_quantity(self, product_id: str, size: str, quantity: int) -> CartItems:
        return self.dispatch(SetQuantity(product_id=product_id, size=size, quantity=quantity))

    def clear(self) -> CartItems:
        return self.dispatch(ClearCart())

    def load(self, items) -> CartItems:
        return self.dispatch(LoadCart(items))

    # -------------------------------------------------------------------
    # Read helpers
    # -------------------------------------------------------------------
    @property
    def total_items(self) -> int:
        return sum(line.quantity for line in self._items)

    def line_for(self, product_id: str, size: str) -> LineItem | None:
        return next((line for line in self._items if line.key == (product_id, size)), None)

    def is_in_cart(self, product_id: str, size: str) -> bool:
        return self.line_for(product_id, size) is not None

    def quantity_of(self, product_id: str, size: str) -> int:
        line = self.line_for(product_id, size)
        return line.quantity if line else 0

    def pricing(self, rules, discount_rule=None):
        return price_items(self._items, rules, discount_rule=discount_rule)
