"""Cart actions understood by the cart reducer."""

from dataclasses import dataclass
from typing import Any

from storefront.cart.line_item import DEFAULT_SIZE


@dataclass(frozen=True)
class AddItem:
    """Add ``quantity`` units of a product in ``size``, merging with an existing line."""

    product_id: str
    name: str
    unit_price_minor: int
    size: str = DEFAULT_SIZE
    quantity: int = 1
    image_ref: str | None = None

    @classmethod
    def from_product(cls, product, size: str = DEFAULT_SIZE, quantity: int = 1) -> "AddItem":
        """Build the action from a catalogue ``ProductRecord``."""
        return cls(
            product_id=product.product_id,
            name=product.name,
            unit_price_minor=product.price_minor,
            size=size,
            quantity=quantity,
            image_ref=product.images[0] if product.images else None,
        )


@dataclass(frozen=True)
class RemoveItem:
    product_id: str
    size: str


@dataclass(frozen=True)
class SetQuantity:
    """Replace a line's quantity in place; zero or less removes the line."""

    product_id: str
    size: str
    quantity: int


@dataclass(frozen=True)
class ClearCart:
    pass


@dataclass(frozen=True)
class LoadCart:
    """Replace the whole cart, typically with previously persisted items."""

    items: Any = ()
