"""Pure cart state transitions.

``reduce_cart`` never raises: invalid actions leave the cart unchanged and
malformed load payloads produce an empty cart. Lines are keyed by
(product_id, size) and keep their insertion order.
"""

from collections.abc import Iterable

import structlog

from storefront.cart.actions import AddItem, ClearCart, LoadCart, RemoveItem, SetQuantity
from storefront.cart.line_item import LineItem, decode_line_items
from storefront.errors import MalformedCartData

logger = structlog.get_logger(__name__)

CartItems = tuple[LineItem, ...]


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _index_of(items: CartItems, key: tuple[str, str]) -> int | None:
    return next((index for index, line in enumerate(items) if line.key == key), None)


def _without(items: CartItems, index: int) -> CartItems:
    return items[:index] + items[index + 1 :]


def _replace_at(items: CartItems, index: int, line: LineItem) -> CartItems:
    return items[:index] + (line,) + items[index + 1 :]


def merge_lines(lines: Iterable[LineItem]) -> CartItems:
    """Collapse lines sharing (product_id, size), summing their quantities."""
    merged: CartItems = ()
    for line in lines:
        index = _index_of(merged, line.key)
        if index is None:
            merged = merged + (line,)
        else:
            existing = merged[index]
            merged = _replace_at(merged, index, existing.with_quantity(existing.quantity + line.quantity))
    return merged


def _add(items: CartItems, action: AddItem) -> CartItems:
    if not _is_int(action.quantity):
        logger.warning("Ignoring add with non-integer quantity", product_id=action.product_id)
        return items

    index = _index_of(items, (action.product_id, action.size))
    if index is not None:
        line = items[index]
        quantity = line.quantity + action.quantity
        if quantity <= 0:
            return _without(items, index)
        return _replace_at(items, index, line.with_quantity(quantity))

    if action.quantity < 1:
        return items

    try:
        line = LineItem(
            product_id=action.product_id,
            name=action.name,
            unit_price_minor=action.unit_price_minor,
            size=action.size,
            quantity=action.quantity,
            image_ref=action.image_ref,
        )
    except ValueError as exc:
        logger.warning("Ignoring invalid cart line", product_id=action.product_id, error=str(exc))
        return items
    return items + (line,)


def _set_quantity(items: CartItems, action: SetQuantity) -> CartItems:
    if not _is_int(action.quantity):
        return items
    index = _index_of(items, (action.product_id, action.size))
    if index is None:
        return items
    if action.quantity <= 0:
        return _without(items, index)
    return _replace_at(items, index, items[index].with_quantity(action.quantity))


def _remove(items: CartItems, action: RemoveItem) -> CartItems:
    index = _index_of(items, (action.product_id, action.size))
    return items if index is None else _without(items, index)


def _load(action: LoadCart) -> CartItems:
    payload = action.items
    try:
        if isinstance(payload, (str, bytes)):
            lines = decode_line_items(payload)
        elif payload is None:
            lines = []
        else:
            lines = [LineItem.coerce(entry) for entry in payload]
    except (MalformedCartData, TypeError, ValueError) as exc:
        logger.warning("Discarding malformed cart data", error=str(exc))
        return ()
    return merge_lines(lines)


def reduce_cart(items: CartItems, action) -> CartItems:
    """Return the cart that results from applying ``action`` to ``items``."""
    if isinstance(action, AddItem):
        return _add(items, action)
    if isinstance(action, RemoveItem):
        return _remove(items, action)
    if isinstance(action, SetQuantity):
        return _set_quantity(items, action)
    if isinstance(action, ClearCart):
        return ()
    if isinstance(action, LoadCart):
        return _load(action)
    return items
