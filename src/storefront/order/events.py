"""Domain events for the Order aggregate."""

from protean.fields import DateTime, Identifier, Integer, String, Text

from storefront.domain import storefront


@storefront.event(part_of="Order")
class OrderPlaced:
    """An order was placed and priced from authoritative catalogue data."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    user_id = Identifier(required=True)
    lines = Text(required=True)  # JSON: list of line dicts
    payment_method = String(required=True)
    total_minor = Integer(required=True)
    currency = String(default="INR")
    coupon_code = String()
    placed_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderStatusChanged:
    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    note = String()
    tracking_number = String()
    courier_service = String()
    changed_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderDelivered:
    """The order reached the customer. Raised once per order."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    delivered_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderCancelled:
    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    reason = String()
    cancelled_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderRefunded:
    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    amount_minor = Integer(required=True)
    reason = String()
    refunded_at = DateTime(required=True)
