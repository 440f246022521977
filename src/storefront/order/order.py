"""Order aggregate: an immutable purchase snapshot plus its fulfillment state.

Lines and pricing are captured once at placement and never change, so later
catalogue price or stock changes do not alter historical orders. After
placement only the status workflow (status, tracking, delivery) and the
refund fields change.

Status history is append-only. Entries carry a ``sequence`` so their order
survives persistence.
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import (
    Boolean,
    DateTime,
    HasMany,
    Identifier,
    Integer,
    String,
    Text,
    ValueObject,
)

from storefront.domain import storefront
from storefront.errors import ConsistencyViolation
from storefront.order.events import (
    OrderCancelled,
    OrderDelivered,
    OrderPlaced,
    OrderRefunded,
    OrderStatusChanged,
)
from storefront.order.status import OrderStatus, PermissiveTransitions, parse_status


class PaymentStatus(Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


class PaymentMethod(Enum):
    CARD = "card"
    UPI = "upi"
    COD = "cod"
    WALLET = "wallet"


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@storefront.value_object(part_of="Order")
class ShippingAddress:
    """Delivery address captured at checkout. Later profile changes do not affect it."""

    full_name = String(required=True, max_length=255)
    phone = String(required=True, max_length=20)
    email = String(required=True, max_length=254)
    street = String(required=True, max_length=255)
    apartment = String(max_length=255)
    city = String(required=True, max_length=100)
    state = String(required=True, max_length=100)
    pincode = String(required=True, max_length=10)
    country = String(required=True, max_length=100, default="India")


@storefront.value_object(part_of="Order")
class OrderPricing:
    """Price of record, in minor units, locked at placement."""

    subtotal_minor = Integer(required=True, min_value=0)
    shipping_minor = Integer(default=0, min_value=0)
    tax_minor = Integer(default=0, min_value=0)
    discount_minor = Integer(default=0, min_value=0)
    total_minor = Integer(required=True, min_value=0)
    currency = String(max_length=3, default="INR")


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@storefront.entity(part_of="Order")
class OrderLine:
    product_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    image_ref = String(max_length=500)
    unit_price_minor = Integer(required=True, min_value=0)
    size = String(required=True, max_length=20)
    quantity = Integer(required=True, min_value=1)
    position = Integer(required=True, min_value=0)

    @property
    def line_total_minor(self):
        return self.unit_price_minor * self.quantity


@storefront.entity(part_of="Order")
class StatusChange:
    status = String(required=True, choices=OrderStatus)
    note = String(max_length=500)
    recorded_at = DateTime(required=True)
    sequence = Integer(required=True, min_value=0)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@storefront.aggregate
class Order:
    order_number = String(required=True, max_length=50, unique=True)
    user_id = Identifier(required=True)
    lines = HasMany(OrderLine)
    shipping_address = ValueObject(ShippingAddress)
    payment_method = String(required=True, choices=PaymentMethod)
    pricing = ValueObject(OrderPricing)
    order_status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    payment_status = String(choices=PaymentStatus, default=PaymentStatus.PENDING.value)
    status_history = HasMany(StatusChange)
    is_delivered = Boolean(default=False)
    delivered_at = DateTime()
    tracking_number = String(max_length=100)
    courier_service = String(max_length=100)
    estimated_delivery_date = DateTime()
    coupon_code = String(max_length=50)
    order_notes = Text()
    cancel_reason = String(max_length=500)
    refund_amount_minor = Integer(min_value=0)
    refund_reason = String(max_length=500)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def pricing_must_balance(self):
        pricing = self.pricing
        if pricing is None:
            return
        expected = pricing.subtotal_minor + pricing.shipping_minor + pricing.tax_minor - pricing.discount_minor
        if pricing.total_minor != expected:
            raise ValidationError({"pricing": ["Total does not equal subtotal + shipping + tax - discount"]})

    @invariant.post
    def refund_cannot_exceed_total(self):
        if self.refund_amount_minor and self.pricing and self.refund_amount_minor > self.pricing.total_minor:
            raise ValidationError({"refund_amount_minor": ["Refund cannot exceed the order total"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        order_number,
        user_id,
        lines,
        shipping_address,
        payment_method,
        pricing,
        currency="INR",
        coupon_code=None,
        order_notes=None,
    ):
        """Create a pending order from snapshot line items and their pricing breakdown.

        ``lines`` are ``LineItem`` values and ``pricing`` a ``PricingBreakdown``.
        Totals are reconciled here, once; a mismatch is a defect and raises
        ``ConsistencyViolation``.
        """
        lines = list(lines)
        if not lines:
            raise ConsistencyViolation("An order needs at least one line", order_number=order_number)

        line_sum = sum(line.unit_price_minor * line.quantity for line in lines)
        if line_sum != pricing.subtotal_minor:
            raise ConsistencyViolation(
                f"Subtotal {pricing.subtotal_minor} does not match line items {line_sum}",
                order_number=order_number,
            )
        if not pricing.is_balanced():
            raise ConsistencyViolation(
                f"Total {pricing.total_minor} does not balance its components",
                order_number=order_number,
            )

        now = datetime.now(UTC)
        order = cls(
            order_number=order_number,
            user_id=user_id,
            lines=[
                OrderLine(
                    product_id=line.product_id,
                    name=line.name,
                    image_ref=line.image_ref,
                    unit_price_minor=line.unit_price_minor,
                    size=line.size,
                    quantity=line.quantity,
                    position=position,
                )
                for position, line in enumerate(lines)
            ],
            shipping_address=ShippingAddress(**shipping_address),
            payment_method=PaymentMethod(payment_method).value,
            pricing=OrderPricing(currency=currency, **pricing.to_dict()),
            order_status=OrderStatus.PENDING.value,
            payment_status=PaymentStatus.PENDING.value,
            coupon_code=coupon_code,
            order_notes=order_notes,
            created_at=now,
            updated_at=now,
        )
        order._append_history(OrderStatus.PENDING, "Order placed", now)

        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                order_number=order_number,
                user_id=str(user_id),
                lines=json.dumps([line.to_dict() for line in lines]),
                payment_method=order.payment_method,
                total_minor=pricing.total_minor,
                currency=currency,
                coupon_code=coupon_code,
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Read helpers
    # -------------------------------------------------------------------
    @property
    def ordered_lines(self):
        return sorted(self.lines or [], key=lambda line: line.position)

    @property
    def history(self):
        return sorted(self.status_history or [], key=lambda entry: entry.sequence)

    @property
    def total_items(self):
        return sum(line.quantity for line in self.lines or [])

    @property
    def status(self):
        return OrderStatus(self.order_status)

    def _append_history(self, status, note, recorded_at):
        self.add_status_history(
            StatusChange(
                status=status.value,
                note=note,
                recorded_at=recorded_at,
                sequence=len(self.status_history or []),
            )
        )

    # -------------------------------------------------------------------
    # Status workflow
    # -------------------------------------------------------------------
    def advance(
        self,
        new_status,
        note=None,
        tracking_number=None,
        courier_service=None,
        estimated_delivery_date=None,
        policy=None,
    ):
        """Move the order to ``new_status``, recording a history entry every time.

        Delivery is stamped once: repeating ``delivered`` adds a history entry
        but keeps the original ``delivered_at``.
        """
        target = parse_status(new_status)
        current = self.status
        (policy or PermissiveTransitions()).check(current, target)

        now = datetime.now(UTC)
        self._append_history(target, note, now)
        self.order_status = target.value

        if tracking_number:
            self.tracking_number = tracking_number
        if courier_service:
            self.courier_service = courier_service
        if estimated_delivery_date:
            self.estimated_delivery_date = estimated_delivery_date
        self.updated_at = now

        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                order_number=self.order_number,
                previous_status=current.value,
                new_status=target.value,
                note=note,
                tracking_number=self.tracking_number,
                courier_service=self.courier_service,
                changed_at=now,
            )
        )

        if target == OrderStatus.DELIVERED and not self.is_delivered:
            self.is_delivered = True
            self.delivered_at = now
            self.raise_(
                OrderDelivered(
                    order_id=str(self.id),
                    order_number=self.order_number,
                    delivered_at=now,
                )
            )

        if target == OrderStatus.CANCELLED and current != OrderStatus.CANCELLED:
            if note:
                self.cancel_reason = note
            self.raise_(
                OrderCancelled(
                    order_id=str(self.id),
                    order_number=self.order_number,
                    reason=self.cancel_reason,
                    cancelled_at=now,
                )
            )

    def cancel(self, reason, policy=None):
        self.advance(OrderStatus.CANCELLED, note=reason, policy=policy)

    def record_refund(self, amount_minor=None, reason=None, policy=None):
        """Refund up to the order total and move the order to ``refunded``.

        ``amount_minor`` defaults to the full order total.
        """
        if self.payment_status == PaymentStatus.REFUNDED.value:
            raise ValidationError({"refund_amount_minor": ["Order has already been refunded"]})

        total_minor = self.pricing.total_minor
        amount = total_minor if amount_minor is None else amount_minor
        if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
            raise ValidationError({"refund_amount_minor": ["Refund amount must be a positive integer"]})
        if amount > total_minor:
            raise ValidationError(
                {"refund_amount_minor": [f"Refund of {amount} exceeds the order total of {total_minor}"]}
            )

        self.advance(OrderStatus.REFUNDED, note=reason or "Order refunded", policy=policy)
        self.refund_amount_minor = amount
        self.refund_reason = reason
        self.payment_status = PaymentStatus.REFUNDED.value

        self.raise_(
            OrderRefunded(
                order_id=str(self.id),
                order_number=self.order_number,
                amount_minor=amount,
                reason=reason,
                refunded_at=self.updated_at,
            )
        )
