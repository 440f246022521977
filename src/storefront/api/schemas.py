"""Pydantic request/response schemas for the storefront API.

Request models are deliberately loose: shape and business validation happen
in the placement service, so every rejection carries the same error body.
"""

from datetime import datetime

from pydantic import BaseModel


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class LineItemSchema(BaseModel):
    product_id: str
    name: str
    unit_price_minor: int
    size: str
    quantity: int
    image_ref: str | None = None


class PricingSchema(BaseModel):
    subtotal_minor: int = 0
    shipping_minor: int = 0
    tax_minor: int = 0
    discount_minor: int = 0
    total_minor: int = 0
    currency: str = "INR"


class ShippingAddressSchema(BaseModel):
    full_name: str | None = None
    phone: str | None = None
    email: str | None = None
    street: str | None = None
    apartment: str | None = None
    city: str | None = None
    state: str | None = None
    pincode: str | None = None
    country: str | None = None


# ---------------------------------------------------------------------------
# Cart
# ---------------------------------------------------------------------------
class AddCartItemRequest(BaseModel):
    product_id: str
    size: str = "M"
    quantity: int = 1


class SetCartQuantityRequest(BaseModel):
    product_id: str
    size: str
    quantity: int


class CartResponse(BaseModel):
    session_key: str
    items: list[LineItemSchema]
    total_items: int
    pricing: PricingSchema

    @classmethod
    def from_store(cls, store, rules) -> "CartResponse":
        return cls(
            session_key=store.session_key,
            items=[LineItemSchema(**line.to_dict()) for line in store.items],
            total_items=store.total_items,
            pricing=PricingSchema(currency=rules.currency, **store.pricing(rules).to_dict()),
        )


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
class ProposedItemSchema(BaseModel):
    product_id: str | None = None
    size: str | None = None
    quantity: int | None = None
    unit_price_minor: int | None = None  # Accepted but never used for pricing


class PlaceOrderRequest(BaseModel):
    items: list[ProposedItemSchema] = []
    shipping_address: ShippingAddressSchema | None = None
    payment_method: str | None = None
    coupon_code: str | None = None
    session_key: str | None = None
    order_notes: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "items": [{"product_id": "saree-001", "size": "M", "quantity": 1}],
                    "shipping_address": {
                        "full_name": "Asha Rao",
                        "phone": "9876543210",
                        "email": "asha@example.com",
                        "street": "12 MG Road",
                        "city": "Bengaluru",
                        "state": "Karnataka",
                        "pincode": "560001",
                    },
                    "payment_method": "upi",
                }
            ]
        }
    }


class AdvanceStatusRequest(BaseModel):
    status: str
    note: str | None = None
    tracking_number: str | None = None
    courier_service: str | None = None
    estimated_delivery_date: datetime | None = None


class RefundRequest(BaseModel):
    amount_minor: int | None = None
    reason: str | None = None


class OrderLineSchema(BaseModel):
    product_id: str
    name: str
    image_ref: str | None = None
    unit_price_minor: int
    size: str
    quantity: int


class StatusChangeSchema(BaseModel):
    status: str
    note: str | None = None
    recorded_at: datetime


class OrderResponse(BaseModel):
    order_id: str
    order_number: str
    user_id: str
    lines: list[OrderLineSchema]
    shipping_address: ShippingAddressSchema
    payment_method: str
    pricing: PricingSchema
    order_status: str
    payment_status: str
    status_history: list[StatusChangeSchema]
    is_delivered: bool
    delivered_at: datetime | None = None
    tracking_number: str | None = None
    courier_service: str | None = None
    estimated_delivery_date: datetime | None = None
    coupon_code: str | None = None
    order_notes: str | None = None
    cancel_reason: str | None = None
    refund_amount_minor: int | None = None
    refund_reason: str | None = None
    total_items: int
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_order(cls, order) -> "OrderResponse":
        address = order.shipping_address
        pricing = order.pricing
        return cls(
            order_id=str(order.id),
            order_number=order.order_number,
            user_id=str(order.user_id),
            lines=[
                OrderLineSchema(
                    product_id=str(line.product_id),
                    name=line.name,
                    image_ref=line.image_ref,
                    unit_price_minor=line.unit_price_minor,
                    size=line.size,
                    quantity=line.quantity,
                )
                for line in order.ordered_lines
            ],
            shipping_address=ShippingAddressSchema(
                full_name=address.full_name,
                phone=address.phone,
                email=address.email,
                street=address.street,
                apartment=address.apartment,
                city=address.city,
                state=address.state,
                pincode=address.pincode,
                country=address.country,
            ),
            payment_method=order.payment_method,
            pricing=PricingSchema(
                subtotal_minor=pricing.subtotal_minor,
                shipping_minor=pricing.shipping_minor,
                tax_minor=pricing.tax_minor,
                discount_minor=pricing.discount_minor,
                total_minor=pricing.total_minor,
                currency=pricing.currency,
            ),
            order_status=order.order_status,
            payment_status=order.payment_status,
            status_history=[
                StatusChangeSchema(status=entry.status, note=entry.note, recorded_at=entry.recorded_at)
                for entry in order.history
            ],
            is_delivered=bool(order.is_delivered),
            delivered_at=order.delivered_at,
            tracking_number=order.tracking_number,
            courier_service=order.courier_service,
            estimated_delivery_date=order.estimated_delivery_date,
            coupon_code=order.coupon_code,
            order_notes=order.order_notes,
            cancel_reason=order.cancel_reason,
            refund_amount_minor=order.refund_amount_minor,
            refund_reason=order.refund_reason,
            total_items=order.total_items,
            created_at=order.created_at,
            updated_at=order.updated_at,
        )


class PaginationSchema(BaseModel):
    current_page: int
    total_pages: int
    total_orders: int


class OrderListResponse(BaseModel):
    orders: list[OrderResponse]
    pagination: PaginationSchema
