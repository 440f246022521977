"""Order placement: turn a proposed cart into a persisted, stock-backed order.

Steps, in order:

1. Validate the request shape (user, items, address, payment method, coupon).
2. Look up every product in the catalogue and check per-size stock.
3. Snapshot lines at catalogue prices. Client-submitted prices are ignored.
4. Price the snapshot; this is the price of record.
5. Persist the order under a freshly generated order number.
6. Reserve stock line by line with atomic conditional decrements.
7. Clear the originating cart, best effort.

If a reservation fails after the order was persisted, lines already reserved
are returned to stock and the order is cancelled before the error is raised,
so no order survives without its stock and no stock stays taken for a
cancelled order.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass

import structlog
from protean.exceptions import ValidationError

from storefront.cart.line_item import LineItem
from storefront.cart.storage.port import CartStorage
from storefront.catalogue.port import CatalogueGateway
from storefront.errors import (
    ConsistencyViolation,
    DuplicateOrderNumber,
    InsufficientStock,
    PersistenceFailure,
    StorefrontError,
    ValidationFailed,
)
from storefront.order.ledger.port import OrderLedger
from storefront.order.numbering import generate_order_number
from storefront.order.order import Order, PaymentMethod
from storefront.pricing.coupons import CouponBook, normalize_code
from storefront.pricing.engine import price_items
from storefront.pricing.rules import PricingRules

logger = structlog.get_logger(__name__)

ADDRESS_REQUIRED = ("full_name", "phone", "email", "street", "city", "state", "pincode")
ADDRESS_OPTIONAL = ("apartment", "country")


@dataclass(frozen=True)
class ProposedItem:
    product_id: str
    size: str
    quantity: int


# ---------------------------------------------------------------------------
# Request validation
# ---------------------------------------------------------------------------
def _field(entry, name):
    if isinstance(entry, Mapping):
        return entry.get(name)
    return getattr(entry, name, None)


def parse_proposed_items(proposed) -> list[ProposedItem]:
    """Validate proposed items and merge duplicates of the same product and size."""
    if isinstance(proposed, (str, bytes, Mapping)) or not isinstance(proposed, Iterable):
        raise ValidationFailed(errors={"items": ["Order items must be a list"]})

    errors = {}
    merged: dict[tuple[str, str], int] = {}
    for index, entry in enumerate(proposed):
        product_id = _field(entry, "product_id")
        size = _field(entry, "size")
        quantity = _field(entry, "quantity")
        problems = []
        if not isinstance(product_id, str) or not product_id.strip():
            problems.append("product_id is required")
        if not isinstance(size, str) or not size.strip():
            problems.append("size is required")
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
            problems.append("quantity must be an integer of at least 1")
        if problems:
            errors[f"items.{index}"] = problems
            continue
        key = (product_id, size)
        merged[key] = merged.get(key, 0) + quantity

    if errors:
        raise ValidationFailed(errors=errors)
    if not merged:
        raise ValidationFailed("Order items are required", errors={"items": ["At least one item is required"]})

    return [ProposedItem(product_id, size, quantity) for (product_id, size), quantity in merged.items()]


def parse_shipping_address(address) -> dict:
    if not isinstance(address, Mapping):
        raise ValidationFailed("Shipping address is required", errors={"shipping_address": ["Address is required"]})

    errors = {}
    cleaned = {}
    for name in ADDRESS_REQUIRED:
        value = address.get(name)
        if not isinstance(value, str) or not value.strip():
            errors[f"shipping_address.{name}"] = ["This field is required"]
        else:
            cleaned[name] = value.strip()
    for name in ADDRESS_OPTIONAL:
        value = address.get(name)
        if isinstance(value, str) and value.strip():
            cleaned[name] = value.strip()

    if errors:
        raise ValidationFailed(errors=errors)
    return cleaned


def parse_payment_method(method) -> str:
    try:
        return PaymentMethod(method).value
    except ValueError:
        allowed = ", ".join(m.value for m in PaymentMethod)
        raise ValidationFailed(
            "Invalid payment method",
            errors={"payment_method": [f"Must be one of {allowed}"]},
        ) from None


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------
class OrderPlacementService:
    def __init__(
        self,
        catalogue: CatalogueGateway,
        orders: OrderLedger,
        carts: CartStorage | None,
        rules: PricingRules,
        coupons: CouponBook | None = None,
        order_number_prefix: str = "HF",
        order_number_attempts: int = 3,
        number_generator=generate_order_number,
    ) -> None:
        self.catalogue = catalogue
        self.orders = orders
        self.carts = carts
        self.rules = rules
        self.coupons = coupons
        self.order_number_prefix = order_number_prefix
        self.order_number_attempts = max(order_number_attempts, 1)
        self._generate_number = number_generator

    def place_order(
        self,
        user_id,
        proposed_items,
        shipping_address,
        payment_method,
        coupon_code=None,
        session_key=None,
        order_notes=None,
    ) -> Order:
        if not isinstance(user_id, str) or not user_id.strip():
            raise ValidationFailed(errors={"user_id": ["A signed-in user is required"]})
        items = parse_proposed_items(proposed_items)
        address = parse_shipping_address(shipping_address)
        method = parse_payment_method(payment_method)
        coupon_code = normalize_code(coupon_code) if coupon_code and str(coupon_code).strip() else None
        discount_rule = self._discount_rule(coupon_code)

        try:
            snapshot = self._snapshot(items)
            pricing = price_items(snapshot, self.rules, discount_rule)
            order = self._persist(user_id, snapshot, address, method, pricing, coupon_code, order_notes)
        except ConsistencyViolation as exc:
            logger.critical("order.consistency_violation", user_id=user_id, kind=exc.kind, error=exc.message)
            raise

        self._reserve_stock(order, snapshot)
        self._clear_cart(session_key or user_id)

        logger.info(
            "order.placed",
            order_id=str(order.id),
            order_number=order.order_number,
            user_id=user_id,
            total_minor=order.pricing.total_minor,
            line_count=len(snapshot),
        )
        return order

    def _discount_rule(self, coupon_code):
        if coupon_code is None:
            return None
        if self.coupons is None:
            raise ValidationFailed(
                f"Coupon code {coupon_code} is not valid",
                errors={"coupon_code": ["Coupons are not accepted"]},
            )
        return self.coupons.rule_for(coupon_code)

    def _snapshot(self, items: list[ProposedItem]) -> list[LineItem]:
        snapshot = []
        for item in items:
            product = self.catalogue.get_product(item.product_id)
            available = product.available_for(item.size)
            if available < item.quantity:
                raise InsufficientStock(
                    product_id=product.product_id,
                    size=item.size,
                    requested=item.quantity,
                    available=available,
                    product_name=product.name,
                )
            snapshot.append(
                LineItem(
                    product_id=product.product_id,
                    name=product.name,
                    unit_price_minor=product.price_minor,
                    size=item.size,
                    quantity=item.quantity,
                    image_ref=product.images[0] if product.images else None,
                )
            )
        return snapshot

    def _persist(self, user_id, snapshot, address, method, pricing, coupon_code, order_notes) -> Order:
        for attempt in range(1, self.order_number_attempts + 1):
            order_number = self._generate_number(self.order_number_prefix)
            try:
                order = Order.place(
                    order_number=order_number,
                    user_id=user_id,
                    lines=snapshot,
                    shipping_address=address,
                    payment_method=method,
                    pricing=pricing,
                    currency=self.rules.currency,
                    coupon_code=coupon_code,
                    order_notes=order_notes,
                )
            except ValidationError as exc:
                raise ValidationFailed(errors=exc.messages) from exc

            try:
                return self.orders.add(order)
            except DuplicateOrderNumber:
                logger.warning("Order number collision, regenerating", order_number=order_number, attempt=attempt)

        raise PersistenceFailure(
            f"Could not allocate a unique order number after {self.order_number_attempts} attempts",
            user_id=user_id,
        )

    def _reserve_stock(self, order: Order, snapshot: list[LineItem]) -> None:
        reserved: list[LineItem] = []
        try:
            for line in snapshot:
                self.catalogue.decrement_stock(line.product_id, line.size, line.quantity)
                reserved.append(line)
        except Exception as exc:
            logger.warning(
                "order.stock_reservation_failed",
                order_id=str(order.id),
                order_number=order.order_number,
                kind=getattr(exc, "kind", type(exc).__name__),
                error=str(exc),
            )
            self._compensate(order, reserved, exc)
            raise

    def _compensate(self, order: Order, reserved: list[LineItem], cause: Exception) -> None:
        for line in reserved:
            try:
                self.catalogue.restore_stock(line.product_id, line.size, line.quantity)
            except Exception as exc:
                logger.critical(
                    "order.stock_restore_failed",
                    order_id=str(order.id),
                    product_id=line.product_id,
                    size=line.size,
                    quantity=line.quantity,
                    error=str(exc),
                )

        public = cause.user_message if isinstance(cause, StorefrontError) else StorefrontError.public_message
        reason = f"Stock reservation failed: {public}"
        try:
            self.orders.update(str(order.id), lambda stored: stored.cancel(reason))
        except Exception as exc:
            logger.critical(
                "order.compensation_failed",
                order_id=str(order.id),
                order_number=order.order_number,
                error=str(exc),
            )
        else:
            logger.info("order.cancelled_after_reservation_failure", order_id=str(order.id))

    def _clear_cart(self, session_key: str) -> None:
        if self.carts is None:
            return
        try:
            self.carts.clear_cart(session_key)
        except Exception as exc:
            logger.warning("cart.clear_failed", session_key=session_key, error=str(exc))
