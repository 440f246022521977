"""Error taxonomy for cart, pricing and order operations.

Every error carries a machine-readable ``kind`` and a ``public_message`` that
is safe to show to shoppers. Infrastructure and consistency errors never
expose their internal message to end users.
"""


class StorefrontError(Exception):
    kind = "storefront_error"
    public_message = "Something went wrong. Please try again."
    expose_message = False

    def __init__(self, message: str, **context):
        super().__init__(message)
        self.message = message
        self.context = context

    @property
    def user_message(self) -> str:
        return self.message if self.expose_message else self.public_message


class ValidationFailed(StorefrontError):
    """Malformed or missing input. The caller can fix it and resubmit."""

    kind = "validation_failed"
    expose_message = True

    def __init__(self, message: str = "Validation failed", errors: dict | None = None, **context):
        super().__init__(message, **context)
        self.errors = errors or {}


class ProductNotFound(StorefrontError):
    kind = "product_not_found"
    expose_message = True

    def __init__(self, product_id: str):
        super().__init__(f"Product not found: {product_id}", product_id=product_id)
        self.product_id = product_id


class InsufficientStock(StorefrontError):
    """Business-rule rejection: the requested quantity is not available."""

    kind = "insufficient_stock"
    expose_message = True

    def __init__(self, product_id: str, size: str, requested: int, available: int, product_name: str | None = None):
        label = product_name or product_id
        super().__init__(
            f"Insufficient stock for {label} in size {size}",
            product_id=product_id,
            size=size,
            requested=requested,
            available=available,
        )
        self.product_id = product_id
        self.product_name = product_name
        self.size = size
        self.requested = requested
        self.available = available


class OrderNotFound(StorefrontError):
    kind = "order_not_found"
    expose_message = True

    def __init__(self, order_ref: str):
        super().__init__(f"Order not found: {order_ref}", order_ref=order_ref)
        self.order_ref = order_ref


class PersistenceFailure(StorefrontError):
    """Storage was unavailable or timed out. Safe to retry."""

    kind = "persistence_failure"
    public_message = "We could not complete your request right now. Please try again."


class DuplicateOrderNumber(PersistenceFailure):
    kind = "duplicate_order_number"


class ConsistencyViolation(StorefrontError):
    """An internal invariant was broken. Always a defect."""

    kind = "consistency_violation"
    public_message = "We could not process your order. Our team has been notified."


class PricingConfigurationError(ConsistencyViolation):
    kind = "pricing_configuration_error"


class MalformedCartData(StorefrontError):
    """Persisted cart payload could not be decoded."""

    kind = "malformed_cart_data"
