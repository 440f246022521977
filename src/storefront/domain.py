"""Storefront bounded context: shopping cart, checkout pricing and orders.

Handles the client cart state, price computation, order placement against
authoritative catalogue stock, and the administrative order status workflow.
"""

from protean.domain import Domain

from storefront.utils.logging import configure_logging, get_logger

configure_logging()

logger = get_logger(__name__)

storefront = Domain(name="storefront")
