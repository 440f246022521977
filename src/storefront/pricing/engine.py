"""Pricing engine.

Pure functions over line items and ``PricingRules``. Everything is computed on
integer minor units; tax and discount round half-up to a whole minor unit.

    total = subtotal + shipping + tax - discount
"""

from collections.abc import Iterable
from dataclasses import asdict, dataclass
from decimal import ROUND_HALF_UP, Decimal

import structlog

from storefront.errors import PricingConfigurationError
from storefront.pricing.rules import DiscountRule, PricingRules

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class PricingBreakdown:
    subtotal_minor: int = 0
    shipping_minor: int = 0
    tax_minor: int = 0
    discount_minor: int = 0
    total_minor: int = 0

    def to_dict(self) -> dict:
        return asdict(self)

    def is_balanced(self) -> bool:
        return self.total_minor == (
            self.subtotal_minor + self.shipping_minor + self.tax_minor - self.discount_minor
        )


def _round_minor(amount: Decimal) -> int:
    return int(amount.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def subtotal(items: Iterable) -> int:
    return sum(item.unit_price_minor * item.quantity for item in items)


def shipping(subtotal_minor: int, rules: PricingRules) -> int:
    if subtotal_minor >= rules.free_shipping_threshold_minor:
        return 0
    return rules.flat_shipping_fee_minor


def tax(subtotal_minor: int, rules: PricingRules) -> int:
    return _round_minor(Decimal(subtotal_minor) * rules.tax_rate)


def discount(subtotal_minor: int, rules: PricingRules, discount_rule: DiscountRule | None = None) -> int:
    """Threshold discount; ``discount_rule`` (e.g. from a coupon) replaces the default."""
    rule = discount_rule or rules.default_discount
    if not rule.applies_to(subtotal_minor):
        return 0
    return _round_minor(Decimal(subtotal_minor) * rule.rate)


def price_items(items: Iterable, rules: PricingRules, discount_rule: DiscountRule | None = None) -> PricingBreakdown:
    """Price a set of line items. An empty set prices to all zeros."""
    items = list(items)
    if not items:
        return PricingBreakdown()

    subtotal_minor = subtotal(items)
    shipping_minor = shipping(subtotal_minor, rules)
    tax_minor = tax(subtotal_minor, rules)
    discount_minor = discount(subtotal_minor, rules, discount_rule)
    total_minor = subtotal_minor + shipping_minor + tax_minor - discount_minor

    if total_minor < 0:
        logger.error(
            "Pricing rules produced a negative total",
            subtotal_minor=subtotal_minor,
            shipping_minor=shipping_minor,
            tax_minor=tax_minor,
            discount_minor=discount_minor,
        )
        raise PricingConfigurationError(
            f"Discount {discount_minor} exceeds subtotal, shipping and tax",
            total_minor=total_minor,
        )

    return PricingBreakdown(
        subtotal_minor=subtotal_minor,
        shipping_minor=shipping_minor,
        tax_minor=tax_minor,
        discount_minor=discount_minor,
        total_minor=total_minor,
    )


def total(items: Iterable, rules: PricingRules, discount_rule: DiscountRule | None = None) -> int:
    return price_items(items, rules, discount_rule).total_minor
