"""Pricing rules: thresholds and rates the pricing engine runs on.

Amounts are minor currency units. Rates are ``Decimal`` fractions in [0, 1].
"""

from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

import structlog

from storefront.errors import PricingConfigurationError

logger = structlog.get_logger(__name__)


def _rate(value, field: str) -> Decimal:
    try:
        # str() first so floats from TOML keep their written value
        rate = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError) as exc:
        raise PricingConfigurationError(f"{field} is not a number: {value!r}", field=field) from exc
    if not rate.is_finite() or rate < 0 or rate > 1:
        raise PricingConfigurationError(f"{field} must be between 0 and 1, got {rate}", field=field)
    return rate


def _amount(value, field: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise PricingConfigurationError(f"{field} must be a non-negative integer, got {value!r}", field=field)
    return value


@dataclass(frozen=True)
class DiscountRule:
    """Discount ``rate`` applied once the subtotal reaches ``threshold_minor``."""

    rate: Decimal
    threshold_minor: int = 0

    def __post_init__(self):
        object.__setattr__(self, "rate", _rate(self.rate, "discount rate"))
        _amount(self.threshold_minor, "discount threshold")

    def applies_to(self, subtotal_minor: int) -> bool:
        return subtotal_minor >= self.threshold_minor


@dataclass(frozen=True)
class PricingRules:
    free_shipping_threshold_minor: int = 200000
    flat_shipping_fee_minor: int = 9900
    tax_rate: Decimal = Decimal("0.18")
    discount_threshold_minor: int = 300000
    discount_rate: Decimal = Decimal("0.10")
    currency: str = "INR"

    def __post_init__(self):
        _amount(self.free_shipping_threshold_minor, "free_shipping_threshold_minor")
        _amount(self.flat_shipping_fee_minor, "flat_shipping_fee_minor")
        _amount(self.discount_threshold_minor, "discount_threshold_minor")
        object.__setattr__(self, "tax_rate", _rate(self.tax_rate, "tax_rate"))
        object.__setattr__(self, "discount_rate", _rate(self.discount_rate, "discount_rate"))
        if not isinstance(self.currency, str) or len(self.currency) != 3:
            raise PricingConfigurationError(f"currency must be a 3-letter code, got {self.currency!r}")

    @property
    def default_discount(self) -> DiscountRule:
        return DiscountRule(rate=self.discount_rate, threshold_minor=self.discount_threshold_minor)

    @classmethod
    def from_mapping(cls, settings: Mapping | None) -> "PricingRules":
        """Build rules from a ``[custom.pricing]`` table, defaulting missing keys."""
        settings = dict(settings or {})
        known = set(cls.__dataclass_fields__)
        unknown = set(settings) - known
        if unknown:
            logger.warning("Ignoring unknown pricing settings", keys=sorted(unknown))
        return cls(**{key: value for key, value in settings.items() if key in known})
