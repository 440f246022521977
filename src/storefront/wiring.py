"""Builds the storefront's collaborators from an initialized domain.

Nothing here is a module-level global: the application creates one
``Services`` at startup and hands it to request handlers explicitly.
"""

from dataclasses import dataclass

from protean.domain import Domain

from storefront.cart.storage.port import CartStorage
from storefront.cart.storage.repository_adapter import RepositoryCartStorage
from storefront.cart.store import CartStore
from storefront.catalogue.port import CatalogueGateway
from storefront.catalogue.repository_adapter import RepositoryCatalogue
from storefront.order.ledger.port import OrderLedger
from storefront.order.ledger.repository_adapter import RepositoryOrderLedger
from storefront.order.placement import OrderPlacementService
from storefront.pricing.coupons import ConfiguredCouponBook, CouponBook
from storefront.pricing.rules import PricingRules
from storefront.utils.locks import KeyedLocks


@dataclass
class Services:
    catalogue: CatalogueGateway
    orders: OrderLedger
    carts: CartStorage
    rules: PricingRules
    coupons: CouponBook
    placement: OrderPlacementService

    def cart_for(self, session_key: str) -> CartStore:
        return CartStore.restored(self.carts, session_key)


def custom_settings(domain: Domain, section: str) -> dict:
    return dict(domain.config.get("custom", {}).get(section, {}) or {})


def build_services(
    domain: Domain,
    catalogue: CatalogueGateway | None = None,
    orders: OrderLedger | None = None,
    carts: CartStorage | None = None,
) -> Services:
    """Wire repository-backed adapters unless replacements are passed in."""
    checkout = custom_settings(domain, "checkout")
    locks = KeyedLocks(timeout=float(checkout.get("stock_lock_timeout_seconds", 5)))

    attempts = int(checkout.get("write_conflict_attempts", 5))

    catalogue = catalogue or RepositoryCatalogue(domain, locks, conflict_attempts=attempts)
    orders = orders or RepositoryOrderLedger(domain, locks, conflict_attempts=attempts)
    carts = carts or RepositoryCartStorage(domain)
    rules = PricingRules.from_mapping(custom_settings(domain, "pricing"))
    coupons = ConfiguredCouponBook.from_mapping(custom_settings(domain, "coupons"))

    placement = OrderPlacementService(
        catalogue=catalogue,
        orders=orders,
        carts=carts,
        rules=rules,
        coupons=coupons,
        order_number_prefix=checkout.get("order_number_prefix", "HF"),
        order_number_attempts=int(checkout.get("order_number_attempts", 3)),
    )
    return Services(
        catalogue=catalogue,
        orders=orders,
        carts=carts,
        rules=rules,
        coupons=coupons,
        placement=placement,
    )
