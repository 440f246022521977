"""Repository for the Order aggregate."""

from storefront.domain import storefront
from storefront.order.order import Order


@storefront.repository(part_of=Order)
class OrderRepository:
    """Order lookups beyond get-by-id."""

    def find_by_number(self, order_number: str) -> Order | None:
        return self._dao.query.filter(order_number=order_number).all().first

    def page_for_user(self, user_id: str, offset: int, limit: int):
        """One page of the user's orders, newest first. Returns ``(orders, total)``."""
        results = (
            self._dao.query.filter(user_id=str(user_id))
            .order_by("-created_at")
            .offset(offset)
            .limit(limit)
            .all()
        )
        return list(results.items), results.total
