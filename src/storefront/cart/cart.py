"""Persisted shopping cart, keyed by browsing session.

The cart's line items are stored as a JSON payload. The aggregate does not
interpret them; decoding and transition rules live in the cart store.
"""

from datetime import UTC, datetime

from protean.fields import DateTime, Integer, String, Text

from storefront.domain import storefront


@storefront.aggregate
class ShoppingCart:
    session_key = String(identifier=True, max_length=255)
    items = Text(default="[]")  # JSON array of line items
    item_count = Integer(default=0, min_value=0)
    updated_at = DateTime()

    @classmethod
    def open(cls, session_key):
        return cls(
            session_key=session_key,
            items="[]",
            item_count=0,
            updated_at=datetime.now(UTC),
        )

    def replace_items(self, payload, item_count):
        self.items = payload
        self.item_count = item_count
        self.updated_at = datetime.now(UTC)
