"""Stock-bearing product aggregate.

Only the slice of a product that checkout needs: name, price, images and the
per-size stock counters alongside an aggregate stock counter.
"""

import json

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import HasMany, Integer, String, Text

from storefront.catalogue.port import ProductRecord, SizeStock
from storefront.domain import storefront
from storefront.errors import InsufficientStock


@storefront.entity(part_of="StockedProduct")
class ProductSize:
    size = String(required=True, max_length=20)
    stock = Integer(default=0, min_value=0)


@storefront.aggregate
class StockedProduct:
    name = String(required=True, max_length=255)
    price_minor = Integer(required=True, min_value=0)
    images = Text(default="[]")  # JSON array of image references
    sizes = HasMany(ProductSize)
    stock = Integer(default=0, min_value=0)

    @invariant.post
    def sizes_must_be_unique(self):
        labels = [entry.size for entry in self.sizes or []]
        if len(labels) != len(set(labels)):
            raise ValidationError({"sizes": ["Each size may appear only once"]})

    @classmethod
    def create(cls, name, price_minor, sizes, images=(), stock=None, product_id=None):
        """Create a product from a ``{size: stock}`` mapping.

        The aggregate counter defaults to the sum of the per-size stock.
        """
        fields = {
            "name": name,
            "price_minor": price_minor,
            "images": json.dumps(list(images)),
            "sizes": [ProductSize(size=size, stock=count) for size, count in sizes.items()],
            "stock": sum(sizes.values()) if stock is None else stock,
        }
        if product_id is not None:
            fields["id"] = product_id
        return cls(**fields)

    def _size(self, size):
        return next((entry for entry in self.sizes or [] if entry.size == size), None)

    def reserve(self, size, quantity):
        """Take ``quantity`` units of ``size`` off both counters."""
        entry = self._size(size)
        available = min(entry.stock, self.stock) if entry else 0
        if quantity > available:
            raise InsufficientStock(
                product_id=str(self.id),
                size=size,
                requested=quantity,
                available=available,
                product_name=self.name,
            )
        entry.stock -= quantity
        self.stock -= quantity

    def release(self, size, quantity):
        entry = self._size(size)
        if entry is None:
            self.add_sizes(ProductSize(size=size, stock=quantity))
        else:
            entry.stock += quantity
        self.stock += quantity

    def to_record(self) -> ProductRecord:
        return ProductRecord(
            product_id=str(self.id),
            name=self.name,
            price_minor=self.price_minor,
            images=tuple(json.loads(self.images or "[]")),
            sizes=tuple(SizeStock(entry.size, entry.stock) for entry in self.sizes or []),
            stock=self.stock,
        )
