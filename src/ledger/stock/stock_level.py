"""StockLevel aggregate — on-hand quantity of one product at one location.

A StockLevel is a materialised fold of the movement log. Its id is derived
from the (product, location) pair, so the store can never hold two records
for the same pair. Records are created lazily and never deleted: a sold-out
pair stays at zero.
"""

from datetime import UTC, datetime

from protean.fields import DateTime, Identifier, Integer

from ledger.domain import ledger
from ledger.errors import InsufficientStock


def stock_level_id(product_id, location_id):
    return f"{product_id}@{location_id}"


@ledger.aggregate
class StockLevel:
    id = Identifier(identifier=True, required=True)
    product_id = Identifier(required=True)
    location_id = Identifier(required=True)
    quantity = Integer(default=0, min_value=0)
    updated_at = DateTime()

    @classmethod
    def empty(cls, product_id, location_id):
        return cls(
            id=stock_level_id(product_id, location_id),
            product_id=str(product_id),
            location_id=str(location_id),
            quantity=0,
        )

    def apply_delta(self, delta):
        """Move the quantity by ``delta``; refuse to go below zero."""
        new_quantity = self.quantity + delta
        if new_quantity < 0:
            raise InsufficientStock(
                f"Only {self.quantity} on hand at location {self.location_id}, "
                f"cannot remove {-delta} of product {self.product_id}"
            )
        self.quantity = new_quantity
        self.updated_at = datetime.now(UTC)
        return new_quantity
