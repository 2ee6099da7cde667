"""Product aggregate (CQRS) — what the ledger counts.

Only the attributes the ledger needs are kept here: a display name for
read-side joins and the unit cost used for stock valuation.
"""

from datetime import UTC, datetime

from protean.fields import DateTime, Float, String

from ledger.catalog.events import ProductRegistered
from ledger.domain import ledger


@ledger.aggregate
class Product:
    name = String(required=True, max_length=255)
    sku = String(required=True, max_length=50, unique=True)
    category = String(max_length=100)
    unit_of_measure = String(max_length=20, default="Units")
    unit_cost = Float(default=0.0, min_value=0.0)
    created_at = DateTime()

    @classmethod
    def register(cls, name, sku, unit_cost=0.0, category=None, unit_of_measure="Units"):
        now = datetime.now(UTC)
        product = cls(
            name=name,
            sku=sku,
            category=category,
            unit_of_measure=unit_of_measure,
            unit_cost=unit_cost,
            created_at=now,
        )
        product.raise_(
            ProductRegistered(
                product_id=str(product.id),
                name=name,
                sku=sku,
                unit_cost=product.unit_cost,
                registered_at=now,
            )
        )
        return product
