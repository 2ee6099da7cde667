"""Domain events for the catalog aggregates."""

from protean.fields import Boolean, DateTime, Float, Identifier, String

from ledger.domain import ledger


@ledger.event(part_of="Product")
class ProductRegistered:
    """A product became known to the ledger."""

    __version__ = 1

    product_id = Identifier(required=True)
    name = String(required=True)
    sku = String(required=True)
    unit_cost = Float(required=True)
    registered_at = DateTime(required=True)


@ledger.event(part_of="Warehouse")
class WarehouseRegistered:
    __version__ = 1

    warehouse_id = Identifier(required=True)
    name = String(required=True)
    short_code = String(required=True)
    registered_at = DateTime(required=True)


@ledger.event(part_of="Location")
class LocationRegistered:
    """A stock location was added to a warehouse."""

    __version__ = 1

    location_id = Identifier(required=True)
    warehouse_id = Identifier(required=True)
    name = String(required=True)
    is_default = Boolean(default=False)
    registered_at = DateTime(required=True)
