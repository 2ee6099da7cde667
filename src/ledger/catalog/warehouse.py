"""Warehouse and Location aggregates (CQRS).

A warehouse groups stock locations; stock is always held at a location. Both
are simple records with no derived state.
"""

from datetime import UTC, datetime

from protean.fields import Boolean, DateTime, Identifier, String

from ledger.catalog.events import LocationRegistered, WarehouseRegistered
from ledger.domain import ledger


@ledger.aggregate
class Warehouse:
    name = String(required=True, max_length=255)
    short_code = String(required=True, max_length=10)
    address = String(max_length=500)
    created_at = DateTime()

    @classmethod
    def register(cls, name, short_code, address=None):
        now = datetime.now(UTC)
        warehouse = cls(name=name, short_code=short_code, address=address, created_at=now)
        warehouse.raise_(
            WarehouseRegistered(
                warehouse_id=str(warehouse.id),
                name=name,
                short_code=short_code,
                registered_at=now,
            )
        )
        return warehouse


@ledger.aggregate
class Location:
    """A place inside a warehouse where stock is held (shelf, rack, zone)."""

    warehouse_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    short_code = String(max_length=20)
    is_default = Boolean(default=False)
    created_at = DateTime()

    @classmethod
    def register(cls, warehouse_id, name, short_code=None, is_default=False):
        now = datetime.now(UTC)
        location = cls(
            warehouse_id=str(warehouse_id),
            name=name,
            short_code=short_code,
            is_default=is_default,
            created_at=now,
        )
        location.raise_(
            LocationRegistered(
                location_id=str(location.id),
                warehouse_id=str(warehouse_id),
                name=name,
                is_default=is_default,
                registered_at=now,
            )
        )
        return location
