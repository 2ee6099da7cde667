"""Read-only catalog lookups used by the ledger.

Default location policy: when a receipt or delivery names only a warehouse,
stock moves at the warehouse's location flagged ``is_default``; without one,
at the earliest registered location (ties broken by name, then id).
"""

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from ledger.catalog.product import Product
from ledger.catalog.warehouse import Location, Warehouse
from ledger.errors import InvalidInput, NotFound
from ledger.utils.query import scan


class Catalog:
    def _get(self, element_cls, identifier, label):
        if not identifier:
            raise InvalidInput(f"{label} id is required", field=f"{label.lower()}_id")
        try:
            return current_domain.repository_for(element_cls).get(str(identifier))
        except ObjectNotFoundError as exc:
            raise NotFound(f"{label} {identifier} does not exist") from exc

    def product(self, product_id) -> Product:
        return self._get(Product, product_id, "Product")

    def warehouse(self, warehouse_id) -> Warehouse:
        return self._get(Warehouse, warehouse_id, "Warehouse")

    def location(self, location_id) -> Location:
        return self._get(Location, location_id, "Location")

    def unit_cost(self, product_id) -> float:
        return self.product(product_id).unit_cost or 0.0

    def products(self):
        return scan(Product, order_by="created_at")

    def locations_of(self, warehouse_id):
        """Locations of a warehouse in policy order (default first)."""
        locations = list(scan(Location, order_by="created_at", warehouse_id=str(warehouse_id)))
        return sorted(
            locations,
            key=lambda loc: (not loc.is_default, loc.created_at, loc.name, str(loc.id)),
        )

    def default_location(self, warehouse_id) -> Location:
        warehouse = self.warehouse(warehouse_id)
        locations = self.locations_of(warehouse.id)
        if not locations:
            raise NotFound(f"Warehouse {warehouse.name} has no stock location", field="location")
        return locations[0]

    def display_name(self, element_cls, identifier):
        """Name of a catalog record for read-side joins; the id if unknown."""
        if not identifier:
            return None
        try:
            return current_domain.repository_for(element_cls).get(str(identifier)).name
        except ObjectNotFoundError:
            return str(identifier)
