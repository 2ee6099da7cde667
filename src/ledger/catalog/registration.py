"""Catalog registration — commands and handlers.

Registration is deliberately minimal: the ledger only needs ids it can
resolve, a unit cost and display names.
"""

from protean import handle
from protean.fields import Boolean, Float, Identifier, String
from protean.utils.globals import current_domain

from ledger.catalog.product import Product
from ledger.catalog.warehouse import Location, Warehouse
from ledger.domain import ledger
from ledger.errors import InvalidInput, ledger_boundary
from ledger.transaction import locks


@ledger.command(part_of="Product")
class RegisterProduct:
    name = String(required=True, max_length=255)
    sku = String(required=True, max_length=50)
    category = String(max_length=100)
    unit_of_measure = String(max_length=20)
    unit_cost = Float(default=0.0)


@ledger.command(part_of="Warehouse")
class RegisterWarehouse:
    name = String(required=True, max_length=255)
    short_code = String(required=True, max_length=10)
    address = String(max_length=500)


@ledger.command(part_of="Location")
class RegisterLocation:
    """Add a stock location to an existing warehouse."""

    warehouse_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    short_code = String(max_length=20)
    is_default = Boolean(default=False)


@ledger.command_handler(part_of=Product)
class ProductRegistrationHandler:
    @handle(RegisterProduct)
    def register_product(self, command):
        if current_domain.repository_for(Product)._dao.query.filter(sku=command.sku).all().items:
            raise InvalidInput(f"SKU {command.sku} is already registered", field="sku")

        product = Product.register(
            name=command.name,
            sku=command.sku,
            unit_cost=command.unit_cost or 0.0,
            category=command.category,
            unit_of_measure=command.unit_of_measure or "Units",
        )
        current_domain.repository_for(Product).add(product)
        return str(product.id)


@ledger.command_handler(part_of=Warehouse)
class WarehouseRegistrationHandler:
    @handle(RegisterWarehouse)
    def register_warehouse(self, command):
        warehouse = Warehouse.register(
            name=command.name,
            short_code=command.short_code,
            address=command.address,
        )
        current_domain.repository_for(Warehouse).add(warehouse)
        return str(warehouse.id)


@ledger.command_handler(part_of=Location)
class LocationRegistrationHandler:
    @handle(RegisterLocation)
    def register_location(self, command):
        # Fails with ObjectNotFoundError for an unknown warehouse
        warehouse = current_domain.repository_for(Warehouse).get(command.warehouse_id)
        location = Location.register(
            warehouse_id=warehouse.id,
            name=command.name,
            short_code=command.short_code,
            is_default=bool(command.is_default),
        )
        current_domain.repository_for(Location).add(location)
        return str(location.id)


def register_product(name, sku, unit_cost=0.0, category=None, unit_of_measure=None):
    with ledger_boundary("register_product", sku=sku), locks.hold([("sku", str(sku))]):
        return current_domain.process(
            RegisterProduct(
                name=name,
                sku=sku,
                unit_cost=unit_cost,
                category=category,
                unit_of_measure=unit_of_measure,
            ),
            asynchronous=False,
        )


def register_warehouse(name, short_code, address=None):
    with ledger_boundary("register_warehouse", short_code=short_code):
        return current_domain.process(
            RegisterWarehouse(name=name, short_code=short_code, address=address),
            asynchronous=False,
        )


def register_location(warehouse_id, name, short_code=None, is_default=False):
    with ledger_boundary("register_location", warehouse_id=warehouse_id):
        return current_domain.process(
            RegisterLocation(
                warehouse_id=warehouse_id,
                name=name,
                short_code=short_code,
                is_default=is_default,
            ),
            asynchronous=False,
        )
