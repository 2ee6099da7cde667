"""Shared BDD fixtures and step definitions for the stock ledger."""

import pytest
from ledger.catalog.registration import register_location, register_product, register_warehouse
from ledger.movement.log import MovementLog
from ledger.stock.store import QuantityStore
from pytest_bdd import given, parsers, then


@pytest.fixture()
def places():
    """Location ids by their name in the scenario."""
    return {}


@pytest.fixture()
def products():
    return {}


@pytest.fixture()
def outcome():
    """Holds the failure of the last refused request, if any."""
    return {}


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('a warehouse with a default location "{first}" and a second location "{second}"'))
def _(places, first, second):
    warehouse_id = register_warehouse("Main Warehouse", "WH")
    places["warehouse"] = warehouse_id
    places[first] = register_location(warehouse_id, first, is_default=True)
    places[second] = register_location(warehouse_id, second)


@given(parsers.cfparse('a product "{name}" costing {cost:f} per unit'))
def _(products, name, cost):
    products[name] = register_product(name, f"SKU-{name}", unit_cost=cost)


@given(parsers.cfparse('"{location}" holds {quantity:d} units of "{product}" already'))
def _(stock_ledger, places, products, location, quantity, product):
    stock_ledger.adjust(products[product], places[location], "Set", quantity)


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('"{location}" holds {quantity:d} units of "{product}"'))
def _(places, products, location, quantity, product):
    assert QuantityStore().get(products[product], places[location]) == quantity


@then(parsers.cfparse('the latest movement is a "{movement_type}" of {quantity:d}'))
def _(movement_type, quantity):
    latest = next(iter(MovementLog().query(limit=1)))
    assert latest.movement_type == movement_type
    assert latest.quantity == quantity


@then(parsers.cfparse('the request is refused as "{kind}"'))
def _(outcome, kind):
    assert outcome["error"].kind == kind
