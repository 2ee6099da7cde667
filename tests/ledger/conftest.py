import pytest
from protean.integrations.pytest import DomainFixture
from protean.utils.globals import current_domain


@pytest.fixture(scope="session")
def ledger_bed():
    from ledger.domain import ledger
    from ledger.utils.db import drop_db, setup_db

    bed = DomainFixture(ledger)
    bed.setup()
    setup_db(ledger)
    yield bed
    drop_db(ledger)
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(ledger_bed):
    with ledger_bed.domain_context():
        yield

        # Clear all databases
        for _, provider in current_domain.providers.items():
            provider._data_reset()

        # Drain event stores
        current_domain.event_store.store._data_reset()


# ---------------------------------------------------------------------------
# Catalog fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def warehouse_id():
    from ledger.catalog.registration import register_warehouse

    return register_warehouse("Main Warehouse", "WH", address="1 Dock Road")


@pytest.fixture()
def stock_location_id(warehouse_id):
    """L1: the warehouse's default stock location."""
    from ledger.catalog.registration import register_location

    return register_location(warehouse_id, "WH/Stock", short_code="STOCK", is_default=True)


@pytest.fixture()
def shelf_location_id(warehouse_id, stock_location_id):
    """L2: a second location in the same warehouse."""
    from ledger.catalog.registration import register_location

    return register_location(warehouse_id, "WH/Shelf-A", short_code="SHELF-A")


@pytest.fixture()
def product_id():
    from ledger.catalog.registration import register_product

    return register_product("Steel Bolt M8", "BOLT-M8", unit_cost=2.5, category="Fasteners")


@pytest.fixture()
def other_product_id():
    from ledger.catalog.registration import register_product

    return register_product("Hex Nut M8", "NUT-M8", unit_cost=0.4, category="Fasteners")


@pytest.fixture()
def stock_ledger():
    from ledger.operations.stock_ledger import StockLedger

    return StockLedger()


@pytest.fixture()
def workflow():
    from ledger.document.workflow import DocumentWorkflow

    return DocumentWorkflow()
