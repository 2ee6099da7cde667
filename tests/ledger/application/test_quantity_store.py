"""Application tests for the quantity store."""

import pytest
from ledger.errors import InsufficientStock
from ledger.stock.stock_level import StockLevel, stock_level_id
from ledger.stock.store import QuantityStore
from protean import current_domain


@pytest.fixture()
def store():
    return QuantityStore()


class TestGet:
    def test_unknown_pair_is_zero(self, store):
        assert store.get("prod-1", "loc-1") == 0

    def test_get_does_not_create_a_record(self, store):
        store.get("prod-1", "loc-1")
        assert list(store.levels()) == []


class TestApplyDelta:
    def test_first_write_creates_the_record(self, store):
        assert store.apply_delta("prod-1", "loc-1", 10) == 10
        level = current_domain.repository_for(StockLevel).get(stock_level_id("prod-1", "loc-1"))
        assert level.quantity == 10

    def test_deltas_accumulate(self, store):
        store.apply_delta("prod-1", "loc-1", 10)
        store.apply_delta("prod-1", "loc-1", -4)
        assert store.get("prod-1", "loc-1") == 6

    def test_negative_result_is_refused(self, store):
        store.apply_delta("prod-1", "loc-1", 3)
        with pytest.raises(InsufficientStock):
            store.apply_delta("prod-1", "loc-1", -4)
        assert store.get("prod-1", "loc-1") == 3

    def test_one_record_per_pair(self, store):
        store.apply_delta("prod-1", "loc-1", 1)
        store.apply_delta("prod-1", "loc-1", 1)
        store.apply_delta("prod-1", "loc-2", 1)
        assert len(list(store.levels())) == 2


class TestLevels:
    def test_filter_by_product_and_location(self, store):
        store.apply_delta("prod-1", "loc-1", 1)
        store.apply_delta("prod-1", "loc-2", 2)
        store.apply_delta("prod-2", "loc-1", 3)

        assert {level.location_id for level in store.levels(product_id="prod-1")} == {"loc-1", "loc-2"}
        assert {level.product_id for level in store.levels(location_id="loc-1")} == {"prod-1", "prod-2"}
        assert [level.quantity for level in store.levels(product_id="prod-2", location_id="loc-1")] == [3]
