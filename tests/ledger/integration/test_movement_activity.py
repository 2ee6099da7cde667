"""The movement activity projection mirrors the log with display names."""

import pytest
from ledger.errors import InsufficientStock
from ledger.movement.log import MovementLog
from ledger.projections.movement_activity import MovementActivity
from protean import current_domain


def test_each_movement_is_projected(stock_ledger, product_id, stock_location_id, shelf_location_id):
    received = stock_ledger.receive(product_id, stock_location_id, 10, "WH/IN/00001")
    moved = stock_ledger.transfer(product_id, stock_location_id, shelf_location_id, 4)

    repo = current_domain.repository_for(MovementActivity)
    receipt_entry = repo.get(str(received.id))
    transfer_entry = repo.get(str(moved.id))

    assert receipt_entry.product_name == "Steel Bolt M8"
    assert receipt_entry.to_location_name == "WH/Stock"
    assert receipt_entry.from_location_name is None
    assert receipt_entry.quantity == 10
    assert transfer_entry.from_location_name == "WH/Stock"
    assert transfer_entry.to_location_name == "WH/Shelf-A"
    assert transfer_entry.sequence == moved.sequence


def test_refused_operations_are_not_projected(stock_ledger, product_id, stock_location_id):
    with pytest.raises(InsufficientStock):
        stock_ledger.deliver(product_id, stock_location_id, 1, "WH/OUT/00001")

    assert len(list(MovementLog().query())) == 0
    assert current_domain.repository_for(MovementActivity)._dao.query.all().items == []
