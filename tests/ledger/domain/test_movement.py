"""Tests for the Movement aggregate: shape rules, events and contributions."""

import pytest
from ledger.errors import InvalidInput
from ledger.movement.events import MovementRecorded
from ledger.movement.movement import Movement, MovementType


def _record(**overrides):
    defaults = {
        "product_id": "prod-1",
        "quantity": 50,
        "movement_type": MovementType.RECEIPT,
        "reference": "WH/IN/00001",
        "sequence": 1,
        "to_location_id": "loc-1",
    }
    defaults.update(overrides)
    return Movement.record(**defaults)


class TestReceiptShape:
    def test_valid_receipt(self):
        movement = _record()
        assert movement.movement_type == "Receipt"
        assert movement.quantity == 50
        assert movement.to_location_id == "loc-1"
        assert movement.from_location_id is None

    def test_receipt_needs_destination(self):
        with pytest.raises(InvalidInput):
            _record(to_location_id=None)

    def test_receipt_rejects_source(self):
        with pytest.raises(InvalidInput):
            _record(from_location_id="loc-2")

    def test_receipt_must_be_positive(self):
        with pytest.raises(InvalidInput):
            _record(quantity=-5)


class TestDeliveryShape:
    def test_valid_delivery(self):
        movement = _record(
            movement_type=MovementType.DELIVERY,
            quantity=-20,
            from_location_id="loc-1",
            to_location_id=None,
            reference="WH/OUT/00001",
        )
        assert movement.movement_type == "Delivery"
        assert movement.quantity == -20

    def test_delivery_must_be_negative(self):
        with pytest.raises(InvalidInput):
            _record(movement_type=MovementType.DELIVERY, quantity=20, from_location_id="loc-1", to_location_id=None)

    def test_delivery_needs_source(self):
        with pytest.raises(InvalidInput):
            _record(movement_type=MovementType.DELIVERY, quantity=-20, to_location_id=None)


class TestInternalShape:
    def test_valid_transfer(self):
        movement = _record(
            movement_type=MovementType.INTERNAL,
            quantity=10,
            from_location_id="loc-1",
            to_location_id="loc-2",
            reference="INT/1",
        )
        assert movement.from_location_id == "loc-1"
        assert movement.to_location_id == "loc-2"

    def test_transfer_needs_both_sides(self):
        with pytest.raises(InvalidInput):
            _record(movement_type=MovementType.INTERNAL, quantity=10, to_location_id="loc-2")

    def test_transfer_sides_must_differ(self):
        with pytest.raises(InvalidInput):
            _record(
                movement_type=MovementType.INTERNAL,
                quantity=10,
                from_location_id="loc-1",
                to_location_id="loc-1",
            )


class TestAdjustmentShape:
    @pytest.mark.parametrize("delta", [-5, 0, 7])
    def test_adjustment_accepts_any_sign(self, delta):
        movement = _record(movement_type=MovementType.ADJUSTMENT, quantity=delta, reference="ADJ/1")
        assert movement.quantity == delta

    def test_adjustment_needs_location(self):
        with pytest.raises(InvalidInput):
            _record(movement_type=MovementType.ADJUSTMENT, quantity=-5, to_location_id=None)


class TestMovementRecorded:
    def test_record_raises_event(self):
        movement = _record(actor="clerk-1")
        events = [e for e in movement._events if isinstance(e, MovementRecorded)]
        assert len(events) == 1
        event = events[0]
        assert event.movement_id == str(movement.id)
        assert event.quantity == 50
        assert event.movement_type == "Receipt"
        assert event.sequence == 1
        assert event.actor == "clerk-1"

    def test_occurred_at_defaults_to_now(self):
        movement = _record()
        assert movement.occurred_at is not None
        assert movement.recorded_at is not None


class TestContributions:
    def test_receipt_adds_to_destination(self):
        assert _record().contributions() == [("loc-1", 50)]

    def test_delivery_removes_from_source(self):
        movement = _record(
            movement_type=MovementType.DELIVERY, quantity=-20, from_location_id="loc-1", to_location_id=None
        )
        assert movement.contributions() == [("loc-1", -20)]

    def test_internal_moves_between_locations(self):
        movement = _record(
            movement_type=MovementType.INTERNAL, quantity=10, from_location_id="loc-1", to_location_id="loc-2"
        )
        assert movement.contributions() == [("loc-1", -10), ("loc-2", 10)]

    def test_adjustment_applies_delta_to_location(self):
        movement = _record(movement_type=MovementType.ADJUSTMENT, quantity=-5)
        assert movement.contributions() == [("loc-1", -5)]
