"""Movement aggregate — one immutable entry of the movement log.

``quantity`` is the signed delta of the movement, except for internal
transfers where it is the (positive) quantity moved from ``from_location_id``
to ``to_location_id``.

Location rules:
    Receipt     to required, from absent, quantity > 0
    Delivery    from required, to absent, quantity < 0
    Internal    both required and distinct, quantity > 0
    Adjustment  to required (the adjusted location), any sign
"""

from datetime import UTC, datetime
from enum import Enum

from protean.fields import DateTime, Identifier, Integer, String

from ledger.domain import ledger
from ledger.errors import InvalidInput
from ledger.movement.events import MovementRecorded
from ledger.utils.clock import as_utc


class MovementType(Enum):
    RECEIPT = "Receipt"
    DELIVERY = "Delivery"
    INTERNAL = "Internal"
    ADJUSTMENT = "Adjustment"


def _check_shape(movement_type, quantity, from_location_id, to_location_id):
    if movement_type == MovementType.RECEIPT:
        if not to_location_id or from_location_id:
            raise InvalidInput("A receipt needs a destination and no source", field="location")
        if quantity <= 0:
            raise InvalidInput("A receipt must increase stock", field="quantity")
    elif movement_type == MovementType.DELIVERY:
        if not from_location_id or to_location_id:
            raise InvalidInput("A delivery needs a source and no destination", field="location")
        if quantity >= 0:
            raise InvalidInput("A delivery must decrease stock", field="quantity")
    elif movement_type == MovementType.INTERNAL:
        if not from_location_id or not to_location_id:
            raise InvalidInput("A transfer needs both a source and a destination", field="location")
        if str(from_location_id) == str(to_location_id):
            raise InvalidInput("Source and destination must differ", field="location")
        if quantity <= 0:
            raise InvalidInput("A transfer must move a positive quantity", field="quantity")
    elif not to_location_id:
        raise InvalidInput("An adjustment needs the adjusted location", field="location")


@ledger.aggregate
class Movement:
    product_id = Identifier(required=True)
    quantity = Integer(required=True)
    movement_type = String(required=True, choices=MovementType)
    from_location_id = Identifier()
    to_location_id = Identifier()
    reference = String(required=True, max_length=255)
    actor = String(max_length=255)
    reason = String(max_length=500)
    sequence = Integer(required=True, min_value=1)
    occurred_at = DateTime(required=True)
    recorded_at = DateTime(required=True)

    @classmethod
    def record(
        cls,
        product_id,
        quantity,
        movement_type,
        reference,
        sequence,
        from_location_id=None,
        to_location_id=None,
        occurred_at=None,
        actor=None,
        reason=None,
    ):
        movement_type = MovementType(movement_type)
        _check_shape(movement_type, quantity, from_location_id, to_location_id)

        now = datetime.now(UTC)
        movement = cls(
            product_id=str(product_id),
            quantity=quantity,
            movement_type=movement_type.value,
            from_location_id=str(from_location_id) if from_location_id else None,
            to_location_id=str(to_location_id) if to_location_id else None,
            reference=reference,
            actor=actor,
            reason=reason,
            sequence=sequence,
            occurred_at=as_utc(occurred_at) or now,
            recorded_at=now,
        )
        movement.raise_(
            MovementRecorded(
                movement_id=str(movement.id),
                product_id=movement.product_id,
                quantity=quantity,
                movement_type=movement.movement_type,
                from_location_id=movement.from_location_id,
                to_location_id=movement.to_location_id,
                reference=reference,
                actor=actor,
                sequence=sequence,
                occurred_at=movement.occurred_at,
            )
        )
        return movement

    def contributions(self):
        """Signed quantity this movement adds to each location it touches."""
        if self.movement_type == MovementType.INTERNAL.value:
            return [(self.from_location_id, -self.quantity), (self.to_location_id, self.quantity)]
        if self.movement_type == MovementType.DELIVERY.value:
            return [(self.from_location_id, self.quantity)]
        return [(self.to_location_id, self.quantity)]
