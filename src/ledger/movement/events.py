"""Domain events for the movement log."""

from protean.fields import DateTime, Identifier, Integer, String

from ledger.domain import ledger


@ledger.event(part_of="Movement")
class MovementRecorded:
    """A quantity change was appended to the movement log."""

    __version__ = 1

    movement_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = Integer(required=True)
    movement_type = String(required=True)
    from_location_id = Identifier()
    to_location_id = Identifier()
    reference = String(required=True)
    actor = String()
    sequence = Integer(required=True)
    occurred_at = DateTime(required=True)
