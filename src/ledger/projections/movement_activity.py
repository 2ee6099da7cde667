"""Movement activity — movements joined with product and location names."""

from protean.core.projector import on
from protean.exceptions import ObjectNotFoundError
from protean.fields import DateTime, Identifier, Integer, String
from protean.utils.globals import current_domain

from ledger.catalog.lookup import Catalog
from ledger.catalog.product import Product
from ledger.catalog.warehouse import Location
from ledger.domain import ledger
from ledger.movement.events import MovementRecorded
from ledger.movement.movement import Movement


@ledger.projection
class MovementActivity:
    movement_id = Identifier(identifier=True, required=True)
    product_id = Identifier(required=True)
    product_name = String(max_length=255)
    movement_type = String(required=True)
    quantity = Integer(required=True)
    from_location_id = Identifier()
    from_location_name = String(max_length=255)
    to_location_id = Identifier()
    to_location_name = String(max_length=255)
    reference = String(required=True)
    actor = String()
    sequence = Integer(required=True)
    occurred_at = DateTime(required=True)


@ledger.projector(projector_for=MovementActivity, aggregates=[Movement])
class MovementActivityProjector:
    @on(MovementRecorded)
    def on_movement_recorded(self, event):
        repo = current_domain.repository_for(MovementActivity)
        try:
            repo.get(event.movement_id)
            return  # Already projected
        except ObjectNotFoundError:
            pass

        catalog = Catalog()
        repo.add(
            MovementActivity(
                movement_id=event.movement_id,
                product_id=event.product_id,
                product_name=catalog.display_name(Product, event.product_id),
                movement_type=event.movement_type,
                quantity=event.quantity,
                from_location_id=event.from_location_id,
                from_location_name=catalog.display_name(Location, event.from_location_id),
                to_location_id=event.to_location_id,
                to_location_name=catalog.display_name(Location, event.to_location_id),
                reference=event.reference,
                actor=event.actor,
                sequence=event.sequence,
                occurred_at=event.occurred_at,
            )
        )
