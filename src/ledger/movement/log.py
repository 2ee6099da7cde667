"""Movement log — append-only storage and reads over Movement records.

Nothing here updates or deletes a movement. Reads page through the store in a
stable order, so a query can be iterated several times and never loads the
whole log at once.
"""

from collections import defaultdict
from datetime import UTC, datetime
from itertools import groupby, islice

import structlog
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from ledger.errors import InvalidInput
from ledger.movement.movement import Movement, MovementType
from ledger.utils.clock import as_utc
from ledger.utils.query import scan

logger = structlog.get_logger(__name__)


def newest_first(element_cls, **criteria):
    """Records carrying ``occurred_at`` and ``sequence``, newest first.

    Equal timestamps are ordered by sequence, latest first.
    """
    stream = scan(element_cls, order_by="-occurred_at", **criteria)
    for _, group in groupby(stream, key=lambda record: as_utc(record.occurred_at)):
        yield from sorted(group, key=lambda record: record.sequence, reverse=True)


class MovementQuery:
    """Restartable view over the log, newest first.

    Ordered by ``occurred_at`` descending, ties broken by insertion sequence
    descending. ``location_id`` matches either side of a movement.
    """

    def __init__(self, product_id=None, location_id=None, movement_type=None, reference=None, limit=None):
        self.criteria = {}
        if product_id is not None:
            self.criteria["product_id"] = str(product_id)
        if movement_type is not None:
            self.criteria["movement_type"] = MovementType(movement_type).value
        if reference is not None:
            self.criteria["reference"] = reference
        self.location_id = str(location_id) if location_id is not None else None
        self.limit = limit

    def _matches(self, movement):
        if self.location_id is None:
            return True
        return self.location_id in (movement.from_location_id, movement.to_location_id)

    def __iter__(self):
        movements = (movement for movement in newest_first(Movement, **self.criteria) if self._matches(movement))
        return islice(movements, self.limit) if self.limit is not None else iter(movements)


class MovementLog:
    @property
    def _repo(self):
        return current_domain.repository_for(Movement)

    def append(self, movement: Movement):
        try:
            self._repo.get(movement.id)
        except ObjectNotFoundError:
            self._repo.add(movement)
            logger.debug(
                "Movement appended",
                movement_id=str(movement.id),
                movement_type=movement.movement_type,
                reference=movement.reference,
                sequence=movement.sequence,
            )
            return str(movement.id)
        raise InvalidInput(f"Movement {movement.id} is already recorded", field="movement")

    def query(self, product_id=None, location_id=None, movement_type=None, reference=None, limit=None):
        return MovementQuery(
            product_id=product_id,
            location_id=location_id,
            movement_type=movement_type,
            reference=reference,
            limit=limit,
        )

    def entries(self):
        """Every movement in insertion order."""
        return scan(Movement, order_by="sequence")

    def aggregate_by_month(self, year):
        """``{month: (inbound, outbound)}`` for months 1..12 of ``year``.

        Inbound sums positive deltas, outbound the absolute value of negative
        ones. Internal transfers count their moved quantity as inbound.
        """
        totals = {month: [0, 0] for month in range(1, 13)}
        year_movements = scan(
            Movement,
            order_by="sequence",
            occurred_at__gte=datetime(year, 1, 1, tzinfo=UTC),
            occurred_at__lt=datetime(year + 1, 1, 1, tzinfo=UTC),
        )
        for movement in year_movements:
            occurred_at = as_utc(movement.occurred_at)
            if movement.quantity > 0:
                totals[occurred_at.month][0] += movement.quantity
            elif movement.quantity < 0:
                totals[occurred_at.month][1] += -movement.quantity
        return {month: (inbound, outbound) for month, (inbound, outbound) in totals.items()}

    def replay(self):
        """Fold the log into ``{(product_id, location_id): quantity}``."""
        quantities = defaultdict(int)
        for movement in self.entries():
            for location_id, contribution in movement.contributions():
                quantities[(movement.product_id, location_id)] += contribution
        return dict(quantities)
