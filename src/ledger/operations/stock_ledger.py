"""Ledger operations — receive, deliver, transfer and adjust.

Every operation runs the same posting cycle:

1. lock the stock keys it touches (sorted, bounded wait);
2. load those levels and check every precondition in memory;
3. reserve movement sequence numbers;
4. save the levels and append the movements in one unit of work.

Nothing is written before step 4, and the locks are held until it commits, so
a failed or refused operation leaves stock, log and documents untouched and a
concurrent operation on the same key always sees committed quantities.
"""

import secrets
import time
from enum import Enum

import structlog

from ledger.catalog.lookup import Catalog
from ledger.errors import InvalidAdjustment, InvalidInput, ledger_boundary
from ledger.movement.log import MovementLog
from ledger.movement.movement import Movement, MovementType
from ledger.sequence.generator import MOVEMENT, SequenceGenerator
from ledger.stock.store import QuantityStore
from ledger.transaction import locks, stock_key, unit_of_work

logger = structlog.get_logger(__name__)


class AdjustmentMode(Enum):
    SET = "Set"
    ADD = "Add"


def internal_reference(prefix):
    """``INT/…`` or ``ADJ/…``: millisecond timestamp plus a random suffix."""
    return f"{prefix}/{int(time.time() * 1000)}-{secrets.token_hex(2)}"


def require_quantity(quantity, field="quantity"):
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise InvalidInput(f"Quantity must be a whole number, got {quantity!r}", field=field)
    if quantity <= 0:
        raise InvalidInput(f"Quantity must be positive, got {quantity}", field=field)


class Posting:
    """Stock changes and movements staged against locked levels."""

    def __init__(self, levels):
        self.levels = levels
        self.touched = []
        self.entries = []

    def quantity(self, product_id, location_id):
        return self.levels[(str(product_id), str(location_id))].quantity

    def move(self, product_id, location_id, delta):
        pair = (str(product_id), str(location_id))
        if pair not in self.touched:
            self.touched.append(pair)
        return self.levels[pair].apply_delta(delta)

    def record(self, **entry):
        self.entries.append(entry)


class StockLedger:
    def __init__(self, store=None, log=None, catalog=None, sequences=None):
        self.store = store or QuantityStore()
        self.log = log or MovementLog()
        self.catalog = catalog or Catalog()
        self.sequences = sequences or SequenceGenerator()

    def execute(self, pairs, compose, before_commit=None):
        """Run one posting cycle over the ``(product_id, location_id)`` pairs.

        ``compose(posting)`` stages changes and may raise to abort. Anything
        ``before_commit`` writes joins the same unit of work. Returns the
        appended movements.
        """
        pairs = sorted({(str(product_id), str(location_id)) for product_id, location_id in pairs})
        with locks.hold([stock_key(*pair) for pair in pairs]):
            posting = Posting({pair: self.store.load(*pair) for pair in pairs})
            compose(posting)

            numbers = self.sequences.next_values(MOVEMENT, len(posting.entries)) if posting.entries else []
            movements = [Movement.record(sequence=number, **entry) for number, entry in zip(numbers, posting.entries)]

            with unit_of_work():
                for pair in posting.touched:
                    self.store.save(posting.levels[pair])
                for movement in movements:
                    self.log.append(movement)
                if before_commit is not None:
                    before_commit()
        return movements

    def receive(self, product_id, to_location_id, quantity, reference, occurred_at=None, actor=None):
        with ledger_boundary("receive", product_id=product_id, location_id=to_location_id, quantity=quantity):
            require_quantity(quantity)
            if not reference:
                raise InvalidInput("A receipt needs a reference", field="reference")
            self.catalog.product(product_id)
            self.catalog.location(to_location_id)

            def compose(posting):
                posting.move(product_id, to_location_id, quantity)
                posting.record(
                    product_id=product_id,
                    quantity=quantity,
                    movement_type=MovementType.RECEIPT,
                    to_location_id=to_location_id,
                    reference=reference,
                    occurred_at=occurred_at,
                    actor=actor,
                )

            (movement,) = self.execute([(product_id, to_location_id)], compose)

        logger.info("Stock received", product_id=product_id, location_id=to_location_id, quantity=quantity, reference=reference)
        return movement

    def deliver(self, product_id, from_location_id, quantity, reference, occurred_at=None, actor=None):
        with ledger_boundary("deliver", product_id=product_id, location_id=from_location_id, quantity=quantity):
            require_quantity(quantity)
            if not reference:
                raise InvalidInput("A delivery needs a reference", field="reference")
            self.catalog.product(product_id)
            self.catalog.location(from_location_id)

            def compose(posting):
                posting.move(product_id, from_location_id, -quantity)
                posting.record(
                    product_id=product_id,
                    quantity=-quantity,
                    movement_type=MovementType.DELIVERY,
                    from_location_id=from_location_id,
                    reference=reference,
                    occurred_at=occurred_at,
                    actor=actor,
                )

            (movement,) = self.execute([(product_id, from_location_id)], compose)

        logger.info("Stock delivered", product_id=product_id, location_id=from_location_id, quantity=quantity, reference=reference)
        return movement

    def transfer(self, product_id, from_location_id, to_location_id, quantity, actor=None):
        with ledger_boundary(
            "transfer",
            product_id=product_id,
            from_location_id=from_location_id,
            to_location_id=to_location_id,
            quantity=quantity,
        ):
            require_quantity(quantity)
            if from_location_id and str(from_location_id) == str(to_location_id):
                raise InvalidInput("Source and destination locations must differ", field="location")
            self.catalog.product(product_id)
            self.catalog.location(from_location_id)
            self.catalog.location(to_location_id)
            reference = internal_reference("INT")

            def compose(posting):
                posting.move(product_id, from_location_id, -quantity)
                posting.move(product_id, to_location_id, quantity)
                posting.record(
                    product_id=product_id,
                    quantity=quantity,
                    movement_type=MovementType.INTERNAL,
                    from_location_id=from_location_id,
                    to_location_id=to_location_id,
                    reference=reference,
                    actor=actor,
                )

            (movement,) = self.execute([(product_id, from_location_id), (product_id, to_location_id)], compose)

        logger.info(
            "Stock transferred",
            product_id=product_id,
            from_location_id=from_location_id,
            to_location_id=to_location_id,
            quantity=quantity,
            reference=reference,
        )
        return movement

    def adjust(self, product_id, location_id, mode, value, actor=None, reason=None):
        """Correct a stock level after a count.

        ``Set`` makes the level equal to ``value``; ``Add`` moves it by
        ``value``. Going below zero with ``Add`` is ``InsufficientStock``.
        """
        with ledger_boundary("adjust", product_id=product_id, location_id=location_id, mode=str(mode), value=value):
            try:
                mode = AdjustmentMode(mode)
            except ValueError as exc:
                raise InvalidAdjustment(f"Unknown adjustment mode {mode!r}") from exc
            if isinstance(value, bool) or not isinstance(value, int):
                raise InvalidAdjustment(f"Adjustment value must be a whole number, got {value!r}")
            if mode == AdjustmentMode.SET and value < 0:
                raise InvalidAdjustment(f"Cannot set stock to a negative quantity ({value})")
            self.catalog.product(product_id)
            self.catalog.location(location_id)
            reference = internal_reference("ADJ")

            def compose(posting):
                current = posting.quantity(product_id, location_id)
                delta = value - current if mode == AdjustmentMode.SET else value
                posting.move(product_id, location_id, delta)
                posting.record(
                    product_id=product_id,
                    quantity=delta,
                    movement_type=MovementType.ADJUSTMENT,
                    to_location_id=location_id,
                    reference=reference,
                    actor=actor,
                    reason=reason,
                )

            (movement,) = self.execute([(product_id, location_id)], compose)

        logger.info(
            "Stock adjusted",
            product_id=product_id,
            location_id=location_id,
            mode=mode.value,
            delta=movement.quantity,
            reference=reference,
        )
        return movement
