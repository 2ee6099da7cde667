"""Quantity store — per-(product, location) quantities over the repository.

``apply_delta`` is the single-row atomic primitive: it holds the pair's key
lock across read, write and commit. Operations touching several rows take the
locks themselves and use ``load``/``save`` inside their own unit of work.
"""

from collections import defaultdict
from datetime import UTC, datetime

import structlog
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from ledger.movement.log import MovementLog
from ledger.stock.stock_level import StockLevel, stock_level_id
from ledger.transaction import ledger_transaction, locks, stock_key, unit_of_work
from ledger.utils.query import scan

logger = structlog.get_logger(__name__)


class QuantityStore:
    @property
    def _repo(self):
        return current_domain.repository_for(StockLevel)

    def load(self, product_id, location_id) -> StockLevel:
        """The stored level, or an unsaved empty one for an unseen pair."""
        try:
            return self._repo.get(stock_level_id(product_id, location_id))
        except ObjectNotFoundError:
            return StockLevel.empty(product_id, location_id)

    def save(self, level: StockLevel):
        self._repo.add(level)

    def get(self, product_id, location_id) -> int:
        return self.load(product_id, location_id).quantity

    def apply_delta(self, product_id, location_id, delta) -> int:
        with ledger_transaction(stock_key(product_id, location_id)):
            level = self.load(product_id, location_id)
            new_quantity = level.apply_delta(delta)
            self.save(level)
        return new_quantity

    def levels(self, product_id=None, location_id=None):
        criteria = {}
        if product_id is not None:
            criteria["product_id"] = str(product_id)
        if location_id is not None:
            criteria["location_id"] = str(location_id)
        return scan(StockLevel, **criteria)

    def reconcile(self, movement_log=None):
        """Differences between stored levels and the fold of the log.

        Returns ``{(product_id, location_id): (stored, expected)}`` for every
        pair that disagrees; an empty dict means the store is consistent.
        """
        movement_log = movement_log or MovementLog()
        expected = movement_log.replay()
        stored = {(level.product_id, level.location_id): level.quantity for level in self.levels()}

        discrepancies = {}
        for pair in set(expected) | set(stored):
            if stored.get(pair, 0) != expected.get(pair, 0):
                discrepancies[pair] = (stored.get(pair, 0), expected.get(pair, 0))
        return discrepancies

    def rebuild(self, movement_log=None):
        """Rewrite every stored level from the log. Returns the pairs changed."""
        movement_log = movement_log or MovementLog()
        expected = defaultdict(int, movement_log.replay())
        pairs = set(expected) | {(level.product_id, level.location_id) for level in self.levels()}

        changed = []
        with locks.hold([stock_key(*pair) for pair in pairs]):
            # Re-read under the locks; the log may have grown meanwhile
            expected = defaultdict(int, movement_log.replay())
            with unit_of_work():
                for pair in sorted(pairs):
                    level = self.load(*pair)
                    if level.quantity != expected[pair]:
                        level.quantity = expected[pair]
                        level.updated_at = datetime.now(UTC)
                        self.save(level)
                        changed.append(pair)

        logger.info("Stock levels rebuilt from movement log", changed=len(changed))
        return changed
