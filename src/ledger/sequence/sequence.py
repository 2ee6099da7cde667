"""Sequence aggregate — a named, monotonically increasing counter."""

from protean.fields import DateTime, Identifier, Integer

from ledger.domain import ledger


@ledger.aggregate
class Sequence:
    """One counter per name (``receipt``, ``delivery``, ``movement``).

    The aggregate id is the sequence name, so a counter is independent of the
    size of any collection it numbers.
    """

    id = Identifier(identifier=True, required=True)
    value = Integer(default=0, min_value=0)
    updated_at = DateTime()

    def advance(self, count, now):
        start = self.value + 1
        self.value += count
        self.updated_at = now
        return range(start, self.value + 1)
