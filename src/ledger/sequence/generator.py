"""Atomic sequence generation and document reference formatting.

``next_values`` holds the sequence's key lock while reading, advancing and
committing the counter, so two concurrent callers never receive the same
number. Numbers handed to an operation that later fails are not reused; gaps
are expected.
"""

from datetime import UTC, datetime

import structlog
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from ledger.errors import InvalidInput
from ledger.sequence.sequence import Sequence
from ledger.transaction import locks, sequence_key, unit_of_work

logger = structlog.get_logger(__name__)

RECEIPT = "receipt"
DELIVERY = "delivery"
MOVEMENT = "movement"

REFERENCE_FORMATS = {
    RECEIPT: "WH/IN/{:05d}",
    DELIVERY: "WH/OUT/{:05d}",
}


def format_reference(name, number):
    try:
        return REFERENCE_FORMATS[name].format(number)
    except KeyError as exc:
        raise InvalidInput(f"No reference format for sequence {name!r}", field="sequence") from exc


class SequenceGenerator:
    def next_values(self, name, count=1):
        """Reserve ``count`` consecutive numbers of sequence ``name``."""
        if count < 1:
            raise InvalidInput("At least one sequence number must be requested", field="count")

        repo = current_domain.repository_for(Sequence)
        with locks.hold([sequence_key(name)]):
            with unit_of_work():
                try:
                    sequence = repo.get(name)
                except ObjectNotFoundError:
                    sequence = Sequence(id=name, value=0)
                numbers = sequence.advance(count, datetime.now(UTC))
                repo.add(sequence)

        logger.debug("Sequence advanced", sequence=name, first=numbers[0], last=numbers[-1])
        return numbers

    def next_value(self, name):
        return self.next_values(name)[0]

    def next_reference(self, name):
        """Next document reference, e.g. ``WH/IN/00001`` for receipts."""
        if name not in REFERENCE_FORMATS:
            raise InvalidInput(f"No reference format for sequence {name!r}", field="sequence")
        return format_reference(name, self.next_value(name))
