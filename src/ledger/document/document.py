"""InventoryDocument aggregate — a planned receipt or delivery.

State Machine:
    Draft → Waiting → Ready → Done
    Draft → Ready | Done, Waiting → Done
    Draft | Waiting | Ready → Cancelled

Done and Cancelled are terminal: the document never changes again. Moving to
Done is what executes the document against the ledger, so it happens at most
once per document.
"""

from datetime import UTC, datetime
from enum import Enum

from protean.fields import Date, DateTime, HasMany, Identifier, Integer, String

from ledger.document.events import (
    DocumentCancelled,
    DocumentCreated,
    DocumentStatusChanged,
    DocumentValidated,
)
from ledger.domain import ledger
from ledger.errors import AlreadyProcessed, InvalidInput, NotFound


class DocumentKind(Enum):
    RECEIPT = "Receipt"
    DELIVERY = "Delivery"


class DocumentStatus(Enum):
    DRAFT = "Draft"
    WAITING = "Waiting"
    READY = "Ready"
    DONE = "Done"
    CANCELLED = "Cancelled"


_VALID_TRANSITIONS = {
    DocumentStatus.DRAFT: {
        DocumentStatus.WAITING,
        DocumentStatus.READY,
        DocumentStatus.DONE,
        DocumentStatus.CANCELLED,
    },
    DocumentStatus.WAITING: {DocumentStatus.READY, DocumentStatus.DONE, DocumentStatus.CANCELLED},
    DocumentStatus.READY: {DocumentStatus.DONE, DocumentStatus.CANCELLED},
    DocumentStatus.DONE: set(),
    DocumentStatus.CANCELLED: set(),
}

TERMINAL_STATES = {DocumentStatus.DONE, DocumentStatus.CANCELLED}


@ledger.entity(part_of="InventoryDocument")
class DocumentLine:
    """One planned product quantity. ``line_number`` keeps the entry order."""

    line_number = Integer(required=True, min_value=1)
    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)


@ledger.aggregate
class InventoryDocument:
    reference = String(required=True, max_length=50, unique=True)
    kind = String(required=True, choices=DocumentKind)
    warehouse_id = Identifier(required=True)
    partner = String(max_length=255)
    scheduled_date = Date()
    status = String(choices=DocumentStatus, default=DocumentStatus.DRAFT.value)
    lines = HasMany(DocumentLine)
    source_document = String(max_length=255)
    responsible = String(max_length=255)
    delivery_address = String(max_length=500)
    validated_at = DateTime()
    cancelled_at = DateTime()
    cancellation_reason = String(max_length=500)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def create(
        cls,
        kind,
        reference,
        warehouse_id,
        partner=None,
        scheduled_date=None,
        source_document=None,
        responsible=None,
        delivery_address=None,
    ):
        kind = DocumentKind(kind)
        if delivery_address and kind != DocumentKind.DELIVERY:
            raise InvalidInput("Only deliveries carry a delivery address", field="delivery_address")

        now = datetime.now(UTC)
        document = cls(
            reference=reference,
            kind=kind.value,
            warehouse_id=str(warehouse_id),
            partner=partner,
            scheduled_date=scheduled_date,
            source_document=source_document,
            responsible=responsible,
            delivery_address=delivery_address,
            created_at=now,
            updated_at=now,
        )
        document.raise_(
            DocumentCreated(
                document_id=str(document.id),
                reference=reference,
                kind=kind.value,
                warehouse_id=str(warehouse_id),
                partner=partner,
                scheduled_date=scheduled_date,
                created_at=now,
            )
        )
        return document

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    @property
    def is_receipt(self):
        return self.kind == DocumentKind.RECEIPT.value

    @property
    def is_terminal(self):
        return DocumentStatus(self.status) in TERMINAL_STATES

    def ordered_lines(self):
        return sorted(self.lines, key=lambda line: line.line_number)

    def planned_quantities(self):
        """Total planned quantity per product, in first-seen line order."""
        totals = {}
        for line in self.ordered_lines():
            totals[str(line.product_id)] = totals.get(str(line.product_id), 0) + line.quantity
        return totals

    # -------------------------------------------------------------------
    # Guards
    # -------------------------------------------------------------------
    def _assert_not_processed(self):
        if self.is_terminal:
            raise AlreadyProcessed(f"Document {self.reference} is already {self.status}")

    def _assert_can_transition(self, target_status):
        self._assert_not_processed()
        current = DocumentStatus(self.status)
        if target_status not in _VALID_TRANSITIONS[current]:
            raise InvalidInput(
                f"Cannot move document {self.reference} from {current.value} to {target_status.value}",
                field="status",
            )

    def _assert_editable(self):
        self._assert_not_processed()
        if self.status != DocumentStatus.DRAFT.value:
            raise InvalidInput(f"Lines of {self.reference} can only change while Draft", field="status")

    # -------------------------------------------------------------------
    # Lines
    # -------------------------------------------------------------------
    def add_line(self, product_id, quantity):
        self._assert_editable()
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            raise InvalidInput(f"Planned quantity must be a positive whole number, got {quantity!r}")

        next_number = max((line.line_number for line in self.lines), default=0) + 1
        line = DocumentLine(line_number=next_number, product_id=str(product_id), quantity=quantity)
        self.add_lines(line)
        self.updated_at = datetime.now(UTC)
        return line

    def remove_line(self, line_id):
        self._assert_editable()
        line = next((line for line in self.lines if str(line.id) == str(line_id)), None)
        if line is None:
            raise NotFound(f"Line {line_id} is not part of {self.reference}", field="line")
        self.remove_lines(line)
        self.updated_at = datetime.now(UTC)

    # -------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------
    def _move_to(self, target_status):
        self._assert_can_transition(target_status)
        previous = self.status
        now = datetime.now(UTC)
        self.status = target_status.value
        self.updated_at = now
        return previous, now

    def advance(self, target_status):
        """Move between non-terminal statuses (Waiting, Ready)."""
        if target_status in TERMINAL_STATES:
            raise InvalidInput(f"Use validate or cancel to reach {target_status.value}", field="status")
        previous, now = self._move_to(target_status)
        self.raise_(
            DocumentStatusChanged(
                document_id=str(self.id),
                reference=self.reference,
                from_status=previous,
                to_status=self.status,
                changed_at=now,
            )
        )

    def assert_can_validate(self):
        self._assert_can_transition(DocumentStatus.DONE)
        if not self.lines:
            raise InvalidInput(f"Document {self.reference} has no lines to validate", field="lines")

    def mark_done(self, location_id):
        self.assert_can_validate()
        _, now = self._move_to(DocumentStatus.DONE)
        self.validated_at = now
        self.raise_(
            DocumentValidated(
                document_id=str(self.id),
                reference=self.reference,
                kind=self.kind,
                location_id=str(location_id),
                line_count=len(self.lines),
                validated_at=now,
            )
        )

    def cancel(self, reason=None):
        previous, now = self._move_to(DocumentStatus.CANCELLED)
        self.cancelled_at = now
        self.cancellation_reason = reason
        self.raise_(
            DocumentCancelled(
                document_id=str(self.id),
                reference=self.reference,
                from_status=previous,
                reason=reason,
                cancelled_at=now,
            )
        )
