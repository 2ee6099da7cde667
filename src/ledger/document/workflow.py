"""Document workflow — creating, progressing and executing documents.

Every change to a document happens under that document's key lock. Validation
additionally holds the stock locks of its lines and writes the new status in
the same unit of work as the stock changes and movements, so the Done check
and the ledger mutation cannot be separated by a concurrent request.
"""

import structlog
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from ledger.catalog.lookup import Catalog
from ledger.document.document import DocumentKind, DocumentStatus, InventoryDocument
from ledger.errors import InvalidInput, NotFound, ledger_boundary
from ledger.movement.movement import MovementType
from ledger.operations.stock_ledger import StockLedger
from ledger.sequence.generator import DELIVERY, RECEIPT, SequenceGenerator
from ledger.transaction import document_key, locks, unit_of_work
from ledger.utils.clock import as_utc

logger = structlog.get_logger(__name__)


def _line_items(lines):
    """Accept ``(product_id, quantity)`` pairs or mappings with those keys."""
    for line in lines or ():
        if isinstance(line, dict):
            yield line.get("product_id"), line.get("quantity")
        else:
            try:
                product_id, quantity = line
            except (TypeError, ValueError) as exc:
                raise InvalidInput("Each line needs a product and a quantity", field="lines") from exc
            yield product_id, quantity


class DocumentWorkflow:
    def __init__(self, ledger=None, catalog=None, sequences=None):
        self.catalog = catalog or Catalog()
        self.sequences = sequences or SequenceGenerator()
        self.ledger = ledger or StockLedger(catalog=self.catalog, sequences=self.sequences)

    @property
    def _repo(self):
        return current_domain.repository_for(InventoryDocument)

    def get(self, document_id) -> InventoryDocument:
        try:
            return self._repo.get(str(document_id))
        except ObjectNotFoundError as exc:
            raise NotFound(f"Document {document_id} does not exist", field="document") from exc

    # -------------------------------------------------------------------
    # Creation
    # -------------------------------------------------------------------
    def _create(self, kind, warehouse_id, lines, **details):
        self.catalog.warehouse(warehouse_id)
        items = list(_line_items(lines))
        for product_id, _ in items:
            self.catalog.product(product_id)

        sequence = RECEIPT if kind == DocumentKind.RECEIPT else DELIVERY
        reference = self.sequences.next_reference(sequence)

        document = InventoryDocument.create(kind=kind, reference=reference, warehouse_id=warehouse_id, **details)
        for product_id, quantity in items:
            document.add_line(product_id, quantity)
        with unit_of_work():
            self._repo.add(document)

        logger.info(
            "Document created",
            document_id=str(document.id),
            reference=reference,
            kind=kind.value,
            lines=len(items),
        )
        return document

    def create_receipt(
        self,
        warehouse_id,
        lines=(),
        partner=None,
        scheduled_date=None,
        source_document=None,
        responsible=None,
    ):
        """Create a Draft receipt numbered ``WH/IN/nnnnn``."""
        with ledger_boundary("create_receipt", warehouse_id=warehouse_id):
            return self._create(
                DocumentKind.RECEIPT,
                warehouse_id,
                lines,
                partner=partner,
                scheduled_date=scheduled_date,
                source_document=source_document,
                responsible=responsible,
            )

    def create_delivery(
        self,
        warehouse_id,
        lines=(),
        partner=None,
        scheduled_date=None,
        source_document=None,
        responsible=None,
        delivery_address=None,
    ):
        """Create a Draft delivery numbered ``WH/OUT/nnnnn``."""
        with ledger_boundary("create_delivery", warehouse_id=warehouse_id):
            return self._create(
                DocumentKind.DELIVERY,
                warehouse_id,
                lines,
                partner=partner,
                scheduled_date=scheduled_date,
                source_document=source_document,
                responsible=responsible,
                delivery_address=delivery_address,
            )

    # -------------------------------------------------------------------
    # Changes under the document lock
    # -------------------------------------------------------------------
    def _change(self, operation, document_id, mutate, **context):
        with ledger_boundary(operation, document_id=document_id, **context):
            with locks.hold([document_key(document_id)]):
                document = self.get(document_id)
                mutate(document)
                with unit_of_work():
                    self._repo.add(document)
        logger.info("Document updated", operation=operation, document_id=str(document_id), status=document.status)
        return document

    def add_line(self, document_id, product_id, quantity):
        def mutate(document):
            self.catalog.product(product_id)
            document.add_line(product_id, quantity)

        return self._change("add_line", document_id, mutate, product_id=product_id)

    def remove_line(self, document_id, line_id):
        return self._change("remove_line", document_id, lambda document: document.remove_line(line_id))

    def confirm(self, document_id):
        """Draft → Waiting."""
        return self._change("confirm", document_id, lambda document: document.advance(DocumentStatus.WAITING))

    def mark_ready(self, document_id):
        """Waiting → Ready."""

        def mutate(document):
            if document.status != DocumentStatus.WAITING.value and not document.is_terminal:
                raise InvalidInput(f"Only Waiting documents can be marked ready, {document.reference} is {document.status}")
            document.advance(DocumentStatus.READY)

        return self._change("mark_ready", document_id, mutate)

    def check_availability(self, document_id):
        """Ready when every line can be served, otherwise Waiting.

        Receipts are always ready. A delivery is ready when the designated
        location holds the planned total of each product. Only Draft and
        Waiting documents are checked.
        """

        def mutate(document):
            if document.status == DocumentStatus.READY.value:
                raise InvalidInput(f"{document.reference} is already Ready", field="status")
            if document.is_receipt:
                covered = True
            else:
                location = self.catalog.default_location(document.warehouse_id)
                covered = all(
                    self.ledger.store.get(product_id, location.id) >= planned
                    for product_id, planned in document.planned_quantities().items()
                )
            target = DocumentStatus.READY if covered else DocumentStatus.WAITING
            if document.status != target.value:
                document.advance(target)

        return self._change("check_availability", document_id, mutate)

    def cancel(self, document_id, reason=None):
        return self._change("cancel", document_id, lambda document: document.cancel(reason))

    # -------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------
    def validate(self, document_id, actor=None):
        """Execute the document against the ledger and mark it Done.

        Receipts receive every line at the warehouse's designated location;
        deliveries deliver every line from it. Either all lines apply and the
        document is Done, or nothing changes.
        """
        with ledger_boundary("validate", document_id=document_id):
            with locks.hold([document_key(document_id)]):
                document = self.get(document_id)
                document.assert_can_validate()
                location = self.catalog.default_location(document.warehouse_id)
                lines = document.ordered_lines()
                occurred_at = as_utc(document.scheduled_date) if document.scheduled_date else None

                def compose(posting):
                    for line in lines:
                        if document.is_receipt:
                            posting.move(line.product_id, location.id, line.quantity)
                            posting.record(
                                product_id=line.product_id,
                                quantity=line.quantity,
                                movement_type=MovementType.RECEIPT,
                                to_location_id=location.id,
                                reference=document.reference,
                                occurred_at=occurred_at,
                                actor=actor,
                            )
                        else:
                            posting.move(line.product_id, location.id, -line.quantity)
                            posting.record(
                                product_id=line.product_id,
                                quantity=-line.quantity,
                                movement_type=MovementType.DELIVERY,
                                from_location_id=location.id,
                                reference=document.reference,
                                occurred_at=occurred_at,
                                actor=actor,
                            )
                    document.mark_done(location.id)

                movements = self.ledger.execute(
                    [(line.product_id, location.id) for line in lines],
                    compose,
                    before_commit=lambda: self._repo.add(document),
                )

        logger.info(
            "Document validated",
            document_id=str(document.id),
            reference=document.reference,
            kind=document.kind,
            location_id=str(location.id),
            movements=len(movements),
        )
        return document
