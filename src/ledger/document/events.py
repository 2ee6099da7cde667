"""Domain events for inventory documents."""

from protean.fields import Date, DateTime, Identifier, Integer, String

from ledger.domain import ledger


@ledger.event(part_of="InventoryDocument")
class DocumentCreated:
    __version__ = 1

    document_id = Identifier(required=True)
    reference = String(required=True)
    kind = String(required=True)
    warehouse_id = Identifier(required=True)
    partner = String()
    scheduled_date = Date()
    created_at = DateTime(required=True)


@ledger.event(part_of="InventoryDocument")
class DocumentStatusChanged:
    """A document moved between two non-terminal statuses."""

    __version__ = 1

    document_id = Identifier(required=True)
    reference = String(required=True)
    from_status = String(required=True)
    to_status = String(required=True)
    changed_at = DateTime(required=True)


@ledger.event(part_of="InventoryDocument")
class DocumentValidated:
    """A document was executed against the ledger and is now Done."""

    __version__ = 1

    document_id = Identifier(required=True)
    reference = String(required=True)
    kind = String(required=True)
    location_id = Identifier(required=True)
    line_count = Integer(required=True)
    validated_at = DateTime(required=True)


@ledger.event(part_of="InventoryDocument")
class DocumentCancelled:
    __version__ = 1

    document_id = Identifier(required=True)
    reference = String(required=True)
    from_status = String(required=True)
    reason = String()
    cancelled_at = DateTime(required=True)
