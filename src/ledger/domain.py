"""Ledger bounded context — stock quantities and their movement history.

Tracks on-hand quantity per (product, location), records every change as an
append-only movement, and runs receipts and deliveries through a document
lifecycle (CQRS, with a read-side projection for recent activity).
"""

from protean.domain import Domain

from ledger.utils.logging import configure_logging, get_logger

# Configure logging for the application
configure_logging()

logger = get_logger(__name__)

# Domain Composition Root
ledger = Domain(name="ledger")
