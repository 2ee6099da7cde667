"""Dashboard aggregation over stock levels, movements and documents.

Read-only. Each figure is its own query, so one summary is a set of
point-in-time snapshots that may disagree slightly under concurrent writes.
It is suitable for a dashboard, not for financial reconciliation.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from itertools import islice

import structlog

from ledger import config
from ledger.catalog.lookup import Catalog
from ledger.document.document import TERMINAL_STATES, DocumentKind, DocumentStatus, InventoryDocument
from ledger.movement.log import MovementLog, newest_first
from ledger.projections.movement_activity import MovementActivity
from ledger.stock.store import QuantityStore
from ledger.utils.query import scan

logger = structlog.get_logger(__name__)

MONTH_NAMES = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")
OPEN_STATUSES = [status.value for status in DocumentStatus if status not in TERMINAL_STATES]


@dataclass(frozen=True)
class MovementSummary:
    movement_id: str
    reference: str
    movement_type: str
    product_id: str
    product_name: str
    quantity: int
    from_location: str | None
    to_location: str | None
    occurred_at: datetime


@dataclass(frozen=True)
class MonthlyMovement:
    month_name: str
    inbound: int
    outbound: int


@dataclass(frozen=True)
class DashboardSummary:
    total_valuation: float
    low_stock_count: int
    pending_receipts: int
    pending_deliveries: int
    late_operations: int
    waiting_operations: int
    total_products: int
    recent_activity: list[MovementSummary] = field(default_factory=list)
    monthly: list[MonthlyMovement] = field(default_factory=list)


class LedgerReporter:
    def __init__(self, store=None, log=None, catalog=None):
        self.store = store or QuantityStore()
        self.log = log or MovementLog()
        self.catalog = catalog or Catalog()

    def total_valuation(self) -> float:
        costs = {}
        total = 0.0
        for level in self.store.levels():
            if level.product_id not in costs:
                costs[level.product_id] = self.catalog.unit_cost(level.product_id)
            total += level.quantity * costs[level.product_id]
        return round(total, 2)

    def low_stock_count(self, threshold=None) -> int:
        threshold = config.low_stock_threshold() if threshold is None else threshold
        return sum(1 for level in self.store.levels() if level.quantity < threshold)

    def document_counts(self, today):
        counts = {"pending_receipts": 0, "pending_deliveries": 0, "late_operations": 0, "waiting_operations": 0}
        for document in scan(InventoryDocument, order_by="created_at"):
            if document.status not in OPEN_STATUSES:
                continue
            if document.kind == DocumentKind.RECEIPT.value:
                counts["pending_receipts"] += 1
            else:
                counts["pending_deliveries"] += 1
            if document.status == DocumentStatus.WAITING.value:
                counts["waiting_operations"] += 1
            if document.scheduled_date and _as_date(document.scheduled_date) < today:
                counts["late_operations"] += 1
        return counts

    def recent_activity(self, limit=None):
        limit = config.recent_activity_limit() if limit is None else limit
        return [
            MovementSummary(
                movement_id=str(activity.movement_id),
                reference=activity.reference,
                movement_type=activity.movement_type,
                product_id=activity.product_id,
                product_name=activity.product_name,
                quantity=activity.quantity,
                from_location=activity.from_location_name,
                to_location=activity.to_location_name,
                occurred_at=activity.occurred_at,
            )
            for activity in islice(newest_first(MovementActivity), limit)
        ]

    def monthly(self, year):
        totals = self.log.aggregate_by_month(year)
        return [
            MonthlyMovement(month_name=MONTH_NAMES[month - 1], inbound=inbound, outbound=outbound)
            for month, (inbound, outbound) in sorted(totals.items())
        ]

    def dashboard(self, year=None, today=None) -> DashboardSummary:
        today = today or datetime.now(UTC).date()
        year = year or today.year

        summary = DashboardSummary(
            total_valuation=self.total_valuation(),
            low_stock_count=self.low_stock_count(),
            total_products=sum(1 for _ in self.catalog.products()),
            recent_activity=self.recent_activity(),
            monthly=self.monthly(year),
            **self.document_counts(today),
        )
        logger.debug("Dashboard computed", year=year, total_valuation=summary.total_valuation)
        return summary


def _as_date(value):
    return value.date() if isinstance(value, datetime) else value

