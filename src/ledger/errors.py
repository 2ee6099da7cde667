"""Ledger failure taxonomy.

Business-rule failures subclass Protean's ``ValidationError`` so callers can
inspect ``messages`` the same way they do for field validation. Infrastructure
failures are plain exceptions flagged ``retryable``: only those may be retried
automatically, because a business-rule failure repeats identically.
"""

from contextlib import contextmanager

import structlog
from protean.exceptions import ObjectNotFoundError, ValidationError

logger = structlog.get_logger(__name__)


class LedgerFailure:
    """Attributes shared by every ledger failure."""

    kind = "ledger_failure"
    retryable = False
    message = ""


class LedgerError(LedgerFailure, ValidationError):
    """A request the ledger refused. State is unchanged."""

    kind = "ledger_error"
    field = "ledger"

    def __init__(self, message, field=None):
        self.message = message
        super().__init__({field or self.field: [message]})


class InsufficientStock(LedgerError):
    kind = "insufficient_stock"
    field = "quantity"


class InvalidAdjustment(LedgerError):
    kind = "invalid_adjustment"
    field = "adjustment"


class AlreadyProcessed(LedgerError):
    kind = "already_processed"
    field = "status"


class NotFound(LedgerError):
    kind = "not_found"
    field = "id"


class InvalidInput(LedgerError):
    kind = "invalid_input"


class LedgerInfrastructureError(LedgerFailure, Exception):
    """The store could not complete the request. Safe to retry."""

    kind = "ledger_infrastructure"
    retryable = True

    def __init__(self, message):
        self.message = message
        super().__init__(message)


class LedgerBusy(LedgerInfrastructureError):
    kind = "ledger_busy"


class LedgerUnavailable(LedgerInfrastructureError):
    kind = "ledger_unavailable"


def _flatten(messages):
    if isinstance(messages, dict):
        return "; ".join(f"{field}: {', '.join(str(m) for m in errors)}" for field, errors in messages.items())
    return str(messages)


@contextmanager
def ledger_boundary(operation, **context):
    """Surface every failure inside the block as a typed ledger failure."""
    try:
        yield
    except LedgerError as exc:
        logger.warning("Ledger request refused", operation=operation, kind=exc.kind, error=exc.message, **context)
        raise
    except LedgerInfrastructureError as exc:
        logger.error("Ledger request failed", operation=operation, kind=exc.kind, error=exc.message, **context)
        raise
    except ObjectNotFoundError as exc:
        logger.warning("Ledger request refused", operation=operation, kind=NotFound.kind, error=str(exc), **context)
        raise NotFound(str(exc)) from exc
    except ValidationError as exc:
        message = _flatten(exc.messages)
        logger.warning("Ledger request refused", operation=operation, kind=InvalidInput.kind, error=message, **context)
        raise InvalidInput(message) from exc
