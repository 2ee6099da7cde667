"""Key locks and the ledger unit of work.

Every write to a stock level, document or sequence happens while holding the
in-process lock of the keys it touches, and the lock is held until the unit
of work has committed. A concurrent caller on the same key therefore always
reads committed state; callers on disjoint keys never wait on each other.

Locks are taken in sorted key order, so two multi-key operations cannot
deadlock, and acquisition is bounded by ``LEDGER_LOCK_TIMEOUT``.
"""

import threading
from contextlib import contextmanager

import structlog
from protean import UnitOfWork
from protean.exceptions import ExpectedVersionError
from sqlalchemy.exc import SQLAlchemyError

from ledger import config
from ledger.errors import LedgerBusy, LedgerUnavailable

logger = structlog.get_logger(__name__)


def stock_key(product_id, location_id):
    return ("stock", str(product_id), str(location_id))


def document_key(document_id):
    return ("document", str(document_id))


def sequence_key(name):
    return ("sequence", str(name))


class KeyedLocks:
    """Re-entrant locks, one per key, kept only while someone holds or awaits them.

    Each entry counts its holders and waiters; the last one out removes it.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._locks = {}

    def _checkout(self, key):
        with self._guard:
            entry = self._locks.get(key)
            if entry is None:
                entry = self._locks[key] = [threading.RLock(), 0]
            entry[1] += 1
            return entry[0]

    def _checkin(self, key):
        with self._guard:
            entry = self._locks[key]
            entry[1] -= 1
            if entry[1] == 0:
                del self._locks[key]

    def size(self):
        """Number of keys currently held or awaited."""
        with self._guard:
            return len(self._locks)

    @contextmanager
    def hold(self, keys, timeout=None):
        timeout = config.lock_timeout() if timeout is None else timeout
        checked_out = []
        acquired = []
        try:
            for key in sorted(set(keys)):
                lock = self._checkout(key)
                checked_out.append(key)
                if not lock.acquire(timeout=timeout):
                    logger.warning("Lock acquisition timed out", key=key, timeout=timeout)
                    raise LedgerBusy(f"Timed out after {timeout}s waiting for {'/'.join(key)}")
                acquired.append(lock)
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()
            for key in reversed(checked_out):
                self._checkin(key)


locks = KeyedLocks()


@contextmanager
def unit_of_work():
    """Commit everything staged in the block together, or nothing.

    Store-level failures surface as ``LedgerUnavailable`` after the rollback.
    """
    try:
        with UnitOfWork():
            yield
    except (ExpectedVersionError, SQLAlchemyError) as exc:
        raise LedgerUnavailable(f"Ledger store failed to commit: {exc}") from exc


@contextmanager
def ledger_transaction(*keys):
    """Hold the locks of ``keys`` around a single unit of work."""
    with locks.hold(keys):
        with unit_of_work():
            yield
