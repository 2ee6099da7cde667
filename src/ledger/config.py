"""Runtime settings for the ledger, read from the environment.

Protean's own configuration (databases, event store, brokers) lives in
``domain.toml``; these are the knobs the ledger code itself consults.
"""

import os

DEFAULT_LOW_STOCK_THRESHOLD = 10
DEFAULT_LOCK_TIMEOUT = 10.0
DEFAULT_RECENT_ACTIVITY_LIMIT = 5


def _read(name, cast, default):
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return cast(raw)
    except ValueError:
        return default


def low_stock_threshold() -> int:
    """Quantity below which a stock level counts as low."""
    return _read("LEDGER_LOW_STOCK_THRESHOLD", int, DEFAULT_LOW_STOCK_THRESHOLD)


def lock_timeout() -> float:
    """Seconds to wait for a key lock before giving up with ``LedgerBusy``."""
    return _read("LEDGER_LOCK_TIMEOUT", float, DEFAULT_LOCK_TIMEOUT)


def recent_activity_limit() -> int:
    return _read("LEDGER_RECENT_ACTIVITY_LIMIT", int, DEFAULT_RECENT_ACTIVITY_LIMIT)
