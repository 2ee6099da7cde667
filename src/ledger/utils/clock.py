from datetime import UTC, date, datetime, time


def as_utc(value):
    """Timezone-aware UTC datetime; stores may hand back naive values."""
    if value is None:
        return None
    if isinstance(value, date) and not isinstance(value, datetime):
        value = datetime.combine(value, time.min)
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def utc_now():
    return datetime.now(UTC)
