"""UTC helpers.

SQLite drops tzinfo on the way back, so anything read from the database
goes through ensure_utc before being compared with an aware datetime.
"""

from datetime import UTC, datetime


def utcnow() -> datetime:
    return datetime.now(UTC)


def ensure_utc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def isoformat(value: datetime | None) -> str | None:
    value = ensure_utc(value)
    return value.isoformat().replace("+00:00", "Z") if value else None
