"""Text, number and date formatting helpers."""

import math
import secrets
import string
from datetime import UTC, date, datetime
from typing import Any, Literal

_ID_ALPHABET = string.ascii_letters + string.digits

DateStyle = Literal["short", "medium", "long", "iso"]


def truncate(
    value: str | None,
    length: int = 100,
    hard_cut: bool = False,
    ellipsis: str = "…",
) -> str:
    """Shorten `value` to `length` characters plus an ellipsis.

    Cuts on the last space within length + 1 unless hard_cut is set.
    """
    if not value:
        return ""
    length = max(5, length)
    if len(value) <= length:
        return value

    cut = value[:length]
    if not hard_cut:
        space = value[: length + 1].rfind(" ")
        if space > 0:
            cut = value[:space]
    return cut.rstrip() + ellipsis


def truncate_words(value: str | None, count: int = 20, ellipsis: str = "…") -> str:
    if not value:
        return ""
    words = value.split()
    count = max(1, count)
    if len(words) <= count:
        return " ".join(words)
    return " ".join(words[:count]) + ellipsis


def capitalize(value: str | None) -> str:
    if not value:
        return ""
    return value[0].upper() + value[1:]


def capitalize_words(value: str | None) -> str:
    if not value:
        return ""
    return " ".join(capitalize(word) for word in value.split(" "))


def random_id(length: int = 12, prefix: str | None = None) -> str:
    """URL-safe alphanumeric id, optionally formatted as `prefix_xxx`."""
    length = max(6, length)
    token = "".join(secrets.choice(_ID_ALPHABET) for _ in range(length))
    return f"{prefix}_{token}" if prefix else token


def clamp(value: float, min_value: float, max_value: float) -> float:
    if isinstance(value, float) and math.isnan(value):
        return min_value
    return max(min_value, min(max_value, value))


def clamp_or_default(
    value: Any, min_value: float, max_value: float, default: float
) -> float:
    """Clamp numeric input; anything non-numeric gives `default`."""
    if isinstance(value, bool):
        return default
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return default
    if not isinstance(value, int | float) or math.isnan(value) or math.isinf(value):
        return default
    return clamp(value, min_value, max_value)


def _as_datetime(value: datetime | date | str) -> datetime:
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    elif not isinstance(value, datetime):
        value = datetime(value.year, value.month, value.day)
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value


def format_date(value: datetime | date | str | None, style: DateStyle = "medium") -> str:
    """Format a date as short (01/31/2024), medium (Jan 31, 2024),
    long (January 31, 2024) or iso."""
    if value is None:
        return ""
    dt = _as_datetime(value)
    if style == "iso":
        return dt.isoformat()
    if style == "short":
        return dt.strftime("%m/%d/%Y")
    if style == "long":
        return f"{dt.strftime('%B')} {dt.day}, {dt.year}"
    return f"{dt.strftime('%b')} {dt.day}, {dt.year}"


_UNITS = (
    ("year", 365 * 24 * 3600),
    ("month", 30 * 24 * 3600),
    ("week", 7 * 24 * 3600),
    ("day", 24 * 3600),
    ("hour", 3600),
    ("minute", 60),
)


def format_relative(
    value: datetime | date | str, now: datetime | None = None
) -> str:
    """Human relative time: "just now", "5 minutes ago", "in 2 days"."""
    dt = _as_datetime(value)
    now = now or datetime.now(UTC)
    if now.tzinfo is None:
        now = now.replace(tzinfo=UTC)

    delta = (dt - now).total_seconds()
    seconds = abs(delta)
    if seconds < 60:
        return "just now"

    for unit, size in _UNITS:
        if seconds >= size:
            amount = int(seconds // size)
            label = unit if amount == 1 else f"{unit}s"
            return f"in {amount} {label}" if delta > 0 else f"{amount} {label} ago"
    return "just now"
