"""Analytics event ingestion and summaries.

Events are normalized, deduplicated against the last few seconds of
identical events and stored in `analytics_events`. When the `analytics`
feature flag is off, normalized events only land in the in-memory
`analytics_buffer` and nothing is written to the database.
"""

import hashlib
import json
import math
import time
from collections import deque
from copy import deepcopy
from datetime import UTC, datetime, timedelta
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from portfolio.core.config import get_settings
from portfolio.core.exceptions import ValidationError
from portfolio.core.feature_flags import is_enabled
from portfolio.core.logging import get_logger
from portfolio.models.analytics_event import AnalyticsEvent
from portfolio.repositories.analytics import AnalyticsRepository
from portfolio.utils.collections import count_by, group_by
from portfolio.utils.dates import ensure_utc, utcnow
from portfolio.utils.validation import is_site_relative_path, safe_trim

logger = get_logger(__name__)

EVENT_NAMES = frozenset(
    {
        "page_view",
        "section_view",
        "project_view",
        "blog_view",
        "resume_view",
        "resume_download",
        "contact_submit",
        "chatbot_open",
        "chatbot_message",
        "livechat_open",
        "livechat_message",
        "outbound_click",
        "admin_login",
        "admin_action",
    }
)

PERIODS: dict[str, timedelta] = {
    "24h": timedelta(hours=24),
    "7d": timedelta(days=7),
    "30d": timedelta(days=30),
    "90d": timedelta(days=90),
}
DEFAULT_PERIOD = "7d"
TOP_LIMIT = 10

# (payload key, camelCase input key, max length)
_ID_FIELDS = (
    ("section_id", "sectionId", 80),
    ("project_id", "projectId", 80),
    ("blog_id", "blogId", 80),
    ("section_slug", "sectionSlug", 160),
    ("project_slug", "projectSlug", 160),
    ("blog_slug", "blogSlug", 160),
    ("visitor_id", "visitorId", 120),
    ("session_id", "sessionId", 120),
)
_UTM_FIELDS = ("source", "medium", "campaign", "term", "content")

_TOTALS = (
    ("page_views", "page_view"),
    ("section_views", "section_view"),
    ("project_views", "project_view"),
    ("blog_views", "blog_view"),
    ("resume_views", "resume_view"),
    ("contact_submits", "contact_submit"),
    ("chatbot_messages", "chatbot_message"),
    ("livechat_messages", "livechat_message"),
    ("outbound_clicks", "outbound_click"),
)


def detect_device(user_agent: str | None) -> str:
    if not user_agent:
        return "desktop"
    ua = user_agent.lower()
    if "mobile" in ua or "iphone" in ua or "android" in ua:
        return "mobile"
    if "ipad" in ua or "tablet" in ua:
        return "tablet"
    return "desktop"


def _pick(raw: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in raw and raw[key] is not None:
            return raw[key]
    return None


def _now_ms() -> int:
    return int(time.time() * 1000)


def normalize_event(raw: Any, now_ms: int | None = None) -> tuple[dict[str, Any], list[str]]:
    """Validate and clip a client event.

    Returns:
        (event, warnings). `event` has name, path, ts (epoch ms), referrer,
        the id/slug fields, utm and outbound.

    Raises:
        ValidationError: unknown name, bad path or a malformed outbound_click.
    """
    if not isinstance(raw, dict):
        raise ValidationError("Invalid JSON body.")
    now_ms = _now_ms() if now_ms is None else now_ms
    warnings: list[str] = []

    name = _pick(raw, "name", "event")
    if name not in EVENT_NAMES:
        raise ValidationError("Invalid or missing field: name", field="name", value=name)

    path = safe_trim(raw.get("path"), 512).strip()
    if not path or not is_site_relative_path(path):
        raise ValidationError(
            "Invalid or missing field: path (must be site-relative like /project/x)",
            field="path",
            value=raw.get("path"),
        )

    raw_ts = raw.get("ts")
    if isinstance(raw_ts, int | float) and not isinstance(raw_ts, bool) and math.isfinite(raw_ts):
        ts = int(max(0, min(now_ms + 60_000, int(raw_ts))))
    else:
        ts = now_ms

    event: dict[str, Any] = {"name": name, "path": path, "ts": ts}
    for key, camel, limit in _ID_FIELDS:
        value = safe_trim(_pick(raw, camel, key), limit).strip()
        event[key] = value or None

    referrer = safe_trim(raw.get("referrer"), 800).strip()
    event["referrer"] = referrer or None
    if referrer and ("\n" in referrer or "\r" in referrer):
        warnings.append("Referrer contained invalid characters and may be ignored downstream.")

    utm = raw.get("utm") if isinstance(raw.get("utm"), dict) else {}
    event["utm"] = {
        key: safe_trim(utm.get(key), 120).strip() or None for key in _UTM_FIELDS
    }

    outbound = raw.get("outbound")
    event["outbound"] = None
    if isinstance(outbound, dict):
        event["outbound"] = {
            "url": safe_trim(outbound.get("url"), 800).strip(),
            "label": safe_trim(outbound.get("label"), 120).strip() or None,
        }
    if name == "outbound_click":
        url = (event["outbound"] or {}).get("url", "")
        if not url or not url.startswith("http"):
            raise ValidationError(
                "outbound_click requires outbound.url starting with http/https",
                field="outbound.url",
            )

    return event, warnings


def _dedupe_key(event_name: str, path: str, payload: dict[str, Any]) -> str:
    parts = [
        event_name,
        path,
        payload.get("section_slug") or payload.get("section_id"),
        payload.get("project_slug"),
        payload.get("blog_slug"),
        payload.get("visitor_id"),
    ]
    return hashlib.sha256(json.dumps(parts, default=str).encode()).hexdigest()


class AnalyticsBuffer:
    """Bounded in-memory event log used while storage is switched off."""

    def __init__(self, max_events: int = 1000) -> None:
        self._events: deque[dict[str, Any]] = deque(maxlen=max_events)

    def log(self, event: dict[str, Any]) -> None:
        entry = dict(event)
        entry.setdefault("timestamp", utcnow().isoformat())
        self._events.append(entry)

    def get_all(self) -> list[dict[str, Any]]:
        return deepcopy(list(self._events))

    def counts_by_type(self) -> dict[str, int]:
        return count_by(self._events, "name")

    def clear(self) -> None:
        self._events.clear()

    def __len__(self) -> int:
        return len(self._events)


analytics_buffer = AnalyticsBuffer()


def _bucket_start(value: datetime, hourly: bool) -> datetime:
    if hourly:
        return value.replace(minute=0, second=0, microsecond=0)
    return value.replace(hour=0, minute=0, second=0, microsecond=0)


def _timeseries(
    events: list[AnalyticsEvent], start: datetime, end: datetime, hourly: bool
) -> list[dict[str, Any]]:
    step = timedelta(hours=1) if hourly else timedelta(days=1)
    counts: dict[datetime, int] = {}
    for event in events:
        created = ensure_utc(event.created_at)
        if created is not None:
            bucket = _bucket_start(created, hourly)
            counts[bucket] = counts.get(bucket, 0) + 1

    points = []
    cursor = _bucket_start(start, hourly)
    while cursor <= end:
        points.append(
            {"bucket": cursor.isoformat().replace("+00:00", "Z"), "count": counts.get(cursor, 0)}
        )
        cursor += step
    return points


def _top(events: list[AnalyticsEvent], slug_key: str | None) -> list[dict[str, Any]]:
    def key(event: AnalyticsEvent) -> str:
        if slug_key:
            slug = (event.payload or {}).get(slug_key)
            if slug:
                return str(slug)
        return event.path

    grouped = group_by(events, key)
    items = []
    for label, rows in grouped.items():
        item: dict[str, Any] = {"label": label, "path": rows[0].path, "count": len(rows)}
        if slug_key and (rows[0].payload or {}).get(slug_key):
            item["slug"] = label
        items.append(item)
    items.sort(key=lambda item: item["count"], reverse=True)
    return items[:TOP_LIMIT]


class AnalyticsService:
    @staticmethod
    async def ingest(
        db: AsyncSession,
        raw: Any,
        ip: str | None = None,
        user_agent: str | None = None,
        now: datetime | None = None,
    ) -> dict[str, Any]:
        """Normalize and store one event.

        An identical event inside the dedupe window is accepted but not
        stored again.
        """
        now = now or utcnow()
        event, warnings = normalize_event(raw, now_ms=int(now.timestamp() * 1000))
        received = {"name": event["name"], "path": event["path"], "ts": event["ts"]}

        payload = {k: v for k, v in event.items() if k not in ("name", "path", "referrer")}
        device = detect_device(user_agent)

        if not is_enabled("analytics"):
            analytics_buffer.log({**event, "device": device})
            return {"ok": True, "received": received, "stored": False, "warnings": warnings}

        repo = AnalyticsRepository(db)
        window = timedelta(milliseconds=get_settings().analytics_dedupe_window_ms)
        dedupe_key = _dedupe_key(event["name"], event["path"], payload)
        if await repo.has_duplicate(dedupe_key, now - window):
            logger.debug(
                "Duplicate analytics event skipped",
                extra={"event_name": event["name"], "path": event["path"]},
            )
            return {"ok": True, "received": received, "stored": False, "warnings": warnings}

        await repo.create(
            event_name=event["name"],
            path=event["path"],
            referrer=event["referrer"],
            user_agent=(user_agent or "")[:512] or None,
            ip=(ip or "")[:64] or None,
            device=device,
            payload=payload,
            dedupe_key=dedupe_key,
            created_at=now,
        )
        return {"ok": True, "received": received, "stored": True, "warnings": warnings}

    @staticmethod
    async def record(
        db: AsyncSession,
        event_name: str,
        path: str,
        payload: dict[str, Any] | None = None,
        ip: str | None = None,
        user_agent: str | None = None,
    ) -> AnalyticsEvent | None:
        """Store a server-side event (contact form, admin login...) without dedupe."""
        if not is_enabled("analytics"):
            analytics_buffer.log({"name": event_name, "path": path, **(payload or {})})
            return None
        return await AnalyticsRepository(db).create(
            event_name=event_name,
            path=path,
            ip=(ip or "")[:64] or None,
            user_agent=(user_agent or "")[:512] or None,
            device=detect_device(user_agent),
            payload=payload or {},
        )

    @staticmethod
    async def summarize(
        db: AsyncSession,
        period: str | None = None,
        path_prefix: str | None = None,
        now: datetime | None = None,
    ) -> dict[str, Any]:
        period = period if period in PERIODS else DEFAULT_PERIOD
        prefix = safe_trim(path_prefix, 256).strip() if path_prefix else ""
        if prefix and not is_site_relative_path(prefix):
            raise ValidationError(
                "Invalid pathPrefix. Must be site-relative like /project",
                field="path_prefix",
                value=path_prefix,
            )

        end = (now or utcnow()).astimezone(UTC)
        start = end - PERIODS[period]
        hourly = period == "24h"

        events = await AnalyticsRepository(db).list_since(start, prefix or None)
        by_name = group_by(events, "event_name")

        totals = {"events": len(events)}
        for total_key, event_name in _TOTALS:
            totals[total_key] = len(by_name.get(event_name, []))

        warnings: list[str] = []
        if not events:
            warnings.append("Analytics storage holds no events for this period.")
        if not is_enabled("analytics"):
            warnings.append("Analytics is disabled; new events are not being stored.")

        return {
            "ok": True,
            "period": period,
            "from_ts": int(start.timestamp() * 1000),
            "to_ts": int(end.timestamp() * 1000),
            "totals": totals,
            "charts": {
                "page_views": _timeseries(by_name.get("page_view", []), start, end, hourly),
                "chatbot_messages": _timeseries(
                    by_name.get("chatbot_message", []), start, end, hourly
                ),
                "livechat_messages": _timeseries(
                    by_name.get("livechat_message", []), start, end, hourly
                ),
            },
            "top": {
                "pages": _top(by_name.get("page_view", []), None),
                "projects": _top(by_name.get("project_view", []), "project_slug"),
                "blogs": _top(by_name.get("blog_view", []), "blog_slug"),
            },
            "devices": count_by(events, lambda event: event.device or "unknown"),
            "warnings": warnings,
        }
