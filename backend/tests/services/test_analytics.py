"""Tests for analytics ingestion, deduplication and summaries.

Covers:
- normalize_event validation, clipping and warnings
- Device detection from the user agent
- The in-memory buffer used while the analytics flag is off
- Dedupe window and period summaries against the database
"""

from datetime import UTC, datetime, timedelta

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from portfolio.core.exceptions import ValidationError
from portfolio.repositories.analytics import AnalyticsRepository
from portfolio.services.analytics import (
    AnalyticsBuffer,
    AnalyticsService,
    analytics_buffer,
    detect_device,
    normalize_event,
)

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=UTC)
NOW_MS = int(NOW.timestamp() * 1000)


# =============================================================================
# normalize_event
# =============================================================================


class TestNormalizeEvent:
    """Tests for normalize_event."""

    def test_minimal_event(self) -> None:
        event, warnings = normalize_event({"name": "page_view", "path": "/"}, now_ms=NOW_MS)

        assert event["name"] == "page_view"
        assert event["path"] == "/"
        assert event["ts"] == NOW_MS
        assert event["referrer"] is None
        assert event["outbound"] is None
        assert event["utm"] == dict.fromkeys(("source", "medium", "campaign", "term", "content"))
        assert warnings == []

    def test_event_alias_and_camel_case_ids(self) -> None:
        event, _ = normalize_event(
            {"event": "project_view", "path": "/project/bot", "projectSlug": " bot ", "visitorId": "v1"},
            now_ms=NOW_MS,
        )
        assert event["name"] == "project_view"
        assert event["project_slug"] == "bot"
        assert event["visitor_id"] == "v1"

    @pytest.mark.parametrize(
        "raw",
        [
            {"name": "nope", "path": "/"},
            {"path": "/"},
            {"name": "page_view", "path": "https://evil.example"},
            {"name": "page_view", "path": "//evil.example"},
            {"name": "page_view"},
        ],
    )
    def test_rejected(self, raw: dict) -> None:
        with pytest.raises(ValidationError):
            normalize_event(raw, now_ms=NOW_MS)

    def test_not_a_dict(self) -> None:
        with pytest.raises(ValidationError):
            normalize_event(["page_view"], now_ms=NOW_MS)

    def test_future_timestamp_is_clamped(self) -> None:
        event, _ = normalize_event(
            {"name": "page_view", "path": "/", "ts": NOW_MS + 3_600_000}, now_ms=NOW_MS
        )
        assert event["ts"] == NOW_MS + 60_000

    def test_bad_timestamp_uses_now(self) -> None:
        event, _ = normalize_event({"name": "page_view", "path": "/", "ts": "soon"}, now_ms=NOW_MS)
        assert event["ts"] == NOW_MS

    def test_referrer_newline_warns(self) -> None:
        _, warnings = normalize_event(
            {"name": "page_view", "path": "/", "referrer": "https://a.example/\nx"}, now_ms=NOW_MS
        )
        assert len(warnings) == 1

    def test_outbound_click_requires_http_url(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            normalize_event({"name": "outbound_click", "path": "/"}, now_ms=NOW_MS)
        assert exc_info.value.field == "outbound.url"

        event, _ = normalize_event(
            {
                "name": "outbound_click",
                "path": "/",
                "outbound": {"url": "https://github.com/me", "label": "GitHub"},
            },
            now_ms=NOW_MS,
        )
        assert event["outbound"] == {"url": "https://github.com/me", "label": "GitHub"}

    def test_utm_fields_clipped(self) -> None:
        event, _ = normalize_event(
            {"name": "page_view", "path": "/", "utm": {"source": "x" * 200, "medium": " "}},
            now_ms=NOW_MS,
        )
        assert len(event["utm"]["source"]) == 120
        assert event["utm"]["medium"] is None


class TestDetectDevice:
    """Tests for detect_device."""

    def test_devices(self) -> None:
        assert detect_device(None) == "desktop"
        assert detect_device("Mozilla/5.0 (iPhone; CPU iPhone OS 17_0)") == "mobile"
        assert detect_device("Mozilla/5.0 (Linux; Android 14) Mobile") == "mobile"
        assert detect_device("Mozilla/5.0 (iPad; CPU OS 17_0)") == "tablet"
        assert detect_device("Mozilla/5.0 (X11; Linux x86_64)") == "desktop"


class TestAnalyticsBuffer:
    """Tests for AnalyticsBuffer."""

    def test_bounded_and_counted(self) -> None:
        buffer = AnalyticsBuffer(max_events=2)
        buffer.log({"name": "page_view"})
        buffer.log({"name": "page_view"})
        buffer.log({"name": "blog_view"})

        assert len(buffer) == 2
        assert buffer.counts_by_type() == {"page_view": 1, "blog_view": 1}
        assert "timestamp" in buffer.get_all()[0]

        buffer.clear()
        assert len(buffer) == 0

    def test_get_all_is_a_copy(self) -> None:
        buffer = AnalyticsBuffer()
        buffer.log({"name": "page_view", "utm": {"source": "x"}})
        buffer.get_all()[0]["utm"]["source"] = "changed"
        assert buffer.get_all()[0]["utm"]["source"] == "x"


# =============================================================================
# AnalyticsService
# =============================================================================


class TestIngest:
    """Tests for AnalyticsService.ingest."""

    @pytest.mark.asyncio
    async def test_stores_event(self, db_session: AsyncSession) -> None:
        result = await AnalyticsService.ingest(
            db_session,
            {"name": "page_view", "path": "/blogs"},
            ip="1.2.3.4",
            user_agent="iPhone",
            now=NOW,
        )

        assert result["ok"] is True
        assert result["stored"] is True
        assert result["received"] == {"name": "page_view", "path": "/blogs", "ts": NOW_MS}

        rows = await AnalyticsRepository(db_session).list_since(NOW - timedelta(hours=1))
        assert len(rows) == 1
        assert rows[0].device == "mobile"
        assert rows[0].ip == "1.2.3.4"

    @pytest.mark.asyncio
    async def test_duplicate_within_window_not_stored(self, db_session: AsyncSession) -> None:
        raw = {"name": "page_view", "path": "/", "visitorId": "v1"}

        first = await AnalyticsService.ingest(db_session, raw, now=NOW)
        second = await AnalyticsService.ingest(
            db_session, raw, now=NOW + timedelta(milliseconds=500)
        )
        other_visitor = await AnalyticsService.ingest(
            db_session, {**raw, "visitorId": "v2"}, now=NOW + timedelta(milliseconds=600)
        )
        later = await AnalyticsService.ingest(db_session, raw, now=NOW + timedelta(seconds=5))

        assert first["stored"] is True
        assert second["stored"] is False
        assert other_visitor["stored"] is True
        assert later["stored"] is True

    @pytest.mark.asyncio
    async def test_duplicate_found_on_busy_path(self, db_session: AsyncSession) -> None:
        raw = {"name": "page_view", "path": "/", "visitorId": "v1"}
        await AnalyticsService.ingest(db_session, raw, now=NOW)
        for i in range(30):
            await AnalyticsService.ingest(
                db_session,
                {**raw, "visitorId": f"other-{i}"},
                now=NOW + timedelta(milliseconds=10 * (i + 1)),
            )

        repeat = await AnalyticsService.ingest(
            db_session, raw, now=NOW + timedelta(milliseconds=400)
        )

        assert repeat["stored"] is False
        assert await AnalyticsRepository(db_session).count() == 31

    @pytest.mark.asyncio
    async def test_flag_off_goes_to_buffer(
        self, db_session: AsyncSession, override_settings
    ) -> None:
        override_settings(feature_analytics=False)

        result = await AnalyticsService.ingest(
            db_session, {"name": "blog_view", "path": "/blog/x"}, now=NOW
        )

        assert result["stored"] is False
        assert analytics_buffer.counts_by_type() == {"blog_view": 1}
        assert await AnalyticsRepository(db_session).count() == 0

    @pytest.mark.asyncio
    async def test_record_server_event(self, db_session: AsyncSession) -> None:
        event = await AnalyticsService.record(
            db_session, "contact_submit", "/contact", {"email_domain": "example.com"}
        )
        assert event is not None
        assert event.event_name == "contact_submit"
        assert event.payload == {"email_domain": "example.com"}


class TestSummarize:
    """Tests for AnalyticsService.summarize."""

    async def _seed(self, db: AsyncSession) -> None:
        repo = AnalyticsRepository(db)
        rows = [
            ("page_view", "/", {}, NOW - timedelta(hours=1)),
            ("page_view", "/", {}, NOW - timedelta(hours=2)),
            ("page_view", "/blogs", {}, NOW - timedelta(days=2)),
            ("project_view", "/project/bot", {"project_slug": "bot"}, NOW - timedelta(hours=3)),
            ("chatbot_message", "/", {}, NOW - timedelta(days=40)),
        ]
        for name, path, payload, created in rows:
            await repo.create(
                event_name=name, path=path, payload=payload, device="desktop", created_at=created
            )

    @pytest.mark.asyncio
    async def test_seven_day_summary(self, db_session: AsyncSession) -> None:
        await self._seed(db_session)

        summary = await AnalyticsService.summarize(db_session, now=NOW)

        assert summary["period"] == "7d"
        assert summary["totals"]["events"] == 4
        assert summary["totals"]["page_views"] == 3
        assert summary["totals"]["project_views"] == 1
        assert summary["totals"]["chatbot_messages"] == 0
        assert summary["top"]["pages"][0] == {"label": "/", "path": "/", "count": 2}
        assert summary["top"]["projects"][0]["slug"] == "bot"
        assert summary["devices"] == {"desktop": 4}
        assert summary["warnings"] == []

        page_points = summary["charts"]["page_views"]
        assert len(page_points) == 8
        assert sum(point["count"] for point in page_points) == 3
        assert page_points[-1] == {"bucket": "2024-06-01T00:00:00Z", "count": 2}

    @pytest.mark.asyncio
    async def test_hourly_buckets_for_24h(self, db_session: AsyncSession) -> None:
        await self._seed(db_session)

        summary = await AnalyticsService.summarize(db_session, period="24h", now=NOW)

        points = summary["charts"]["page_views"]
        assert len(points) == 25
        assert points[0]["bucket"] == "2024-05-31T12:00:00Z"
        assert summary["totals"]["page_views"] == 2

    @pytest.mark.asyncio
    async def test_unknown_period_and_prefix(self, db_session: AsyncSession) -> None:
        await self._seed(db_session)

        summary = await AnalyticsService.summarize(
            db_session, period="1y", path_prefix="/project", now=NOW
        )

        assert summary["period"] == "7d"
        assert summary["totals"]["events"] == 1

    @pytest.mark.asyncio
    async def test_bad_prefix(self, db_session: AsyncSession) -> None:
        with pytest.raises(ValidationError):
            await AnalyticsService.summarize(db_session, path_prefix="project", now=NOW)

    @pytest.mark.asyncio
    async def test_empty_warns(self, db_session: AsyncSession) -> None:
        summary = await AnalyticsService.summarize(db_session, now=NOW)
        assert summary["totals"]["events"] == 0
        assert len(summary["warnings"]) == 1
