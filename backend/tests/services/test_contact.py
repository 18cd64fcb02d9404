"""Tests for the contact form service."""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from portfolio.core.exceptions import ValidationError
from portfolio.repositories.analytics import AnalyticsRepository
from portfolio.services.contact import ContactService, render_template
from portfolio.services.settings import SettingsService

SUBMISSION = {
    "name": "Ada Lovelace",
    "email": "ADA@example.com",
    "subject": "Project <idea>",
    "message": "I would like to build an analytical engine.",
    "company": "Engines Ltd",
}


class TestRenderTemplate:
    """Tests for render_template."""

    def test_placeholders(self) -> None:
        assert render_template("Hi {{name}}, re: {{subject}}", {"name": "Ada"}) == "Hi Ada, re: -"

    def test_empty_string_is_dash(self) -> None:
        assert render_template("{{x}}", {"x": ""}) == "-"

    def test_escape(self) -> None:
        assert render_template("{{x}}", {"x": "<b>&"}, escape=True) == "&lt;b&gt;&amp;"
        assert render_template("{{x}}", {"x": "<b>"}) == "<b>"


class TestContactSubmit:
    """Tests for ContactService.submit."""

    @pytest.mark.asyncio
    async def test_sends_notification(
        self, db_session: AsyncSession, fake_email, override_settings
    ) -> None:
        override_settings(contact_recipient="owner@example.com")

        result = await ContactService.submit(db_session, SUBMISSION, ip="1.2.3.4")

        assert result == {"ok": True, "delivered": True}
        sent = fake_email.sent[0]
        assert sent["recipient"] == "owner@example.com"
        assert sent["reply_to"] == "ada@example.com"
        assert sent["subject"] == "New contact message from Ada Lovelace"
        assert "Company: Engines Ltd" in sent["body_text"]
        assert "Phone: -" in sent["body_text"]
        assert "Project &lt;idea&gt;" in sent["body_html"]

    @pytest.mark.asyncio
    async def test_records_analytics_event(
        self, db_session: AsyncSession, fake_email, override_settings
    ) -> None:
        override_settings(contact_recipient="owner@example.com")

        await ContactService.submit(db_session, SUBMISSION)

        events = await AnalyticsRepository(db_session).list_where()
        assert [event.event_name for event in events] == ["contact_submit"]
        assert events[0].payload["has_company"] is True

    @pytest.mark.asyncio
    async def test_falls_back_to_site_contact_email(
        self, db_session: AsyncSession, fake_email
    ) -> None:
        await SettingsService.update_setting(db_session, "site", {"contactEmail": "site@example.com"})

        await ContactService.submit(db_session, SUBMISSION)

        assert fake_email.sent[0]["recipient"] == "site@example.com"

    @pytest.mark.asyncio
    async def test_no_recipient_not_delivered(self, db_session: AsyncSession, fake_email) -> None:
        result = await ContactService.submit(db_session, SUBMISSION)

        assert result == {"ok": True, "delivered": False}
        assert fake_email.sent == []

    @pytest.mark.asyncio
    async def test_email_failure_is_reported(
        self, db_session: AsyncSession, fake_email, override_settings
    ) -> None:
        override_settings(contact_recipient="owner@example.com")
        fake_email.fail = True

        result = await ContactService.submit(db_session, SUBMISSION)

        assert result == {"ok": True, "delivered": False}

    @pytest.mark.asyncio
    async def test_invalid_submission(self, db_session: AsyncSession, fake_email) -> None:
        with pytest.raises(ValidationError) as exc_info:
            await ContactService.submit(
                db_session, {"name": "", "email": "nope", "message": "short"}
            )

        assert set(exc_info.value.errors) == {"name", "email", "message"}
        assert await AnalyticsRepository(db_session).count() == 0
