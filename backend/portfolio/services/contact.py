"""Contact form handling.

Validates the submission, records a `contact_submit` analytics event and
emails a notification to the site owner. A failed email is reported in
the response, never raised.
"""

import html
import re
import time
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from portfolio.core.config import get_settings
from portfolio.core.logging import get_logger
from portfolio.integrations.email import EmailClient, get_email_client
from portfolio.services.analytics import AnalyticsService
from portfolio.services.settings import SettingsService
from portfolio.utils.validation import is_valid_email, validate_contact_input

logger = get_logger(__name__)

SLOW_OPERATION_THRESHOLD_MS = 1000  # 1 second

SUBJECT_TEMPLATE = "New contact message from {{name}}"

TEXT_TEMPLATE = """\
Name: {{name}}
Email: {{email}}
Subject: {{subject}}
Company: {{company}}
Phone: {{phone}}
Website: {{website}}
Budget: {{budget}}
Timeline: {{timeline}}
Source: {{source}}

{{message}}
"""

HTML_TEMPLATE = """\
<h2>New contact message</h2>
<p><strong>{{name}}</strong> &lt;{{email}}&gt;</p>
<p><strong>Subject:</strong> {{subject}}</p>
<table>
<tr><td>Company</td><td>{{company}}</td></tr>
<tr><td>Phone</td><td>{{phone}}</td></tr>
<tr><td>Website</td><td>{{website}}</td></tr>
<tr><td>Budget</td><td>{{budget}}</td></tr>
<tr><td>Timeline</td><td>{{timeline}}</td></tr>
<tr><td>Source</td><td>{{source}}</td></tr>
</table>
<p style="white-space: pre-wrap">{{message}}</p>
"""

_VARIABLE = re.compile(r"\{\{(\w+)\}\}")


def render_template(template: str, variables: dict[str, Any], escape: bool = False) -> str:
    """Replace {{name}} placeholders; missing or empty values render as "-"."""

    def replace_var(match: re.Match[str]) -> str:
        value = variables.get(match.group(1))
        text = "-" if value in (None, "") else str(value)
        return html.escape(text) if escape else text

    return _VARIABLE.sub(replace_var, template)


class ContactService:
    @staticmethod
    async def resolve_recipient(db: AsyncSession) -> str | None:
        recipient = get_settings().contact_recipient
        if recipient and is_valid_email(recipient):
            return recipient
        site = await SettingsService.get_site_settings(db)
        fallback = str(site.get("contactEmail") or "").strip()
        return fallback if is_valid_email(fallback) else None

    @staticmethod
    async def submit(
        db: AsyncSession,
        data: dict[str, Any],
        ip: str | None = None,
        user_agent: str | None = None,
        email_client: EmailClient | None = None,
    ) -> dict[str, Any]:
        """Handle one contact form submission.

        Returns:
            {"ok": True, "delivered": bool}
        """
        start_time = time.monotonic()
        submission = validate_contact_input(data)

        await AnalyticsService.record(
            db,
            "contact_submit",
            "/contact",
            payload={
                "subject": submission["subject"],
                "source": submission["source"],
                "has_company": bool(submission["company"]),
            },
            ip=ip,
            user_agent=user_agent,
        )

        recipient = await ContactService.resolve_recipient(db)
        delivered = False
        if recipient is None:
            logger.warning("No contact recipient configured, notification skipped")
        else:
            client = email_client or get_email_client()
            result = await client.send(
                recipient=recipient,
                subject=render_template(SUBJECT_TEMPLATE, submission),
                body_text=render_template(TEXT_TEMPLATE, submission),
                body_html=render_template(HTML_TEMPLATE, submission, escape=True),
                reply_to=submission["email"],
            )
            delivered = result.success
            if not result.success:
                logger.warning(
                    "Contact notification not delivered",
                    extra={"error": result.error, "retry_attempt": result.retry_attempt},
                )

        duration_ms = (time.monotonic() - start_time) * 1000
        if duration_ms > SLOW_OPERATION_THRESHOLD_MS:
            logger.warning(
                "Slow contact submission",
                extra={"duration_ms": round(duration_ms, 2), "delivered": delivered},
            )
        logger.info("Contact form submitted", extra={"delivered": delivered})
        return {"ok": True, "delivered": delivered}
