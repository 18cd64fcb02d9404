"""Unit tests for the SMTP email client.

Tests cover:
- send() builds the message and logs in when credentials are set
- Transient SMTP errors are retried, auth failures and rejections are not
- Circuit breaker opening after repeated failures

Uses unittest.mock in place of aiosmtplib.SMTP.
"""

from email.message import EmailMessage
from unittest.mock import AsyncMock, MagicMock, patch

import aiosmtplib
import pytest

from portfolio.core.circuit_breaker import CircuitState
from portfolio.integrations.email import EmailClient

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_settings() -> MagicMock:
    settings = MagicMock()
    settings.smtp_host = "smtp.test"
    settings.smtp_port = 587
    settings.smtp_username = "mailer"
    settings.smtp_password = "mail-password"
    settings.smtp_use_tls = True
    settings.smtp_use_ssl = False
    settings.smtp_timeout = 5.0
    settings.smtp_from_email = "site@example.com"
    settings.smtp_from_name = "Portfolio"
    settings.email_circuit_failure_threshold = 5
    settings.email_circuit_recovery_timeout = 60.0
    return settings


@pytest.fixture
def email_client(mock_settings: MagicMock) -> EmailClient:
    with patch("portfolio.integrations.email.get_settings", return_value=mock_settings):
        return EmailClient()


@pytest.fixture
def smtp() -> MagicMock:
    """The connection yielded by `async with aiosmtplib.SMTP(...)`."""
    connection = MagicMock()
    connection.login = AsyncMock()
    connection.send_message = AsyncMock()
    return connection


@pytest.fixture
def smtp_class(smtp: MagicMock):
    with patch("portfolio.integrations.email.aiosmtplib.SMTP") as smtp_class:
        smtp_class.return_value.__aenter__.return_value = smtp
        yield smtp_class


async def send(client: EmailClient, **overrides):
    kwargs = {
        "recipient": "owner@example.com",
        "subject": "New contact message",
        "body_text": "Hello",
        "retry_delay": 0.0,
    }
    kwargs.update(overrides)
    return await client.send(**kwargs)


# ---------------------------------------------------------------------------
# Delivery
# ---------------------------------------------------------------------------


class TestSend:
    """Tests for EmailClient.send() success paths."""

    @pytest.mark.asyncio
    async def test_sends_message(
        self, email_client: EmailClient, smtp_class: MagicMock, smtp: MagicMock
    ) -> None:
        result = await send(
            email_client, body_html="<p>Hello</p>", reply_to="visitor@example.com"
        )

        assert result.success is True
        assert result.retry_attempt == 0
        smtp_class.assert_called_once_with(
            hostname="smtp.test", port=587, use_tls=False, start_tls=True, timeout=5.0
        )
        smtp.login.assert_awaited_once_with("mailer", "mail-password")

        message: EmailMessage = smtp.send_message.await_args.args[0]
        assert message["From"] == "Portfolio <site@example.com>"
        assert message["To"] == "owner@example.com"
        assert message["Reply-To"] == "visitor@example.com"
        assert message.get_body(preferencelist=("html",)) is not None

    @pytest.mark.asyncio
    async def test_skips_login_without_credentials(
        self, mock_settings: MagicMock, smtp_class: MagicMock, smtp: MagicMock
    ) -> None:
        mock_settings.smtp_username = None
        with patch("portfolio.integrations.email.get_settings", return_value=mock_settings):
            client = EmailClient()

        result = await send(client)

        assert result.success is True
        smtp.login.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_not_configured(self, mock_settings: MagicMock, smtp_class: MagicMock) -> None:
        mock_settings.smtp_host = None
        with patch("portfolio.integrations.email.get_settings", return_value=mock_settings):
            client = EmailClient()

        result = await send(client)

        assert result.success is False
        assert result.error == "Email client not configured"
        smtp_class.assert_not_called()


# ---------------------------------------------------------------------------
# Failures
# ---------------------------------------------------------------------------


class TestFailures:
    """Tests for retries and the circuit breaker."""

    @pytest.mark.asyncio
    async def test_disconnect_is_retried(
        self, email_client: EmailClient, smtp_class: MagicMock, smtp: MagicMock
    ) -> None:
        smtp.send_message.side_effect = [aiosmtplib.SMTPServerDisconnected("gone"), None]

        result = await send(email_client)

        assert result.success is True
        assert result.retry_attempt == 1
        assert smtp.send_message.await_count == 2

    @pytest.mark.asyncio
    async def test_connect_errors_exhaust_retries(
        self, email_client: EmailClient, smtp_class: MagicMock, smtp: MagicMock
    ) -> None:
        smtp.send_message.side_effect = aiosmtplib.SMTPConnectError("refused")

        result = await send(email_client, max_retries=2)

        assert result.success is False
        assert result.error is not None and result.error.startswith("SMTPConnectError")
        assert result.retry_attempt == 1
        assert smtp.send_message.await_count == 2

    @pytest.mark.asyncio
    async def test_auth_failure_is_not_retried(
        self, email_client: EmailClient, smtp_class: MagicMock, smtp: MagicMock
    ) -> None:
        smtp.login.side_effect = aiosmtplib.SMTPAuthenticationError(535, "bad credentials")

        result = await send(email_client)

        assert result.success is False
        assert result.error == "Authentication failed"
        assert smtp.login.await_count == 1
        smtp.send_message.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_rejection_is_not_retried(
        self, email_client: EmailClient, smtp_class: MagicMock, smtp: MagicMock
    ) -> None:
        smtp.send_message.side_effect = aiosmtplib.SMTPResponseException(550, "mailbox unavailable")

        result = await send(email_client)

        assert result.success is False
        assert smtp.send_message.await_count == 1

    @pytest.mark.asyncio
    async def test_circuit_opens(
        self, mock_settings: MagicMock, smtp_class: MagicMock, smtp: MagicMock
    ) -> None:
        mock_settings.email_circuit_failure_threshold = 2
        with patch("portfolio.integrations.email.get_settings", return_value=mock_settings):
            client = EmailClient()
        smtp.send_message.side_effect = aiosmtplib.SMTPServerDisconnected("gone")

        await send(client)
        calls_before = smtp.send_message.await_count
        result = await send(client)

        assert client.circuit_breaker.state == CircuitState.OPEN
        assert result.error == "Circuit breaker is open"
        assert smtp.send_message.await_count == calls_before
