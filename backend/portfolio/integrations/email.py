"""SMTP client for contact form notifications.

Features:
- Async SMTP via aiosmtplib
- Circuit breaker and retries with exponential backoff
- Never raises on transport failure; returns an EmailResult

ERROR LOGGING REQUIREMENTS:
- Log every send with recipient, timing and retry attempt
- Log auth failures at ERROR, timeouts and connection errors at WARNING
- Never log credentials
"""

import asyncio
import time
from dataclasses import dataclass
from email.message import EmailMessage

import aiosmtplib

from portfolio.core.circuit_breaker import CircuitBreaker, CircuitBreakerConfig
from portfolio.core.config import get_settings
from portfolio.core.logging import get_logger

logger = get_logger(__name__)

# Errors worth another attempt
_TRANSIENT_ERRORS = (
    TimeoutError,
    aiosmtplib.SMTPConnectError,
    aiosmtplib.SMTPServerDisconnected,
    aiosmtplib.SMTPTimeoutError,
    OSError,
)


@dataclass
class EmailResult:
    success: bool
    recipient: str
    subject: str
    error: str | None = None
    duration_ms: float = 0.0
    retry_attempt: int = 0


class EmailClient:
    """Sends plain-text plus HTML messages through one SMTP server."""

    def __init__(self) -> None:
        settings = get_settings()
        self._host = settings.smtp_host
        self._port = settings.smtp_port
        self._username = settings.smtp_username
        self._password = settings.smtp_password
        self._use_tls = settings.smtp_use_tls
        self._use_ssl = settings.smtp_use_ssl
        self._timeout = settings.smtp_timeout
        self._from_email = settings.smtp_from_email
        self._from_name = settings.smtp_from_name
        self.circuit_breaker = CircuitBreaker(
            CircuitBreakerConfig(
                failure_threshold=settings.email_circuit_failure_threshold,
                recovery_timeout=settings.email_circuit_recovery_timeout,
            ),
            name="email",
        )

    @property
    def available(self) -> bool:
        return bool(self._host and self._from_email)

    def _build_message(
        self,
        recipient: str,
        subject: str,
        body_text: str,
        body_html: str | None,
        reply_to: str | None,
    ) -> EmailMessage:
        message = EmailMessage()
        message["From"] = f"{self._from_name} <{self._from_email}>"
        message["To"] = recipient
        message["Subject"] = subject
        if reply_to:
            message["Reply-To"] = reply_to
        message.set_content(body_text)
        if body_html:
            message.add_alternative(body_html, subtype="html")
        return message

    async def _deliver(self, message: EmailMessage) -> None:
        async with aiosmtplib.SMTP(
            hostname=self._host,
            port=self._port,
            use_tls=self._use_ssl,
            start_tls=self._use_tls and not self._use_ssl,
            timeout=self._timeout,
        ) as smtp:
            if self._username and self._password:
                await smtp.login(self._username, self._password)
            await smtp.send_message(message)

    async def send(
        self,
        recipient: str,
        subject: str,
        body_text: str,
        body_html: str | None = None,
        reply_to: str | None = None,
        max_retries: int = 3,
        retry_delay: float = 1.0,
    ) -> EmailResult:
        if not self.available:
            logger.info("Email not configured, skipping send", extra={"recipient": recipient[:50]})
            return EmailResult(False, recipient, subject, error="Email client not configured")

        if not await self.circuit_breaker.can_execute():
            logger.warning("Email circuit open, rejecting send", extra={"recipient": recipient[:50]})
            return EmailResult(False, recipient, subject, error="Circuit breaker is open")

        message = self._build_message(recipient, subject, body_text, body_html, reply_to)
        start_time = time.monotonic()
        error = "Send failed after all retries"

        for attempt in range(max_retries):
            try:
                await self._deliver(message)
            except aiosmtplib.SMTPAuthenticationError as e:
                await self.circuit_breaker.record_failure()
                logger.error(
                    "Email authentication failed",
                    extra={"error_type": type(e).__name__, "retry_attempt": attempt},
                )
                return EmailResult(
                    False,
                    recipient,
                    subject,
                    error="Authentication failed",
                    duration_ms=(time.monotonic() - start_time) * 1000,
                    retry_attempt=attempt,
                )
            except _TRANSIENT_ERRORS as e:
                await self.circuit_breaker.record_failure()
                error = f"{type(e).__name__}: {e}"
                logger.warning(
                    "Email send failed",
                    extra={
                        "recipient": recipient[:50],
                        "error_type": type(e).__name__,
                        "error_message": str(e),
                        "retry_attempt": attempt,
                    },
                )
                if attempt < max_retries - 1:
                    await asyncio.sleep(retry_delay * (2**attempt))
                continue
            except aiosmtplib.SMTPException as e:
                await self.circuit_breaker.record_failure()
                logger.error(
                    "Email rejected by server",
                    extra={
                        "recipient": recipient[:50],
                        "error_type": type(e).__name__,
                        "error_message": str(e),
                        "retry_attempt": attempt,
                    },
                )
                error = str(e)
                break

            await self.circuit_breaker.record_success()
            duration_ms = (time.monotonic() - start_time) * 1000
            logger.info(
                "Email sent",
                extra={
                    "recipient": recipient[:50],
                    "subject": subject[:50],
                    "duration_ms": round(duration_ms, 2),
                    "retry_attempt": attempt,
                },
            )
            return EmailResult(True, recipient, subject, duration_ms=duration_ms, retry_attempt=attempt)

        return EmailResult(
            False,
            recipient,
            subject,
            error=error,
            duration_ms=(time.monotonic() - start_time) * 1000,
            retry_attempt=max_retries - 1,
        )


_email_client: EmailClient | None = None


def get_email_client() -> EmailClient:
    """Get or create the global email client."""
    global _email_client
    if _email_client is None:
        _email_client = EmailClient()
    return _email_client
