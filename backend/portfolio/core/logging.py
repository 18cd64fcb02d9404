"""Logging setup and the domain loggers.

Everything is written to stdout, as JSON when LOG_FORMAT=json. Secrets
never reach a log line: connection strings lose their password, tokens
and API keys keep only their last four characters, and failed logins
record the normalized email but not the password.

`db_logger`, `auth_logger` and `llm_logger` give database, admin auth and
LLM events fixed messages and field names so they can be searched.
"""

import logging
import re
import sys
from datetime import UTC, datetime
from typing import Any

from pythonjsonlogger import jsonlogger

from portfolio.core.config import get_settings

QUIET_LIBRARIES = ("uvicorn.access", "httpx", "botocore")

_DSN_PASSWORD = re.compile(r"(://[^:/@]+:)([^@]+)(@)")


class CustomJsonFormatter(jsonlogger.JsonFormatter):  # type: ignore[name-defined]
    """Adds timestamp, level and logger name to every JSON record."""

    def add_fields(
        self,
        log_record: dict[str, Any],
        record: logging.LogRecord,
        message_dict: dict[str, Any],
    ) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record.update(
            timestamp=datetime.now(UTC).isoformat(),
            level=record.levelname,
            logger=record.name,
        )
        if record.exc_info:
            log_record["exception"] = self.formatException(record.exc_info)


def mask_connection_string(conn_str: str) -> str:
    return _DSN_PASSWORD.sub(r"\1****\3", conn_str) if conn_str else ""


def mask_secret(value: str | None) -> str:
    """'****' plus the last 4 characters; short values are fully hidden."""
    if not value:
        return ""
    return "****" if len(value) <= 8 else "****" + value[-4:]


def truncate(text: str, limit: int = 500) -> str:
    if len(text) <= limit:
        return text
    return f"{text[:limit]}... (truncated, {len(text)} chars)"


def setup_logging() -> None:
    """Replace the root handlers with a single stdout handler."""
    settings = get_settings()

    if settings.log_format == "json":
        formatter: logging.Formatter = CustomJsonFormatter(
            "%(timestamp)s %(level)s %(name)s %(message)s"
        )
    else:
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(settings.log_level.upper())

    for name in QUIET_LIBRARIES:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def _error_fields(error: Exception) -> dict[str, str]:
    return {"error_type": type(error).__name__, "error_message": str(error)}


class DatabaseLogger:
    """Connection, query, transaction and migration events."""

    def __init__(self) -> None:
        self.logger = get_logger("database")

    def connection_error(self, error: Exception, connection_string: str) -> None:
        self.logger.error(
            "Database connection failed",
            extra={"connection_string": mask_connection_string(connection_string), **_error_fields(error)},
        )

    def slow_query(self, query: str, duration_ms: float, table: str | None = None) -> None:
        self.logger.warning(
            "Slow query detected",
            extra={"query": truncate(query), "duration_ms": round(duration_ms, 2), "table": table},
        )

    def transaction_failure(
        self, error: Exception, table: str | None = None, context: str | None = None
    ) -> None:
        """ERROR with the table involved, when known, and why the rollback happened."""
        self.logger.error(
            "Transaction failed, rolling back",
            extra={"table": table, "rollback_context": context, **_error_fields(error)},
        )

    def pool_exhausted(self, pool_size: int, max_overflow: int) -> None:
        self.logger.critical(
            "Database connection pool exhausted",
            extra={"pool_size": pool_size, "max_overflow": max_overflow},
        )

    def migration_start(self, version: str, description: str) -> None:
        self.logger.info(
            "Starting database migration",
            extra={"migration_version": version, "description": description},
        )

    def migration_end(self, version: str, success: bool) -> None:
        self.logger.log(
            logging.INFO if success else logging.ERROR,
            "Database migration finished",
            extra={"migration_version": version, "success": success},
        )


db_logger = DatabaseLogger()


class AuthLogger:
    """Admin login and session events."""

    def __init__(self) -> None:
        self.logger = get_logger("auth")

    def login_success(self, admin_id: str, email: str, client_ip: str) -> None:
        self.logger.info(
            "Admin login succeeded",
            extra={"admin_id": admin_id, "email": email, "client_ip": client_ip},
        )

    def login_failure(self, email: str, client_ip: str, reason: str) -> None:
        self.logger.warning(
            "Admin login failed",
            extra={"email": email, "client_ip": client_ip, "reason": reason},
        )

    def session_revoked(self, admin_id: str | None, token: str) -> None:
        self.logger.info(
            "Admin session revoked",
            extra={"admin_id": admin_id, "token": mask_secret(token)},
        )

    def session_rejected(self, reason: str, token: str | None = None) -> None:
        self.logger.debug(
            "Admin session rejected",
            extra={"reason": reason, "token": mask_secret(token)},
        )


auth_logger = AuthLogger()


class LLMLogger:
    """Outbound calls to the OpenAI-compatible API.

    Calls are logged with endpoint, model, timing, token usage and the
    retry attempt. Bodies go to DEBUG, truncated. Client errors (4xx) are
    WARNING and everything else that fails is ERROR.
    """

    BODY_LIMIT = 800

    def __init__(self) -> None:
        self.logger = get_logger("llm")

    def api_call_start(
        self, endpoint: str, model: str, input_size: int, retry_attempt: int = 0
    ) -> None:
        self.logger.debug(
            f"LLM API call: {endpoint}",
            extra={
                "endpoint": endpoint,
                "model": model,
                "input_size": input_size,
                "retry_attempt": retry_attempt,
            },
        )

    def api_call_success(
        self,
        endpoint: str,
        model: str,
        duration_ms: float,
        prompt_tokens: int | None = None,
        completion_tokens: int | None = None,
    ) -> None:
        self.logger.info(
            f"LLM API call completed: {endpoint}",
            extra={
                "endpoint": endpoint,
                "model": model,
                "duration_ms": round(duration_ms, 2),
                "prompt_tokens": prompt_tokens,
                "completion_tokens": completion_tokens,
                "total_tokens": (prompt_tokens or 0) + (completion_tokens or 0),
                "success": True,
            },
        )

    def api_call_error(
        self,
        endpoint: str,
        model: str,
        duration_ms: float,
        status_code: int | None,
        error: str,
        retry_attempt: int = 0,
    ) -> None:
        client_error = status_code is not None and 400 <= status_code < 500
        self.logger.log(
            logging.WARNING if client_error else logging.ERROR,
            f"LLM API call failed: {endpoint}",
            extra={
                "endpoint": endpoint,
                "model": model,
                "duration_ms": round(duration_ms, 2),
                "status_code": status_code,
                "error": truncate(error),
                "retry_attempt": retry_attempt,
                "success": False,
            },
        )

    def timeout(self, endpoint: str, timeout_seconds: float) -> None:
        self.logger.warning(
            "LLM API request timed out",
            extra={"endpoint": endpoint, "timeout_seconds": timeout_seconds},
        )

    def rate_limit(self, endpoint: str, retry_after: float | None = None) -> None:
        self.logger.warning(
            "LLM API rate limited (429)",
            extra={"endpoint": endpoint, "retry_after_seconds": retry_after},
        )

    def auth_failure(self, status_code: int, api_key: str | None) -> None:
        self.logger.warning(
            f"LLM API rejected credentials ({status_code})",
            extra={"status_code": status_code, "api_key": mask_secret(api_key)},
        )

    def request_body(self, endpoint: str, body: str) -> None:
        self.logger.debug(
            "LLM API request body",
            extra={"endpoint": endpoint, "body": truncate(body, self.BODY_LIMIT)},
        )

    def response_body(self, endpoint: str, body: str, duration_ms: float) -> None:
        self.logger.debug(
            "LLM API response body",
            extra={
                "endpoint": endpoint,
                "body": truncate(body, self.BODY_LIMIT),
                "duration_ms": round(duration_ms, 2),
            },
        )

    def graceful_fallback(self, operation: str, reason: str) -> None:
        """INFO when an operation answers without the model."""
        self.logger.info(
            "LLM unavailable, using fallback",
            extra={"operation": operation, "reason": reason},
        )


llm_logger = LLMLogger()
