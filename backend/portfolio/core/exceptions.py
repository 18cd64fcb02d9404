"""Domain exceptions raised by services.

Each exception carries the HTTP status and machine-readable code the API
layer uses to build a `{"error", "code", "request_id"}` response.
"""

from typing import Any


class PortfolioError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code: int = 400
    code: str = "BAD_REQUEST"

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code


class ValidationError(PortfolioError):
    """Input failed validation."""

    status_code = 400
    code = "VALIDATION_ERROR"

    def __init__(
        self,
        message: str,
        field: str | None = None,
        value: Any = None,
        code: str | None = None,
        errors: dict[str, str] | None = None,
    ) -> None:
        super().__init__(message, code)
        self.field = field
        self.value = value
        self.errors = errors or ({field: message} if field else {})


class NotFoundError(PortfolioError):
    status_code = 404
    code = "NOT_FOUND"


class ConflictError(PortfolioError):
    status_code = 409
    code = "CONFLICT"


class AuthError(PortfolioError):
    """Missing or invalid credentials (401), or a non-admin user (403)."""

    status_code = 401
    code = "UNAUTHENTICATED"

    def __init__(self, message: str, forbidden: bool = False) -> None:
        super().__init__(message, "FORBIDDEN" if forbidden else None)
        if forbidden:
            self.status_code = 403


class FeatureDisabledError(PortfolioError):
    status_code = 404
    code = "FEATURE_DISABLED"

    def __init__(self, feature: str) -> None:
        super().__init__(f"Feature '{feature}' is disabled")
        self.feature = feature


class RateLimitedError(PortfolioError):
    status_code = 429
    code = "RATE_LIMIT_EXCEEDED"

    def __init__(self, retry_after: int, message: str = "Too many requests.") -> None:
        super().__init__(message)
        self.retry_after = retry_after


class UpstreamError(PortfolioError):
    """An outbound dependency (storage, LLM) is unconfigured or failed."""

    status_code = 502
    code = "UPSTREAM_ERROR"

    def __init__(self, message: str, code: str | None = None, unavailable: bool = False) -> None:
        super().__init__(message, code)
        if unavailable:
            self.status_code = 503
