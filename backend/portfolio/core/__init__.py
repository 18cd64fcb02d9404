"""Core utilities and configuration."""

from portfolio.core.config import Settings, get_settings
from portfolio.core.database import Base, db_manager, get_session, transaction
from portfolio.core.exceptions import (
    AuthError,
    ConflictError,
    FeatureDisabledError,
    NotFoundError,
    PortfolioError,
    RateLimitedError,
    UpstreamError,
    ValidationError,
)
from portfolio.core.logging import (
    auth_logger,
    db_logger,
    get_logger,
    llm_logger,
    setup_logging,
)
from portfolio.core.websocket import connection_manager, ws_logger

__all__ = [
    # Config
    "Settings",
    "get_settings",
    # Database
    "Base",
    "db_manager",
    "get_session",
    "transaction",
    # Errors
    "AuthError",
    "ConflictError",
    "FeatureDisabledError",
    "NotFoundError",
    "PortfolioError",
    "RateLimitedError",
    "UpstreamError",
    "ValidationError",
    # Logging
    "auth_logger",
    "db_logger",
    "get_logger",
    "llm_logger",
    "setup_logging",
    # WebSocket
    "connection_manager",
    "ws_logger",
]
