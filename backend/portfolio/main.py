"""Portfolio API application.

Builds the FastAPI app: request logging and ids, the admin access gate,
CORS, the error envelope, /health checks, robots.txt and sitemap.xml,
and the /api/v1 routers. Startup initializes the database, seeds the
bootstrap admin and site settings, and starts the WebSocket heartbeat.
Shutdown closes sockets, the LLM client and the engine in that order.
Run directly with `python -m portfolio.main`; the port comes from PORT.
"""

import json
import logging
import time
import uuid
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from sqlalchemy.exc import SQLAlchemyError
from starlette.middleware.base import BaseHTTPMiddleware

from portfolio.api.v1 import router as api_v1_router
from portfolio.core.access import ADMIN_API_PREFIX, AccessGateMiddleware
from portfolio.core.auth import AuthService
from portfolio.core.config import get_settings
from portfolio.core.database import db_manager, transaction
from portfolio.core.exceptions import PortfolioError, RateLimitedError, ValidationError
from portfolio.core.logging import get_logger, setup_logging
from portfolio.core.websocket import connection_manager
from portfolio.integrations.llm import close_llm_client, get_llm_client
from portfolio.seo.robots import ROBOTS_CACHE_CONTROL, render_robots_txt
from portfolio.seo.sitemap import render_sitemap_xml
from portfolio.services.pages import SeoService
from portfolio.services.settings import SettingsService

setup_logging()
logger = get_logger(__name__)

# Compared case-insensitively, camelCase and snake_case spellings both
REDACTED_KEYS = frozenset(
    {
        "password",
        "newpassword",
        "token",
        "secret",
        "apikey",
        "api_key",
        "authorization",
        "agentsecret",
        "agent_secret",
    }
)
BODYLESS_METHODS = frozenset({"GET", "HEAD", "OPTIONS"})


def redact(payload: Any) -> Any:
    """Copy of a decoded JSON body with credential values masked."""
    if isinstance(payload, list):
        return [redact(item) for item in payload]
    if not isinstance(payload, dict):
        return payload
    return {
        key: "****" if key.lower() in REDACTED_KEYS else redact(value)
        for key, value in payload.items()
    }


async def _debug_log_body(request: Request, request_id: str) -> None:
    if request.method in BODYLESS_METHODS or not logger.isEnabledFor(logging.DEBUG):
        return
    if not request.headers.get("content-type", "").startswith("application/json"):
        return
    raw = await request.body()
    if not raw:
        return
    try:
        logger.debug("Request body", extra={"request_id": request_id, "body": redact(json.loads(raw))})
    except (json.JSONDecodeError, UnicodeDecodeError):
        logger.debug("Unparseable request body", extra={"request_id": request_id, "bytes": len(raw)})


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Tag each request with an id and log it on the way in and out.

    Responses carry the id in X-Request-ID. 5xx are logged at ERROR,
    4xx at WARNING and everything else at INFO.
    """

    async def dispatch(self, request: Request, call_next: Any) -> Any:
        request_id = uuid.uuid4().hex
        request.state.request_id = request_id
        context = {"request_id": request_id, "method": request.method, "path": request.url.path}

        logger.info("Request started", extra={**context, "query": request.url.query or None})
        await _debug_log_body(request, request_id)

        started = time.monotonic()
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id

        context["status_code"] = response.status_code
        context["duration_ms"] = round((time.monotonic() - started) * 1000, 2)
        if response.status_code >= 500:
            logger.error("Request failed", extra=context)
        elif response.status_code >= 400:
            logger.warning("Request rejected", extra=context)
        else:
            logger.info("Request completed", extra=context)
        return response


class AdminNoStoreMiddleware(BaseHTTPMiddleware):
    """Mark every admin API response as uncacheable."""

    async def dispatch(self, request: Request, call_next: Any) -> Any:
        response = await call_next(request)
        if request.url.path.startswith(ADMIN_API_PREFIX):
            response.headers["Cache-Control"] = "no-store"
        return response


async def seed_database() -> None:
    """Create the bootstrap admin and default site settings if missing."""
    async with db_manager.session_factory() as session:
        try:
            async with transaction(session, table="settings"):
                await AuthService.bootstrap_admin(session)
                await SettingsService.seed_defaults(session)
        except SQLAlchemyError as e:
            # Tables may not exist before the first migration
            logger.error(
                "Failed to seed database",
                extra={"error_type": type(e).__name__, "error_message": str(e)},
            )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings = get_settings()
    logger.info(
        "Portfolio API starting",
        extra={
            "app_name": settings.app_name,
            "version": settings.app_version,
            "environment": settings.environment,
        },
    )

    db_manager.init_db()
    await seed_database()

    if not get_llm_client().available:
        logger.warning("OPENAI_API_KEY not set, chat and AI helpers will use fallbacks")

    await connection_manager.start_heartbeat()

    yield

    logger.info("Portfolio API stopping")
    await connection_manager.broadcast_shutdown(reason="server_shutdown")
    await connection_manager.stop_heartbeat()
    await close_llm_client()
    await db_manager.close()
    logger.info("Portfolio API stopped")


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", "unknown")


def _error_response(
    request: Request,
    status_code: int,
    message: str,
    code: str,
    headers: dict[str, str] | None = None,
    **extra: Any,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": message, "code": code, "request_id": _request_id(request), **extra},
        headers=headers,
    )


def _format_validation_errors(errors: Sequence[Any]) -> str:
    parts = []
    for error in errors:
        location = ".".join(str(part) for part in error["loc"])
        parts.append(f"{location}: {error['msg']}")
    return "; ".join(parts)


def register_error_handlers(app: FastAPI) -> None:
    """Every error leaves as {"error", "code", "request_id"}."""

    @app.exception_handler(PortfolioError)
    async def on_portfolio_error(request: Request, exc: PortfolioError) -> JSONResponse:
        headers: dict[str, str] | None = None
        extra: dict[str, Any] = {}
        context = {
            "request_id": _request_id(request),
            "path": request.url.path,
            "code": exc.code,
            "status_code": exc.status_code,
            "error_message": exc.message,
        }

        if isinstance(exc, RateLimitedError):
            headers = {"Retry-After": str(exc.retry_after)}
            context["client_ip"] = request.client.host if request.client else None
        elif isinstance(exc, ValidationError) and exc.errors:
            extra["errors"] = exc.errors

        if exc.status_code >= 500:
            logger.error("Domain error", extra=context)
        else:
            logger.warning("Domain error", extra=context)
        return _error_response(
            request, exc.status_code, exc.message, exc.code, headers=headers, **extra
        )

    @app.exception_handler(RequestValidationError)
    async def on_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = exc.errors()
        logger.warning(
            "Invalid request parameters",
            extra={"request_id": _request_id(request), "errors": str(errors)},
        )
        return _error_response(
            request,
            status.HTTP_422_UNPROCESSABLE_ENTITY,
            _format_validation_errors(errors),
            "VALIDATION_ERROR",
        )

    @app.exception_handler(Exception)
    async def on_unhandled(request: Request, exc: Exception) -> JSONResponse:
        logger.error(
            "Unhandled exception",
            extra={
                "request_id": _request_id(request),
                "error_type": type(exc).__name__,
                "error_message": str(exc),
            },
            exc_info=True,
        )
        return _error_response(
            request,
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "An internal error occurred. Please try again later.",
            "INTERNAL_ERROR",
        )


def register_root_routes(app: FastAPI) -> None:
    """Health checks plus robots.txt and sitemap.xml at the site root."""

    @app.get("/health", tags=["Health"])
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/health/db", tags=["Health"])
    async def health_db() -> dict[str, str | bool]:
        reachable = await db_manager.check_connection()
        return {"status": "ok" if reachable else "error", "database": reachable}

    @app.get("/robots.txt", tags=["SEO"], include_in_schema=False)
    async def robots_txt() -> PlainTextResponse:
        return PlainTextResponse(
            render_robots_txt(get_settings()),
            headers={"Cache-Control": ROBOTS_CACHE_CONTROL},
        )

    @app.get("/sitemap.xml", tags=["SEO"], include_in_schema=False)
    async def sitemap_xml() -> Response:
        async with db_manager.session_factory() as session:
            entries = await SeoService.sitemap_entries(session)
        return Response(content=render_sitemap_xml(entries), media_type="application/xml")


def create_app() -> FastAPI:
    """Build the app; settings are read once, here."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    # Last added runs first: CORS, logging, no-store, then the gate
    app.add_middleware(AccessGateMiddleware)
    app.add_middleware(AdminNoStoreMiddleware)
    app.add_middleware(RequestLoggingMiddleware)

    origins = [settings.frontend_url] if settings.frontend_url else ["*"]
    logger.info("CORS origins configured", extra={"allowed_origins": origins})
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Retry-After"],
    )

    register_error_handlers(app)
    register_root_routes(app)
    app.include_router(api_v1_router, prefix="/api/v1")
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run("portfolio.main:app", host=settings.host, port=settings.port, reload=settings.debug)
