"""Public site API endpoints.

- GET /api/v1/settings - Public site settings
- GET /api/v1/features - Resolved feature flags
- GET /api/v1/pages/home - Home page payload
- GET /api/v1/pages/resolve?path= - Page payload for any public path
- GET /api/v1/seo/metadata?path= - Metadata block for a path
- GET /api/v1/seo/sitemap - Sitemap entries as JSON
- POST /api/v1/contact - Contact form
- POST /api/v1/analytics/events - Ingest one analytics event
"""

from typing import Any

from fastapi import APIRouter, Body, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from portfolio.core.database import get_session
from portfolio.core.feature_flags import get_feature_flags
from portfolio.core.logging import get_logger
from portfolio.core.rate_limit import analytics_limiter, get_client_ip, rate_limit
from portfolio.schemas.site import AnalyticsIngestResponse, ContactRequest, ContactResponse
from portfolio.services.analytics import AnalyticsService
from portfolio.services.contact import ContactService
from portfolio.services.pages import PageService, SeoService
from portfolio.services.settings import SettingsService

logger = get_logger(__name__)

router = APIRouter()


@router.get("/settings", summary="Public site settings")
async def get_site_settings(session: AsyncSession = Depends(get_session)) -> dict[str, Any]:
    return await SettingsService.get_site_settings(session)


@router.get("/features", summary="Feature flags")
async def get_features() -> dict[str, bool]:
    return get_feature_flags()


@router.get("/pages/home", summary="Home page payload")
async def get_home_page(session: AsyncSession = Depends(get_session)) -> dict[str, Any]:
    return await PageService.home(session)


@router.get("/pages/resolve", summary="Page payload for a public path")
async def resolve_page(
    path: str = Query(..., description="Site-relative path, e.g. /blog/hello"),
    session: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    return await PageService.resolve(session, path)


@router.get("/seo/metadata", summary="SEO metadata for a path")
async def get_seo_metadata(
    path: str = Query(default="/", description="Site-relative path"),
    session: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    return await SeoService.metadata_for_path(session, path)


@router.get("/seo/sitemap", summary="Sitemap entries")
async def get_sitemap_entries(session: AsyncSession = Depends(get_session)) -> dict[str, Any]:
    entries = await SeoService.sitemap_entries(session)
    return {"entries": [entry.to_dict() for entry in entries], "count": len(entries)}


@router.post("/contact", response_model=ContactResponse, summary="Submit the contact form")
async def submit_contact(
    request: Request,
    data: ContactRequest,
    session: AsyncSession = Depends(get_session),
) -> ContactResponse:
    result = await ContactService.submit(
        session,
        data.to_fields(),
        ip=get_client_ip(request),
        user_agent=request.headers.get("user-agent"),
    )
    return ContactResponse(**result)


@router.post(
    "/analytics/events",
    response_model=AnalyticsIngestResponse,
    summary="Ingest an analytics event",
    dependencies=[Depends(rate_limit(analytics_limiter))],
)
async def ingest_event(
    request: Request,
    payload: Any = Body(default=None),
    session: AsyncSession = Depends(get_session),
) -> AnalyticsIngestResponse:
    result = await AnalyticsService.ingest(
        session,
        payload,
        ip=get_client_ip(request),
        user_agent=request.headers.get("user-agent"),
    )
    return AnalyticsIngestResponse(**result)
