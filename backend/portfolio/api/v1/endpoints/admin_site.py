"""Admin settings, SEO, media and analytics endpoints.

Mounted under /api/v1/admin behind require_admin.

- GET /settings - Every settings object (defaults merged in)
- PUT /settings/{key} - Replace or deep-merge one settings object
- GET /seo - Robots/sitemap overview
- GET /seo/sitemap - Sitemap entries as JSON
- GET /media - Recent uploads
- POST /media - Upload a file (multipart: file, alt)
- DELETE /media/{media_id} - Delete an upload
- GET /analytics/summary - Aggregated analytics
"""

from typing import Any

from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from portfolio.core.database import get_session
from portfolio.core.feature_flags import require_feature
from portfolio.core.logging import get_logger
from portfolio.schemas.common import OkResponse
from portfolio.schemas.site import MediaResponse, SettingUpdate
from portfolio.services.analytics import AnalyticsService
from portfolio.services.media import MediaService
from portfolio.services.pages import SeoService
from portfolio.services.settings import SettingsService

logger = get_logger(__name__)

router = APIRouter()


def _get_request_id(request: Request) -> str:
    """Get request_id from request state."""
    return getattr(request.state, "request_id", "unknown")


@router.get("/settings", summary="All settings")
async def list_settings(session: AsyncSession = Depends(get_session)) -> dict[str, dict[str, Any]]:
    return await SettingsService.list_settings(session)


@router.put("/settings/{key}", summary="Update a settings object")
async def update_setting(
    request: Request,
    key: str,
    data: SettingUpdate,
    session: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    logger.info(
        "Update setting request",
        extra={"request_id": _get_request_id(request), "key": key, "merge": data.merge},
    )
    value = await SettingsService.update_setting(session, key, data.value, merge=data.merge)
    return {"key": key, "value": value}


@router.get("/seo", summary="SEO overview")
async def get_seo_status(session: AsyncSession = Depends(get_session)) -> dict[str, Any]:
    return await SeoService.status(session)


@router.get("/seo/sitemap", summary="Sitemap entries")
async def get_sitemap(session: AsyncSession = Depends(get_session)) -> dict[str, Any]:
    entries = await SeoService.sitemap_entries(session)
    return {"entries": [entry.to_dict() for entry in entries], "count": len(entries)}


media_feature = [Depends(require_feature("admin_media"))]


@router.get(
    "/media", response_model=list[MediaResponse], summary="List media", dependencies=media_feature
)
async def list_media(
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    session: AsyncSession = Depends(get_session),
) -> list[MediaResponse]:
    return [
        MediaResponse.model_validate(m)
        for m in await MediaService.list(session, limit=limit, offset=offset)
    ]


@router.post(
    "/media",
    response_model=MediaResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload media",
    dependencies=media_feature,
)
async def upload_media(
    request: Request,
    file: UploadFile = File(..., description="Image, PDF or MP4"),
    alt: str | None = Form(default=None, description="Alt text"),
    session: AsyncSession = Depends(get_session),
) -> MediaResponse:
    content = await file.read()
    logger.info(
        "Media upload request",
        extra={
            "request_id": _get_request_id(request),
            "upload_filename": file.filename,
            "content_type": file.content_type,
            "size_bytes": len(content),
        },
    )
    media = await MediaService.upload(
        session, content, file.filename or "upload", file.content_type, alt=alt
    )
    return MediaResponse.model_validate(media)


@router.delete(
    "/media/{media_id}", response_model=OkResponse, summary="Delete media", dependencies=media_feature
)
async def delete_media(media_id: str, session: AsyncSession = Depends(get_session)) -> OkResponse:
    await MediaService.delete(session, media_id)
    return OkResponse()


@router.get("/analytics/summary", summary="Analytics summary")
async def get_analytics_summary(
    period: str = Query(default="7d", description="24h, 7d or 30d"),
    path_prefix: str | None = Query(default=None, alias="pathPrefix"),
    session: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    return await AnalyticsService.summarize(session, period=period, path_prefix=path_prefix)
