"""Admin AI helper endpoints.

Mounted under /api/v1/admin behind require_admin. Each route is behind
its own feature flag.

- POST /ai/blog-draft - Markdown blog draft from a topic
- POST /ai/readme - README draft stored on a project for approval
- POST /ai/embeddings - Embedding vectors for up to 100 texts
"""

from typing import Any

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from portfolio.core.database import get_session
from portfolio.core.feature_flags import require_feature
from portfolio.core.logging import get_logger
from portfolio.schemas.site import BlogDraftRequest, EmbeddingsRequest, ReadmeRequest
from portfolio.services.ai import AIService

logger = get_logger(__name__)

router = APIRouter()


def _get_request_id(request: Request) -> str:
    """Get request_id from request state."""
    return getattr(request.state, "request_id", "unknown")


@router.post(
    "/ai/blog-draft",
    summary="Generate a blog draft",
    dependencies=[Depends(require_feature("ai_blog_draft"))],
)
async def generate_blog_draft(request: Request, data: BlogDraftRequest) -> dict[str, Any]:
    logger.info(
        "Blog draft request",
        extra={"request_id": _get_request_id(request), "topic": data.topic, "tone": data.tone},
    )
    return await AIService.blog_draft(
        data.topic,
        tone=data.tone,
        keywords=data.keywords,
        goal=data.goal,
        audience=data.audience,
        outline=data.outline,
        max_words=data.max_words,
    )


@router.post(
    "/ai/readme",
    summary="Generate a project README draft",
    dependencies=[Depends(require_feature("ai_readme"))],
)
async def generate_readme(
    request: Request,
    data: ReadmeRequest,
    session: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    logger.info(
        "README draft request",
        extra={"request_id": _get_request_id(request), "project_id": data.project_id},
    )
    return await AIService.project_readme(
        session, data.project_id, tone=data.tone, badges=data.badges
    )


@router.post(
    "/ai/embeddings",
    summary="Embed texts",
    dependencies=[Depends(require_feature("ai_embeddings"))],
)
async def create_embeddings(data: EmbeddingsRequest) -> dict[str, Any]:
    return await AIService.embed(data.texts)
