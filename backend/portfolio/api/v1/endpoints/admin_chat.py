"""Admin live chat and chatbot endpoints.

Mounted under /api/v1/admin behind require_admin.

- GET /chat/sessions - Live chat sessions (?status=open|resolved)
- GET /chat/sessions/{session_id}/messages - Messages, oldest first
- POST /chat/sessions/{session_id}/messages - Reply as agent
- POST /chat/sessions/{session_id}/resolve - Mark resolved
- DELETE /chat/sessions/{session_id}/messages - Clear a conversation
- GET /chatbot/logs - Recent chatbot messages
- GET /chatbot/settings - Chatbot settings
- PUT /chatbot/settings - Update enabled/greeting/systemPrompt
- DELETE /chatbot/logs - Clear chatbot history (?sessionId= for one conversation)
"""

from typing import Any

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from portfolio.core.auth import AdminInfo, require_admin
from portfolio.core.database import get_session
from portfolio.core.logging import get_logger
from portfolio.schemas.chat import (
    ChatbotMessageResponse,
    ChatbotSettingsUpdate,
    LivechatMessageCreate,
    LivechatMessageListResponse,
    LivechatMessageResponse,
    LivechatSessionResponse,
)
from portfolio.schemas.common import DeletedResponse
from portfolio.services.chatbot import ChatbotService
from portfolio.services.livechat import LivechatService

logger = get_logger(__name__)

router = APIRouter()


@router.get(
    "/chat/sessions", response_model=list[LivechatSessionResponse], summary="Live chat sessions"
)
async def list_chat_sessions(
    status_filter: str | None = Query(default=None, alias="status"),
    session: AsyncSession = Depends(get_session),
) -> list[LivechatSessionResponse]:
    sessions = await LivechatService.list_sessions(session, status_filter)
    return [LivechatSessionResponse.model_validate(s) for s in sessions]


@router.get(
    "/chat/sessions/{session_id}/messages",
    response_model=LivechatMessageListResponse,
    summary="Live chat transcript",
)
async def list_chat_messages(
    session_id: str,
    limit: int = Query(default=200, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    session: AsyncSession = Depends(get_session),
) -> LivechatMessageListResponse:
    await LivechatService.get_session(session, session_id)
    messages = await LivechatService.list_messages(
        session, session_id, limit=limit, offset=offset, direction="asc"
    )
    return LivechatMessageListResponse(
        session_id=session_id,
        messages=[LivechatMessageResponse.model_validate(m) for m in messages],
        limit=limit,
        offset=offset,
        direction="asc",
    )


@router.post(
    "/chat/sessions/{session_id}/messages",
    response_model=LivechatMessageResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Reply as agent",
)
async def reply_as_agent(
    session_id: str,
    data: LivechatMessageCreate,
    admin: AdminInfo = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
) -> LivechatMessageResponse:
    role = data.role if data.role in ("agent", "system") else "agent"
    meta = {**(data.meta or {}), "admin_id": admin.id}
    message = await LivechatService.send(
        session, session_id, data.content, role=role, meta=meta, trusted=True
    )
    return LivechatMessageResponse.model_validate(message)


@router.post(
    "/chat/sessions/{session_id}/resolve",
    response_model=LivechatSessionResponse,
    summary="Resolve a live chat session",
)
async def resolve_chat_session(
    session_id: str, session: AsyncSession = Depends(get_session)
) -> LivechatSessionResponse:
    return LivechatSessionResponse.model_validate(
        await LivechatService.mark_resolved(session, session_id)
    )


@router.delete(
    "/chat/sessions/{session_id}/messages",
    response_model=DeletedResponse,
    summary="Clear a live chat transcript",
)
async def clear_chat_messages(
    session_id: str, session: AsyncSession = Depends(get_session)
) -> DeletedResponse:
    return DeletedResponse(deleted=await LivechatService.clear(session, session_id))


@router.get(
    "/chatbot/logs", response_model=list[ChatbotMessageResponse], summary="Chatbot message log"
)
async def get_chatbot_logs(
    limit: int = Query(default=100, ge=1, le=500),
    session: AsyncSession = Depends(get_session),
) -> list[ChatbotMessageResponse]:
    return [
        ChatbotMessageResponse.model_validate(m)
        for m in await ChatbotService.logs(session, limit=limit)
    ]


@router.delete("/chatbot/logs", response_model=DeletedResponse, summary="Clear chatbot history")
async def clear_chatbot_logs(
    session_id: str | None = Query(default=None, alias="sessionId"),
    session: AsyncSession = Depends(get_session),
) -> DeletedResponse:
    removed = await ChatbotService.clear(session, session_id)
    logger.info("Chatbot history cleared", extra={"session_id": session_id, "removed": removed})
    return DeletedResponse(deleted=removed)


@router.get("/chatbot/settings", summary="Chatbot settings")
async def get_chatbot_settings(session: AsyncSession = Depends(get_session)) -> dict[str, Any]:
    return await ChatbotService.get_settings(session)


@router.put("/chatbot/settings", summary="Update chatbot settings")
async def update_chatbot_settings(
    data: ChatbotSettingsUpdate, session: AsyncSession = Depends(get_session)
) -> dict[str, Any]:
    return await ChatbotService.update_settings(session, data.to_setting())
