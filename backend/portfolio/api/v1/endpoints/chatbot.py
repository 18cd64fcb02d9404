"""Public chatbot API endpoints.

- POST /api/v1/chatbot - Stateless completion over a supplied conversation
- POST /api/v1/chatbot/messages - Send a message in a stored conversation
- GET /api/v1/chatbot/sessions/{session_id} - Conversation history
- GET /api/v1/chatbot/settings - Greeting and enabled flag
"""

from typing import Any

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from portfolio.core.database import get_session
from portfolio.core.logging import get_logger
from portfolio.core.rate_limit import chatbot_limiter, rate_limit
from portfolio.schemas.chat import (
    ChatbotHistoryResponse,
    ChatbotMessageResponse,
    ChatbotSendRequest,
    ChatbotSendResponse,
    ChatCompletionRequest,
    ChatCompletionResponse,
)
from portfolio.services.analytics import AnalyticsService
from portfolio.services.chatbot import ChatbotService

logger = get_logger(__name__)

router = APIRouter()


@router.post(
    "",
    response_model=ChatCompletionResponse,
    summary="Chat completion",
    dependencies=[Depends(rate_limit(chatbot_limiter))],
)
async def complete(data: ChatCompletionRequest) -> ChatCompletionResponse:
    reply = await ChatbotService.complete(
        data.messages,
        system_prompt=data.system_prompt,
        context=data.context,
        knowledge=data.knowledge,
        temperature=data.temperature,
        max_tokens=data.max_tokens,
        model=data.model,
    )
    return ChatCompletionResponse(
        reply=reply.content, model=reply.model, used_llm=reply.used_llm, usage=reply.usage
    )


@router.post(
    "/messages",
    response_model=ChatbotSendResponse,
    summary="Send a chatbot message",
    dependencies=[Depends(rate_limit(chatbot_limiter))],
)
async def send_message(
    request: Request,
    data: ChatbotSendRequest,
    session: AsyncSession = Depends(get_session),
) -> ChatbotSendResponse:
    user_message, assistant_message = await ChatbotService.send(
        session, data.session_id, data.content
    )
    await AnalyticsService.record(
        session,
        "chatbot_message",
        "/chatbot",
        payload={"session_id": user_message.session_id},
        user_agent=request.headers.get("user-agent"),
    )
    return ChatbotSendResponse(
        user_message=ChatbotMessageResponse.model_validate(user_message),
        assistant_message=ChatbotMessageResponse.model_validate(assistant_message),
    )


@router.get(
    "/sessions/{session_id}",
    response_model=ChatbotHistoryResponse,
    summary="Chatbot conversation history",
)
async def get_history(
    session_id: str,
    session: AsyncSession = Depends(get_session),
) -> ChatbotHistoryResponse:
    messages = await ChatbotService.history(session, session_id)
    return ChatbotHistoryResponse(
        session_id=session_id,
        messages=[ChatbotMessageResponse.model_validate(m) for m in messages],
    )


@router.get("/settings", summary="Public chatbot settings")
async def get_public_settings(session: AsyncSession = Depends(get_session)) -> dict[str, Any]:
    settings = await ChatbotService.get_settings(session)
    return {"enabled": bool(settings.get("enabled")), "greeting": settings.get("greeting", "")}
