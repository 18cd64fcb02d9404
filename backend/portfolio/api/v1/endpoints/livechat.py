"""Live chat API endpoints.

- POST /api/v1/livechat/sessions - Start a conversation
- GET /api/v1/livechat/sessions/{session_id}/messages - Page through messages
- POST /api/v1/livechat/sessions/{session_id}/messages - Post a message
  (agent/system roles need the X-Livechat-Agent-Secret header)
- POST /api/v1/livechat/presence - Agent heartbeat (agent secret required)
- GET /api/v1/livechat/presence - Whether an agent is online
- WS /api/v1/livechat/ws - Realtime message stream

The socket sends a server ping every `livechat_heartbeat_interval` seconds
and the "connected" frame carries reconnect advice. Clients that cannot
hold a socket poll the messages endpoint instead.
"""

from datetime import datetime

from fastapi import APIRouter, Depends, Header, Query, Request, WebSocket, status
from sqlalchemy.ext.asyncio import AsyncSession

from portfolio.core.database import get_session
from portfolio.core.feature_flags import is_enabled, require_feature
from portfolio.core.logging import get_logger
from portfolio.core.rate_limit import (
    get_client_ip,
    livechat_read_limiter,
    livechat_write_limiter,
    rate_limit,
)
from portfolio.core.websocket import connection_manager
from portfolio.schemas.chat import (
    LivechatMessageCreate,
    LivechatMessageListResponse,
    LivechatMessageResponse,
    LivechatSessionCreate,
    LivechatSessionResponse,
    PresenceHeartbeat,
    PresenceResponse,
)
from portfolio.services.analytics import AnalyticsService
from portfolio.services.livechat import LivechatService, _check_agent_secret, presence

logger = get_logger(__name__)

AGENT_SECRET_HEADER = "X-Livechat-Agent-Secret"

router = APIRouter()
http_router = APIRouter(dependencies=[Depends(require_feature("realtime_chat"))])


@http_router.post(
    "/sessions",
    response_model=LivechatSessionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Start a live chat session",
    dependencies=[Depends(rate_limit(livechat_write_limiter))],
)
async def start_session(
    request: Request,
    data: LivechatSessionCreate,
    session: AsyncSession = Depends(get_session),
) -> LivechatSessionResponse:
    chat = await LivechatService.start_session(session, data.visitor_name, data.visitor_email)
    await AnalyticsService.record(
        session,
        "livechat_open",
        "/chat",
        payload={"session_id": chat.id},
        ip=get_client_ip(request),
        user_agent=request.headers.get("user-agent"),
    )
    return LivechatSessionResponse.model_validate(chat)


@http_router.get(
    "/sessions/{session_id}/messages",
    response_model=LivechatMessageListResponse,
    summary="List live chat messages",
    dependencies=[Depends(rate_limit(livechat_read_limiter))],
)
async def list_messages(
    session_id: str,
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    direction: str = Query(default="desc", pattern="^(asc|desc)$"),
    since: datetime | None = Query(default=None, description="Only messages after this time"),
    session: AsyncSession = Depends(get_session),
) -> LivechatMessageListResponse:
    messages = await LivechatService.list_messages(
        session, session_id, limit=limit, offset=offset, direction=direction, since=since
    )
    return LivechatMessageListResponse(
        session_id=session_id,
        messages=[LivechatMessageResponse.model_validate(m) for m in messages],
        limit=limit,
        offset=offset,
        direction=direction,
    )


@http_router.post(
    "/sessions/{session_id}/messages",
    response_model=LivechatMessageResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Post a live chat message",
    dependencies=[Depends(rate_limit(livechat_write_limiter))],
)
async def post_message(
    request: Request,
    session_id: str,
    data: LivechatMessageCreate,
    agent_secret: str | None = Header(default=None, alias=AGENT_SECRET_HEADER),
    session: AsyncSession = Depends(get_session),
) -> LivechatMessageResponse:
    message = await LivechatService.send(
        session,
        session_id,
        data.content,
        role=data.role,
        agent_secret=agent_secret,
        meta=data.meta,
    )
    if message.role == "visitor":
        await AnalyticsService.record(
            session,
            "livechat_message",
            "/chat",
            payload={"session_id": session_id},
            ip=get_client_ip(request),
            user_agent=request.headers.get("user-agent"),
        )
    return LivechatMessageResponse.model_validate(message)


@http_router.post("/presence", response_model=PresenceResponse, summary="Agent heartbeat")
async def agent_heartbeat(
    data: PresenceHeartbeat,
    agent_secret: str | None = Header(default=None, alias=AGENT_SECRET_HEADER),
) -> PresenceResponse:
    _check_agent_secret(agent_secret)
    presence.heartbeat(data.agent_id)
    agents = presence.agents_online()
    return PresenceResponse(online=bool(agents), agents=agents, ttl_seconds=presence.ttl)


@http_router.get(
    "/presence",
    response_model=PresenceResponse,
    summary="Agent availability",
    dependencies=[Depends(rate_limit(livechat_read_limiter))],
)
async def get_presence() -> PresenceResponse:
    agents = presence.agents_online()
    # Visitors only learn whether someone is there
    return PresenceResponse(online=bool(agents), agents=[], ttl_seconds=presence.ttl)


@router.websocket("/ws")
async def livechat_websocket(websocket: WebSocket) -> None:
    """Realtime live chat stream.

    Client -> server: {"type": "subscribe", "session_id": "uuid"},
    {"type": "unsubscribe", "session_id": "uuid"}, {"type": "ping"}, {"type": "pong"}.

    Server -> client: "connected" (with heartbeat_interval and reconnect_advice),
    "subscribed", "unsubscribed", "message" ({"session_id", "message"}),
    "ping", "pong", "error" ({"code", "error"}) and "shutdown".
    """
    if not is_enabled("realtime_chat"):
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason="realtime_chat disabled")
        return
    await connection_manager.run_connection(websocket)


router.include_router(http_router)
