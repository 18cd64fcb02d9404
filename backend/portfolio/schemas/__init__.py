"""Schemas layer - Pydantic models for API validation.

Schemas define the shape of data for API requests and responses.
They handle validation, serialization, and documentation.
"""

from portfolio.schemas.auth import (
    AdminResponse,
    LoginRequest,
    LoginResponse,
    SessionResponse,
)
from portfolio.schemas.chat import (
    ChatbotHistoryResponse,
    ChatbotMessageResponse,
    ChatbotSendRequest,
    ChatbotSendResponse,
    ChatbotSettingsUpdate,
    ChatCompletionRequest,
    ChatCompletionResponse,
    LivechatMessageCreate,
    LivechatMessageListResponse,
    LivechatMessageResponse,
    LivechatSessionCreate,
    LivechatSessionResponse,
    PresenceHeartbeat,
    PresenceResponse,
)
from portfolio.schemas.common import (
    DeletedResponse,
    ErrorResponse,
    OkResponse,
    PageInfo,
    RequestModel,
)
from portfolio.schemas.content import (
    AdminBlogResponse,
    AdminProjectResponse,
    BlogListResponse,
    BlogResponse,
    BlogWrite,
    ProjectListResponse,
    ProjectResponse,
    ProjectViewsResponse,
    ProjectWrite,
    SectionResponse,
    SectionWrite,
    SkillResponse,
    SkillWrite,
    TimelineResponse,
    TimelineWrite,
)
from portfolio.schemas.content_node import (
    ContentNodeResponse,
    ContentNodeWrite,
    ContentTreeResponse,
)
from portfolio.schemas.site import (
    AnalyticsIngestResponse,
    BlogDraftRequest,
    ContactRequest,
    ContactResponse,
    EmbeddingsRequest,
    MediaResponse,
    ReadmeRequest,
    SettingUpdate,
)

__all__ = [
    # Auth
    "AdminResponse",
    "LoginRequest",
    "LoginResponse",
    "SessionResponse",
    # Chat
    "ChatbotHistoryResponse",
    "ChatbotMessageResponse",
    "ChatbotSendRequest",
    "ChatbotSendResponse",
    "ChatbotSettingsUpdate",
    "ChatCompletionRequest",
    "ChatCompletionResponse",
    "LivechatMessageCreate",
    "LivechatMessageListResponse",
    "LivechatMessageResponse",
    "LivechatSessionCreate",
    "LivechatSessionResponse",
    "PresenceHeartbeat",
    "PresenceResponse",
    # Common
    "DeletedResponse",
    "ErrorResponse",
    "OkResponse",
    "PageInfo",
    "RequestModel",
    # Content
    "AdminBlogResponse",
    "AdminProjectResponse",
    "BlogListResponse",
    "BlogResponse",
    "BlogWrite",
    "ProjectListResponse",
    "ProjectResponse",
    "ProjectViewsResponse",
    "ProjectWrite",
    "SectionResponse",
    "SectionWrite",
    "SkillResponse",
    "SkillWrite",
    "TimelineResponse",
    "TimelineWrite",
    # Content tree
    "ContentNodeResponse",
    "ContentNodeWrite",
    "ContentTreeResponse",
    # Site
    "AnalyticsIngestResponse",
    "BlogDraftRequest",
    "ContactRequest",
    "ContactResponse",
    "EmbeddingsRequest",
    "MediaResponse",
    "ReadmeRequest",
    "SettingUpdate",
]
