"""Chatbot and live chat schemas."""

from datetime import datetime
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from portfolio.schemas.common import RequestModel


# Chatbot


class ChatCompletionRequest(RequestModel):
    """Stateless completion over a caller-supplied conversation."""

    messages: Any = Field(None, description="[{role, content}] conversation")
    system_prompt: str | None = Field(None, description="Extra system instructions")
    context: str | None = Field(None, description="Free-form context block")
    knowledge: list[dict[str, Any]] | None = Field(
        None, description="Knowledge snippets {id, title, url, content}"
    )
    temperature: Any = Field(None, description="0..2, default 0.2")
    max_tokens: Any = Field(None, description="50..2000, default 700")
    model: str | None = Field(None, description="Model override")


class ChatCompletionResponse(BaseModel):
    ok: bool = True
    reply: str = Field(..., description="Assistant reply")
    model: str | None = Field(None, description="Model that answered")
    used_llm: bool = Field(..., description="False when the echo fallback answered")
    usage: dict[str, int | None] = Field(default_factory=dict)


class ChatbotSendRequest(RequestModel):
    session_id: str | None = Field(
        None,
        validation_alias=AliasChoices("session_id", "sessionId"),
        description="Client-chosen conversation id",
    )
    content: str | None = Field(
        None,
        validation_alias=AliasChoices("content", "message"),
        description="Visitor message",
    )


class ChatbotMessageResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    session_id: str
    role: str
    content: str
    meta: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime


class ChatbotSendResponse(BaseModel):
    ok: bool = True
    user_message: ChatbotMessageResponse
    assistant_message: ChatbotMessageResponse


class ChatbotHistoryResponse(BaseModel):
    session_id: str
    messages: list[ChatbotMessageResponse]


class ChatbotSettingsUpdate(RequestModel):
    enabled: bool | None = None
    greeting: str | None = None
    system_prompt: str | None = Field(None, description="Extra system instructions")

    def to_setting(self) -> dict[str, Any]:
        fields = self.to_fields()
        if "system_prompt" in fields:
            fields["systemPrompt"] = fields.pop("system_prompt")
        return fields


# Live chat


class LivechatSessionCreate(RequestModel):
    visitor_name: str | None = Field(
        None, validation_alias=AliasChoices("visitor_name", "visitorName", "name")
    )
    visitor_email: str | None = Field(
        None, validation_alias=AliasChoices("visitor_email", "visitorEmail", "email")
    )


class LivechatSessionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    visitor_name: str | None = None
    visitor_email: str | None = None
    status: str
    last_message_at: datetime | None = None
    created_at: datetime


class LivechatMessageCreate(RequestModel):
    content: str | None = Field(
        None, validation_alias=AliasChoices("content", "message", "text")
    )
    role: str = Field("visitor", description="visitor, agent or system")
    meta: dict[str, Any] | None = None


class LivechatMessageResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    session_id: str
    role: str
    content: str
    meta: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime


class LivechatMessageListResponse(BaseModel):
    session_id: str
    messages: list[LivechatMessageResponse]
    limit: int
    offset: int
    direction: str


class PresenceHeartbeat(RequestModel):
    agent_id: str = Field(
        ..., min_length=1, max_length=120, validation_alias=AliasChoices("agent_id", "agentId")
    )


class PresenceResponse(BaseModel):
    online: bool = Field(..., description="At least one agent is online")
    agents: list[str] = Field(default_factory=list)
    ttl_seconds: float
