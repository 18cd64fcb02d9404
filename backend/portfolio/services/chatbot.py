"""Portfolio chatbot.

Replies come from the OpenAI-compatible LLM when it is configured and the
`chatbot` flag is on. Otherwise the bot answers with a deterministic echo
so the UI keeps working without an API key.
"""

from dataclasses import dataclass, field
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from portfolio.core.exceptions import ValidationError
from portfolio.core.feature_flags import is_enabled
from portfolio.core.logging import get_logger, llm_logger
from portfolio.integrations.llm import LLMClient, get_llm_client
from portfolio.models.chat import CHATBOT_ROLES, ChatbotMessage
from portfolio.repositories.chat import ChatbotMessageRepository
from portfolio.services.settings import CHATBOT_KEY, SettingsService
from portfolio.utils.text import clamp_or_default

logger = get_logger(__name__)

BASE_SYSTEM_PROMPT = " ".join(
    [
        "You are the AI assistant for a personal portfolio platform.",
        "Be accurate, helpful, and concise.",
        "If you are unsure, say so and ask a single focused question.",
        "Do not invent personal details, achievements, or links.",
        "If user requests sensitive data or admin actions, refuse and suggest using the admin UI.",
    ]
)
MAX_KNOWLEDGE_SNIPPETS = 20
HISTORY_WINDOW = 20
MAX_CONTENT_LENGTH = 4000


@dataclass
class CompletionReply:
    content: str
    model: str | None = None
    used_llm: bool = False
    usage: dict[str, int | None] = field(default_factory=dict)


def stub_reply(content: str) -> str:
    text = (content or "").strip()
    return f"Echo: {text or '(empty message)'}"


def validate_messages(messages: Any) -> list[dict[str, str]]:
    if not isinstance(messages, list) or not messages:
        raise ValidationError("Field 'messages' must be a non-empty array.", field="messages")
    cleaned = []
    for message in messages:
        if not isinstance(message, dict):
            raise ValidationError(
                "Each message must be an object with role and content.", field="messages"
            )
        if message.get("role") not in CHATBOT_ROLES:
            raise ValidationError(
                "Message role must be 'system', 'user', or 'assistant'.", field="messages"
            )
        content = message.get("content")
        if not isinstance(content, str) or not content.strip():
            raise ValidationError(
                "Message content must be a non-empty string.", field="messages"
            )
        cleaned.append({"role": message["role"], "content": content})
    return cleaned


def build_context_block(
    context: str | None, knowledge: list[dict[str, Any]] | None
) -> str | None:
    parts = []
    if isinstance(context, str) and context.strip():
        parts.append(context.strip())

    snippets = []
    usable = [
        item
        for item in knowledge or []
        if isinstance(item, dict) and isinstance(item.get("content"), str) and item["content"].strip()
    ]
    for index, item in enumerate(usable[:MAX_KNOWLEDGE_SNIPPETS]):
        title = str(item.get("title") or "").strip() or f"Item {index + 1}"
        header = [title]
        if str(item.get("id") or "").strip():
            header.append(f"id: {str(item['id']).strip()}")
        if str(item.get("url") or "").strip():
            header.append(f"url: {str(item['url']).strip()}")
        snippets.append(f"- {' | '.join(header)}\n{item['content'].strip()}")
    if snippets:
        parts.append("Knowledge Base Snippets:\n" + "\n\n".join(snippets))

    return "\n\n".join(parts) if parts else None


def build_system_prompt(
    system_prompt: str | None = None,
    context: str | None = None,
    knowledge: list[dict[str, Any]] | None = None,
) -> str:
    parts = [BASE_SYSTEM_PROMPT]
    if isinstance(system_prompt, str) and system_prompt.strip():
        parts.append(system_prompt.strip())
    block = build_context_block(context, knowledge)
    if block:
        parts.append(
            "\n".join(
                [
                    "Use the following context as the ONLY source of truth when it is relevant.",
                    "If it does not contain the answer, say you don't have that information.",
                    "",
                    block,
                ]
            )
        )
    return "\n\n".join(parts)


class ChatbotService:
    @staticmethod
    async def complete(
        messages: Any,
        system_prompt: str | None = None,
        context: str | None = None,
        knowledge: list[dict[str, Any]] | None = None,
        temperature: object = None,
        max_tokens: object = None,
        model: str | None = None,
        client: LLMClient | None = None,
    ) -> CompletionReply:
        """One completion over a caller-supplied conversation."""
        cleaned = validate_messages(messages)
        temperature_value = clamp_or_default(temperature, 0, 2, 0.2)
        max_tokens_value = int(clamp_or_default(max_tokens, 50, 2000, 700))

        client = client or get_llm_client()
        last_user = next(
            (m["content"] for m in reversed(cleaned) if m["role"] == "user"), ""
        )
        if not client.available or not is_enabled("chatbot"):
            llm_logger.graceful_fallback(
                "chatbot.complete",
                "chatbot disabled" if client.available else "LLM API key not configured",
            )
            return CompletionReply(content=stub_reply(last_user))

        prompt = build_system_prompt(system_prompt, context, knowledge)
        result = await client.chat(
            [{"role": "system", "content": prompt}, *cleaned],
            temperature=temperature_value,
            max_tokens=max_tokens_value,
            model=model,
        )
        if not result.success or not result.text:
            llm_logger.graceful_fallback("chatbot.complete", result.error or "empty completion")
            return CompletionReply(content=stub_reply(last_user))

        return CompletionReply(
            content=result.text,
            model=result.model,
            used_llm=True,
            usage={
                "prompt_tokens": result.prompt_tokens,
                "completion_tokens": result.completion_tokens,
            },
        )

    @staticmethod
    async def send(
        db: AsyncSession,
        session_id: str | None,
        content: str | None,
        client: LLMClient | None = None,
    ) -> tuple[ChatbotMessage, ChatbotMessage]:
        """Store the visitor message, produce a reply and store it too.

        Returns:
            (user_message, assistant_message)
        """
        session_id = (session_id or "").strip()
        if not session_id:
            raise ValidationError("sessionId is required.", field="session_id")
        text = (content or "").strip()[:MAX_CONTENT_LENGTH]

        repo = ChatbotMessageRepository(db)
        user_message = await repo.create(session_id=session_id, role="user", content=text, meta={})

        settings = await SettingsService.get_setting(db, CHATBOT_KEY)
        reply = CompletionReply(content=stub_reply(text))
        if text and settings.get("enabled", True):
            history = await repo.history(session_id)
            conversation = [
                {"role": m.role, "content": m.content}
                for m in history[-HISTORY_WINDOW:]
                if m.role in ("user", "assistant") and m.content.strip()
            ]
            reply = await ChatbotService.complete(
                conversation,
                system_prompt=settings.get("systemPrompt"),
                client=client,
            )

        assistant_message = await repo.create(
            session_id=session_id,
            role="assistant",
            content=reply.content,
            meta={"model": reply.model, "used_llm": reply.used_llm},
        )
        logger.debug(
            "Chatbot reply stored",
            extra={"session_id": session_id, "used_llm": reply.used_llm},
        )
        return user_message, assistant_message

    @staticmethod
    async def history(db: AsyncSession, session_id: str) -> list[ChatbotMessage]:
        messages = await ChatbotMessageRepository(db).history(session_id)
        return sorted(messages, key=lambda m: m.created_at)

    @staticmethod
    async def clear(db: AsyncSession, session_id: str | None = None) -> int:
        return await ChatbotMessageRepository(db).clear(session_id)

    @staticmethod
    async def logs(db: AsyncSession, limit: object = 100) -> list[ChatbotMessage]:
        return await ChatbotMessageRepository(db).recent(int(clamp_or_default(limit, 1, 500, 100)))

    @staticmethod
    async def get_settings(db: AsyncSession) -> dict[str, Any]:
        return await SettingsService.get_setting(db, CHATBOT_KEY)

    @staticmethod
    async def update_settings(db: AsyncSession, value: dict[str, Any]) -> dict[str, Any]:
        allowed = {k: v for k, v in value.items() if k in ("enabled", "greeting", "systemPrompt")}
        if "enabled" in allowed and not isinstance(allowed["enabled"], bool):
            raise ValidationError("enabled must be a boolean.", field="enabled")
        for key in ("greeting", "systemPrompt"):
            if key in allowed and not isinstance(allowed[key], str):
                raise ValidationError(f"{key} must be a string.", field=key)
        if not allowed:
            raise ValidationError("No fields to update.", code="NO_FIELDS_TO_UPDATE")
        return await SettingsService.update_setting(db, CHATBOT_KEY, allowed)
