"""Tests for the public chatbot endpoints.

- POST /api/v1/chatbot
- POST /api/v1/chatbot/messages
- GET /api/v1/chatbot/sessions/{session_id}
- GET /api/v1/chatbot/settings
"""

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from portfolio.core.rate_limit import chatbot_limiter
from portfolio.services.settings import SettingsService


class TestChatCompletion:
    """Tests for the stateless completion endpoint."""

    @pytest.mark.asyncio
    async def test_completion(self, async_client: AsyncClient, fake_llm) -> None:
        response = await async_client.post(
            "/api/v1/chatbot",
            json={"messages": [{"role": "user", "content": "Hi"}], "temperature": 5},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["reply"] == "Hello from the model."
        assert body["model"] == "fake-model"
        assert body["used_llm"] is True
        assert fake_llm.chat_calls[0]["temperature"] == 2

    @pytest.mark.asyncio
    async def test_echo_without_key(self, async_client: AsyncClient, no_llm) -> None:
        response = await async_client.post(
            "/api/v1/chatbot", json={"messages": [{"role": "user", "content": "Hi"}]}
        )

        assert response.json()["used_llm"] is False
        assert response.json()["reply"].startswith("Echo: Hi")

    @pytest.mark.asyncio
    async def test_invalid_messages(self, async_client: AsyncClient, fake_llm) -> None:
        response = await async_client.post("/api/v1/chatbot", json={"messages": "hello"})

        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"

    @pytest.mark.asyncio
    async def test_rate_limited(
        self, async_client: AsyncClient, fake_llm, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setattr(chatbot_limiter, "capacity", 1)
        payload = {"messages": [{"role": "user", "content": "Hi"}]}

        await async_client.post("/api/v1/chatbot", json=payload)
        response = await async_client.post("/api/v1/chatbot", json=payload)

        assert response.status_code == 429


class TestChatbotConversation:
    """Tests for stored chatbot conversations."""

    @pytest.mark.asyncio
    async def test_send_and_history(self, async_client: AsyncClient, fake_llm) -> None:
        sent = await async_client.post(
            "/api/v1/chatbot/messages", json={"sessionId": "visitor-1", "message": "Hi there"}
        )

        assert sent.status_code == 200
        body = sent.json()
        assert body["user_message"]["content"] == "Hi there"
        assert body["assistant_message"]["content"] == "Hello from the model."
        assert body["assistant_message"]["meta"]["used_llm"] is True

        history = await async_client.get("/api/v1/chatbot/sessions/visitor-1")
        assert [m["role"] for m in history.json()["messages"]] == ["user", "assistant"]

    @pytest.mark.asyncio
    async def test_session_id_required(self, async_client: AsyncClient, fake_llm) -> None:
        response = await async_client.post("/api/v1/chatbot/messages", json={"content": "Hi"})

        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"

    @pytest.mark.asyncio
    async def test_unknown_session_history_is_empty(self, async_client: AsyncClient) -> None:
        response = await async_client.get("/api/v1/chatbot/sessions/nobody")
        assert response.json() == {"session_id": "nobody", "messages": []}

    @pytest.mark.asyncio
    async def test_public_settings(
        self, async_client: AsyncClient, db_session: AsyncSession
    ) -> None:
        await SettingsService.update_setting(
            db_session, "chatbot", {"greeting": "Hey!", "systemPrompt": "secret"}
        )
        await db_session.commit()

        response = await async_client.get("/api/v1/chatbot/settings")

        assert response.json() == {"enabled": True, "greeting": "Hey!"}
