"""OpenAI-compatible LLM client (chat completions and embeddings).

Features:
- httpx AsyncClient created lazily
- Circuit breaker and retries with exponential backoff
- 429 handling with Retry-After, no retry on 401/403 or other 4xx
- Returns result dataclasses; callers fall back when `available` is False

ERROR LOGGING REQUIREMENTS:
- Log all outbound calls with endpoint, model and timing
- Log request/response bodies at DEBUG (truncated)
- Log timeouts, rate limits and auth failures
- Include retry attempt number in logs
- Never log the API key
"""

import asyncio
import json
import time
from dataclasses import dataclass, field
from typing import Any

import httpx

from portfolio.core.circuit_breaker import CircuitBreaker, CircuitBreakerConfig
from portfolio.core.config import get_settings
from portfolio.core.logging import get_logger, llm_logger

logger = get_logger(__name__)

CHAT_ENDPOINT = "/chat/completions"
EMBEDDINGS_ENDPOINT = "/embeddings"
MAX_RETRY_AFTER_SECONDS = 60


@dataclass
class ChatCompletionResult:
    success: bool
    text: str | None = None
    model: str | None = None
    finish_reason: str | None = None
    prompt_tokens: int | None = None
    completion_tokens: int | None = None
    error: str | None = None
    status_code: int | None = None
    duration_ms: float = 0.0


@dataclass
class EmbeddingResult:
    success: bool
    vectors: list[list[float]] = field(default_factory=list)
    model: str | None = None
    prompt_tokens: int | None = None
    error: str | None = None
    status_code: int | None = None
    duration_ms: float = 0.0


@dataclass
class _Response:
    data: dict[str, Any] | None
    error: str | None = None
    status_code: int | None = None
    duration_ms: float = 0.0


class LLMClient:
    """Client for an OpenAI-compatible HTTP API."""

    def __init__(self) -> None:
        settings = get_settings()
        self._api_key = settings.openai_api_key
        self._base_url = settings.openai_base_url.rstrip("/")
        self.model = settings.openai_model
        self.embedding_model = settings.openai_embedding_model
        self._timeout = settings.llm_timeout
        self._max_retries = max(1, settings.llm_max_retries)
        self._retry_delay = settings.llm_retry_delay
        self.circuit_breaker = CircuitBreaker(
            CircuitBreakerConfig(
                failure_threshold=settings.llm_circuit_failure_threshold,
                recovery_timeout=settings.llm_circuit_recovery_timeout,
            ),
            name="llm",
        )
        self._client: httpx.AsyncClient | None = None

    @property
    def available(self) -> bool:
        return bool(self._api_key)

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                headers={
                    "Authorization": f"Bearer {self._api_key}",
                    "Content-Type": "application/json",
                },
                timeout=httpx.Timeout(self._timeout),
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _post(self, endpoint: str, body: dict[str, Any]) -> _Response:
        """POST with retries; never raises for transport or HTTP errors."""
        if not self.available:
            return _Response(None, error="LLM not configured (missing API key)")
        if not await self.circuit_breaker.can_execute():
            llm_logger.graceful_fallback(endpoint, "Circuit breaker open")
            return _Response(None, error="Circuit breaker is open")

        model = str(body.get("model"))
        client = self._get_client()
        start_time = time.monotonic()
        last = _Response(None, error="Request failed after all retries")

        llm_logger.request_body(endpoint, json.dumps(body, ensure_ascii=False))

        for attempt in range(self._max_retries):
            attempt_start = time.monotonic()
            llm_logger.api_call_start(endpoint, model, len(json.dumps(body)), attempt)
            retry_after: float | None = None

            try:
                response = await client.post(endpoint, json=body)
            except httpx.TimeoutException:
                duration_ms = (time.monotonic() - attempt_start) * 1000
                llm_logger.timeout(endpoint, self._timeout)
                await self.circuit_breaker.record_failure()
                last = _Response(None, error="Request timed out", duration_ms=duration_ms)
            except httpx.HTTPError as e:
                duration_ms = (time.monotonic() - attempt_start) * 1000
                llm_logger.api_call_error(endpoint, model, duration_ms, None, str(e), attempt)
                await self.circuit_breaker.record_failure()
                last = _Response(None, error=f"Connection error: {e}", duration_ms=duration_ms)
            else:
                duration_ms = (time.monotonic() - attempt_start) * 1000
                status = response.status_code

                if status < 400:
                    llm_logger.response_body(endpoint, response.text, duration_ms)
                    try:
                        data = response.json()
                    except ValueError:
                        data = None
                    if not isinstance(data, dict):
                        # Usually an HTML page from a proxy or a wrong base URL
                        llm_logger.api_call_error(
                            endpoint, model, duration_ms, status, "Invalid JSON response", attempt
                        )
                        await self.circuit_breaker.record_failure()
                        return _Response(None, "Invalid JSON response", status, duration_ms)
                    await self.circuit_breaker.record_success()
                    return _Response(
                        data,
                        status_code=status,
                        duration_ms=(time.monotonic() - start_time) * 1000,
                    )

                if status == 429:
                    header = response.headers.get("retry-after")
                    try:
                        retry_after = float(header) if header else None
                    except ValueError:
                        retry_after = None
                    llm_logger.rate_limit(endpoint, retry_after)
                    await self.circuit_breaker.record_failure()
                    last = _Response(None, "Rate limit exceeded", status, duration_ms)
                elif status in (401, 403):
                    llm_logger.auth_failure(status, self._api_key)
                    await self.circuit_breaker.record_failure()
                    return _Response(None, f"Authentication failed ({status})", status, duration_ms)
                elif status >= 500:
                    llm_logger.api_call_error(
                        endpoint, model, duration_ms, status, f"Server error ({status})", attempt
                    )
                    await self.circuit_breaker.record_failure()
                    last = _Response(None, f"Server error ({status})", status, duration_ms)
                else:
                    llm_logger.api_call_error(
                        endpoint, model, duration_ms, status, response.text, attempt
                    )
                    return _Response(None, f"Client error ({status})", status, duration_ms)

            if attempt < self._max_retries - 1:
                if retry_after is not None and retry_after > MAX_RETRY_AFTER_SECONDS:
                    break
                delay = retry_after if retry_after is not None else self._retry_delay * (2**attempt)
                await asyncio.sleep(delay)

        last.duration_ms = (time.monotonic() - start_time) * 1000
        return last

    async def chat(
        self,
        messages: list[dict[str, str]],
        temperature: float = 0.2,
        max_tokens: int = 700,
        model: str | None = None,
    ) -> ChatCompletionResult:
        model = model or self.model
        response = await self._post(
            CHAT_ENDPOINT,
            {
                "model": model,
                "messages": messages,
                "temperature": temperature,
                "max_tokens": max_tokens,
            },
        )
        if response.data is None:
            return ChatCompletionResult(
                success=False,
                model=model,
                error=response.error,
                status_code=response.status_code,
                duration_ms=response.duration_ms,
            )

        choices = response.data.get("choices") or [{}]
        message = choices[0].get("message") or {}
        usage = response.data.get("usage") or {}
        llm_logger.api_call_success(
            CHAT_ENDPOINT,
            model,
            response.duration_ms,
            usage.get("prompt_tokens"),
            usage.get("completion_tokens"),
        )
        return ChatCompletionResult(
            success=True,
            text=(message.get("content") or "").strip(),
            model=response.data.get("model", model),
            finish_reason=choices[0].get("finish_reason"),
            prompt_tokens=usage.get("prompt_tokens"),
            completion_tokens=usage.get("completion_tokens"),
            status_code=response.status_code,
            duration_ms=response.duration_ms,
        )

    async def embed(self, texts: list[str], model: str | None = None) -> EmbeddingResult:
        model = model or self.embedding_model
        if not texts:
            return EmbeddingResult(success=True, model=model)

        response = await self._post(EMBEDDINGS_ENDPOINT, {"model": model, "input": texts})
        if response.data is None:
            return EmbeddingResult(
                success=False,
                model=model,
                error=response.error,
                status_code=response.status_code,
                duration_ms=response.duration_ms,
            )

        rows = sorted(response.data.get("data") or [], key=lambda row: row.get("index", 0))
        usage = response.data.get("usage") or {}
        llm_logger.api_call_success(
            EMBEDDINGS_ENDPOINT, model, response.duration_ms, usage.get("prompt_tokens")
        )
        return EmbeddingResult(
            success=True,
            vectors=[list(row.get("embedding") or []) for row in rows],
            model=model,
            prompt_tokens=usage.get("prompt_tokens"),
            status_code=response.status_code,
            duration_ms=response.duration_ms,
        )


_llm_client: LLMClient | None = None


def get_llm_client() -> LLMClient:
    """Get or create the global LLM client."""
    global _llm_client
    if _llm_client is None:
        _llm_client = LLMClient()
        if _llm_client.available:
            logger.info("LLM client initialized", extra={"model": _llm_client.model})
        else:
            logger.info("LLM not configured (missing API key), using fallbacks")
    return _llm_client


async def close_llm_client() -> None:
    global _llm_client
    if _llm_client is not None:
        await _llm_client.close()
        _llm_client = None
