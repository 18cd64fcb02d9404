"""Outbound integrations: LLM, SMTP and S3-compatible storage."""

from portfolio.integrations.email import EmailClient, EmailResult, get_email_client
from portfolio.integrations.llm import (
    ChatCompletionResult,
    EmbeddingResult,
    LLMClient,
    close_llm_client,
    get_llm_client,
)
from portfolio.integrations.storage import StorageClient, StorageResult, get_storage_client

__all__ = [
    "ChatCompletionResult",
    "EmailClient",
    "EmailResult",
    "EmbeddingResult",
    "LLMClient",
    "StorageClient",
    "StorageResult",
    "close_llm_client",
    "get_email_client",
    "get_llm_client",
    "get_storage_client",
]
