"""S3-compatible media storage client.

Features:
- boto3 client (works with AWS, R2, MinIO via s3_endpoint_url)
- Blocking boto3 calls run in the default executor
- Circuit breaker and retries with exponential backoff
- Returns StorageResult; transport failures are reported, not raised

ERROR LOGGING REQUIREMENTS:
- Log every operation with key, timing and retry attempt
- Auth and permission errors at ERROR and not retried
- Never log access keys
"""

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from portfolio.core.circuit_breaker import CircuitBreaker, CircuitBreakerConfig
from portfolio.core.config import get_settings
from portfolio.core.logging import get_logger

logger = get_logger(__name__)

# S3 error codes that retrying cannot fix
_PERMANENT_ERROR_CODES = frozenset(
    {"AccessDenied", "InvalidAccessKeyId", "SignatureDoesNotMatch", "NoSuchBucket"}
)


@dataclass
class StorageResult:
    success: bool
    key: str
    error: str | None = None
    duration_ms: float = 0.0
    retry_attempt: int = 0


class StorageClient:
    """Put and delete media objects in one bucket."""

    def __init__(self) -> None:
        settings = get_settings()
        self.bucket = settings.s3_bucket
        self._endpoint_url = settings.s3_endpoint_url
        self._access_key = settings.s3_access_key
        self._secret_key = settings.s3_secret_key
        self._region = settings.s3_region
        self._timeout = settings.s3_timeout
        self._max_retries = settings.s3_max_retries
        self._retry_delay = settings.s3_retry_delay
        self._public_base_url = settings.s3_public_base_url
        self.circuit_breaker = CircuitBreaker(
            CircuitBreakerConfig(
                failure_threshold=settings.s3_circuit_failure_threshold,
                recovery_timeout=settings.s3_circuit_recovery_timeout,
            ),
            name="s3",
        )
        self._client: Any = None

    @property
    def available(self) -> bool:
        return bool(self.bucket and self._access_key and self._secret_key)

    def _get_client(self) -> Any:
        if self._client is None:
            kwargs: dict[str, Any] = {
                "service_name": "s3",
                "aws_access_key_id": self._access_key,
                "aws_secret_access_key": self._secret_key,
                "region_name": self._region,
                # Retries are handled in _run
                "config": BotoConfig(
                    connect_timeout=self._timeout,
                    read_timeout=self._timeout,
                    retries={"max_attempts": 0},
                ),
            }
            if self._endpoint_url:
                kwargs["endpoint_url"] = self._endpoint_url
            self._client = boto3.client(**kwargs)
        return self._client

    def public_url(self, key: str) -> str:
        """URL the public site uses to fetch `key`."""
        key = key.lstrip("/")
        if self._public_base_url:
            return f"{self._public_base_url.rstrip('/')}/{key}"
        if self._endpoint_url:
            return f"{self._endpoint_url.rstrip('/')}/{self.bucket}/{key}"
        return f"https://{self.bucket}.s3.{self._region}.amazonaws.com/{key}"

    async def _run(self, operation: str, key: str, func: Callable[[], Any]) -> StorageResult:
        if not self.available:
            return StorageResult(False, key, error="Storage not configured")
        if not await self.circuit_breaker.can_execute():
            logger.warning(
                f"S3 {operation} blocked by circuit breaker",
                extra={"s3_operation": operation, "s3_key": key},
            )
            return StorageResult(False, key, error="Circuit breaker is open")

        start_time = time.monotonic()
        error = f"{operation} failed after all retries"
        loop = asyncio.get_running_loop()

        for attempt in range(self._max_retries):
            try:
                await loop.run_in_executor(None, func)
            except ClientError as e:
                code = e.response.get("Error", {}).get("Code", "Unknown")
                await self.circuit_breaker.record_failure()
                error = f"{code}: {e}"
                permanent = code in _PERMANENT_ERROR_CODES
                logger.log(
                    logging.ERROR if permanent else logging.WARNING,
                    f"S3 {operation} failed",
                    extra={
                        "s3_operation": operation,
                        "s3_key": key,
                        "error_code": code,
                        "retry_attempt": attempt,
                    },
                )
                if permanent:
                    break
            except BotoCoreError as e:
                await self.circuit_breaker.record_failure()
                error = f"{type(e).__name__}: {e}"
                logger.warning(
                    f"S3 {operation} transport error",
                    extra={
                        "s3_operation": operation,
                        "s3_key": key,
                        "error_type": type(e).__name__,
                        "retry_attempt": attempt,
                    },
                )
            else:
                await self.circuit_breaker.record_success()
                duration_ms = (time.monotonic() - start_time) * 1000
                logger.info(
                    f"S3 {operation} completed",
                    extra={
                        "s3_operation": operation,
                        "s3_key": key,
                        "duration_ms": round(duration_ms, 2),
                        "retry_attempt": attempt,
                    },
                )
                return StorageResult(True, key, duration_ms=duration_ms, retry_attempt=attempt)

            if attempt < self._max_retries - 1:
                await asyncio.sleep(self._retry_delay * (2**attempt))

        return StorageResult(
            False,
            key,
            error=error,
            duration_ms=(time.monotonic() - start_time) * 1000,
            retry_attempt=attempt,
        )

    async def put_object(self, key: str, body: bytes, content_type: str) -> StorageResult:
        client = self._get_client()

        def put() -> None:
            client.put_object(Bucket=self.bucket, Key=key, Body=body, ContentType=content_type)

        return await self._run("put_object", key, put)

    async def delete_object(self, key: str) -> StorageResult:
        client = self._get_client()

        def delete() -> None:
            client.delete_object(Bucket=self.bucket, Key=key)

        return await self._run("delete_object", key, delete)


_storage_client: StorageClient | None = None


def get_storage_client() -> StorageClient:
    """Get or create the global storage client."""
    global _storage_client
    if _storage_client is None:
        _storage_client = StorageClient()
    return _storage_client
