"""Circuit breaker shared by the outbound clients (LLM, SMTP, S3).

A breaker opens after `failure_threshold` consecutive failures and rejects
calls until `recovery_timeout` seconds have passed. The next call is let
through as a trial call: success closes the breaker, failure reopens it.
"""

import asyncio
import time
from dataclasses import dataclass
from enum import Enum

from portfolio.core.logging import get_logger

logger = get_logger(__name__)


class CircuitState(Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


@dataclass
class CircuitBreakerConfig:
    failure_threshold: int
    recovery_timeout: float


class CircuitBreaker:
    """Async-safe breaker guarding one outbound dependency."""

    def __init__(self, config: CircuitBreakerConfig, name: str = "default") -> None:
        self.config = config
        self.name = name
        self.state = CircuitState.CLOSED
        self.failure_count = 0
        self._opened_at: float | None = None
        self._lock = asyncio.Lock()

    @property
    def is_open(self) -> bool:
        return self.state == CircuitState.OPEN

    def _transition(self, new_state: CircuitState) -> None:
        if new_state == self.state:
            return
        level = "warning" if new_state == CircuitState.OPEN else "info"
        getattr(logger, level)(
            f"Circuit {self.name} {self.state.value} -> {new_state.value}",
            extra={
                "circuit_name": self.name,
                "previous_state": self.state.value,
                "new_state": new_state.value,
                "failure_count": self.failure_count,
                "recovery_timeout": self.config.recovery_timeout,
            },
        )
        self.state = new_state

    async def can_execute(self) -> bool:
        """Return True when a call may go through right now."""
        async with self._lock:
            if self.state != CircuitState.OPEN:
                return True
            elapsed = time.monotonic() - (self._opened_at or 0.0)
            if elapsed >= self.config.recovery_timeout:
                self._transition(CircuitState.HALF_OPEN)
                return True
            return False

    async def record_success(self) -> None:
        async with self._lock:
            self.failure_count = 0
            self._opened_at = None
            self._transition(CircuitState.CLOSED)

    async def record_failure(self) -> None:
        async with self._lock:
            self.failure_count += 1
            if (
                self.state == CircuitState.HALF_OPEN
                or self.failure_count >= self.config.failure_threshold
            ):
                self._opened_at = time.monotonic()
                self._transition(CircuitState.OPEN)
