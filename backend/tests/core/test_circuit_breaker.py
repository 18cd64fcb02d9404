"""Tests for the shared CircuitBreaker.

- Initial state is CLOSED (normal operation)
- Opens after failure_threshold failures
- Transitions to HALF_OPEN after recovery_timeout
- Closes on success in HALF_OPEN state
- Reopens on failure in HALF_OPEN state
"""

from unittest.mock import patch

import pytest

from portfolio.core.circuit_breaker import CircuitBreaker, CircuitBreakerConfig, CircuitState


def _breaker(threshold: int = 3, recovery: float = 30.0) -> CircuitBreaker:
    return CircuitBreaker(
        CircuitBreakerConfig(failure_threshold=threshold, recovery_timeout=recovery),
        name="test",
    )


class TestCircuitBreakerInitialState:
    """Test initial state of CircuitBreaker."""

    def test_initial_state_is_closed(self) -> None:
        cb = _breaker()
        assert cb.state == CircuitState.CLOSED
        assert cb.is_open is False
        assert cb.failure_count == 0
        assert cb.name == "test"


class TestCircuitBreakerTransitions:
    """Test the closed, open and half-open cycle."""

    @pytest.mark.asyncio
    async def test_opens_after_reaching_threshold(self) -> None:
        cb = _breaker(threshold=3)

        await cb.record_failure()
        await cb.record_failure()
        assert cb.state == CircuitState.CLOSED

        await cb.record_failure()
        assert cb.is_open is True
        assert await cb.can_execute() is False

    @pytest.mark.asyncio
    async def test_success_resets_failure_count(self) -> None:
        cb = _breaker(threshold=3)
        await cb.record_failure()
        await cb.record_failure()

        await cb.record_success()

        assert cb.failure_count == 0
        assert cb.state == CircuitState.CLOSED

    @pytest.mark.asyncio
    async def test_half_open_after_recovery_timeout(self) -> None:
        cb = _breaker(threshold=1, recovery=30.0)
        with patch("portfolio.core.circuit_breaker.time.monotonic", return_value=100.0):
            await cb.record_failure()
        assert cb.is_open

        with patch("portfolio.core.circuit_breaker.time.monotonic", return_value=129.0):
            assert await cb.can_execute() is False

        with patch("portfolio.core.circuit_breaker.time.monotonic", return_value=130.0):
            assert await cb.can_execute() is True
        assert cb.state == CircuitState.HALF_OPEN

    @pytest.mark.asyncio
    async def test_half_open_success_closes(self) -> None:
        cb = _breaker(threshold=1, recovery=0.0)
        await cb.record_failure()
        assert await cb.can_execute() is True

        await cb.record_success()
        assert cb.state == CircuitState.CLOSED

    @pytest.mark.asyncio
    async def test_half_open_failure_reopens(self) -> None:
        cb = _breaker(threshold=5, recovery=0.0)
        for _ in range(5):
            await cb.record_failure()
        assert await cb.can_execute() is True
        assert cb.state == CircuitState.HALF_OPEN

        await cb.record_failure()
        assert cb.state == CircuitState.OPEN
