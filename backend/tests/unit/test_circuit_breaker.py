# backend/tests/unit/test_circuit_breaker.py

import pytest
from unittest.mock import AsyncMock

from search_gateway.utils.circuit_breaker import CircuitBreaker, CircuitOpenError, CircuitState


@pytest.mark.asyncio
async def test_opens_after_threshold_and_blocks_calls():
    breaker = CircuitBreaker("redis", failure_threshold=2, timeout=60)
    failing = AsyncMock(side_effect=ConnectionError("down"))

    for _ in range(2):
        with pytest.raises(ConnectionError):
            await breaker.call(failing)

    assert breaker.state == CircuitState.OPEN
    with pytest.raises(CircuitOpenError):
        await breaker.call(failing)
    assert failing.await_count == 2


@pytest.mark.asyncio
async def test_half_open_recovers_after_timeout():
    breaker = CircuitBreaker("redis", failure_threshold=1, timeout=10, success_threshold=1)

    with pytest.raises(ConnectionError):
        await breaker.call(AsyncMock(side_effect=ConnectionError("down")))
    assert breaker.state == CircuitState.OPEN

    breaker.last_failure_time -= 11
    assert await breaker.call(AsyncMock(return_value="ok")) == "ok"
    assert breaker.state == CircuitState.CLOSED
