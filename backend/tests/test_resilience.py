"""
Tattooed World Backend — Circuit Breaker Tests
================================================

What:  State machine tests for CircuitBreaker with a fake clock.

What we test:
    ✅ Opens after N consecutive failures, rejects while open
    ✅ Half-open after the recovery timeout; success closes, failure re-opens
    ✅ A success resets the failure count
"""

import pytest

from tattooed_world.exceptions import CircuitBreakerOpenError
from tattooed_world.services.resilience import CircuitBreaker


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class TestCircuitBreaker:

    def setup_method(self):
        self.clock = FakeClock()
        self.breaker = CircuitBreaker(failure_threshold=3, recovery_timeout=30, clock=self.clock)

    def _fail(self, times: int) -> None:
        for _ in range(times):
            self.breaker.record_failure()

    def test_starts_closed(self):
        assert self.breaker.state == CircuitBreaker.CLOSED
        assert self.breaker.can_execute() is True

    def test_opens_at_threshold(self):
        self._fail(2)
        assert self.breaker.state == CircuitBreaker.CLOSED

        self._fail(1)

        assert self.breaker.state == CircuitBreaker.OPEN
        assert self.breaker.is_open is True
        with pytest.raises(CircuitBreakerOpenError) as exc_info:
            self.breaker.can_execute()
        assert exc_info.value.recovery_time == 31

    def test_half_open_after_timeout_then_close(self):
        self._fail(3)
        self.clock.now += 30

        assert self.breaker.is_open is False
        assert self.breaker.can_execute() is True
        assert self.breaker.state == CircuitBreaker.HALF_OPEN

        self.breaker.record_success()
        assert self.breaker.state == CircuitBreaker.CLOSED
        assert self.breaker.failure_count == 0

    def test_failed_probe_reopens(self):
        self._fail(3)
        self.clock.now += 31
        self.breaker.can_execute()

        self.breaker.record_failure()

        assert self.breaker.state == CircuitBreaker.OPEN
        with pytest.raises(CircuitBreakerOpenError):
            self.breaker.can_execute()

    def test_success_resets_count(self):
        self._fail(2)
        self.breaker.record_success()
        self._fail(2)

        assert self.breaker.state == CircuitBreaker.CLOSED

    def test_reset(self):
        self._fail(3)
        self.breaker.reset()

        assert self.breaker.state == CircuitBreaker.CLOSED
        assert self.breaker.can_execute() is True
