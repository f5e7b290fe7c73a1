"""
Tattooed World Backend — Circuit Breaker
==========================================

What:  Guards the external geocoding provider against repeated failed calls.
How:   Counts consecutive provider failures; once the threshold is reached
       every call fails fast with CircuitBreakerOpenError until the recovery
       timeout elapses, after which one probe call is let through.
Who:   Owned by GoogleGeocoder; read by /health and the batch processor.

State Machine:
    CLOSED ──(failure_threshold consecutive failures)──▶ OPEN
    OPEN ──(recovery_timeout elapsed)──▶ HALF_OPEN
    HALF_OPEN ──success──▶ CLOSED
    HALF_OPEN ──failure──▶ OPEN (timer restarts)

Only provider-side failures count (network errors, 5xx, REQUEST_DENIED).
An address with no match (ZERO_RESULTS) is a healthy answer and closes the
circuit like any other success.

Not shared between worker processes: each uvicorn worker keeps its own state.
"""

import logging
import time
from typing import Callable, Optional

from tattooed_world.exceptions import CircuitBreakerOpenError

logger = logging.getLogger(__name__)


class CircuitBreaker:
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"

    def __init__(
        self,
        failure_threshold: int = 5,
        recovery_timeout: int = 60,
        name: str = "geocoder",
        clock: Callable[[], float] = time.monotonic,
    ):
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.name = name
        self._clock = clock
        self.failure_count = 0
        self.state = self.CLOSED
        self.opened_at: Optional[float] = None

    def _seconds_until_probe(self) -> float:
        if self.opened_at is None:
            return 0.0
        return max(0.0, self.recovery_timeout - (self._clock() - self.opened_at))

    @property
    def is_open(self) -> bool:
        """True while calls would be rejected (OPEN and still inside the timeout)."""
        return self.state == self.OPEN and self._seconds_until_probe() > 0

    def can_execute(self) -> bool:
        """
        Returns True when a call may proceed.

        Raises:
            CircuitBreakerOpenError: OPEN and the recovery timeout has not elapsed.
        """
        if self.state != self.OPEN:
            return True

        remaining = self._seconds_until_probe()
        if remaining > 0:
            raise CircuitBreakerOpenError(recovery_time=int(remaining) + 1)

        logger.info("Circuit breaker '%s' transitioning to HALF_OPEN", self.name)
        self.state = self.HALF_OPEN
        return True

    def record_success(self) -> None:
        if self.state != self.CLOSED:
            logger.info("Circuit breaker '%s' transitioning to CLOSED", self.name)
        self.failure_count = 0
        self.state = self.CLOSED
        self.opened_at = None

    def record_failure(self) -> None:
        self.failure_count += 1

        if self.state == self.HALF_OPEN:
            logger.warning("Circuit breaker '%s' re-opening (probe call failed)", self.name)
            self._open()
        elif self.state == self.CLOSED and self.failure_count >= self.failure_threshold:
            logger.warning(
                "Circuit breaker '%s' OPENING after %d consecutive failures",
                self.name,
                self.failure_count,
            )
            self._open()

    def _open(self) -> None:
        self.state = self.OPEN
        self.opened_at = self._clock()

    def reset(self) -> None:
        self.failure_count = 0
        self.state = self.CLOSED
        self.opened_at = None
