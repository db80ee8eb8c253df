"""Circuit breaker for the rewrite endpoint.

When the rewrite service is down, every request waits out its full timeout
and bisection multiplies those requests. The breaker tracks consecutive
failures and, once open, makes calls fail immediately so the pipeline
reaches its heuristic fallback quickly.

States:
  CLOSED    -- normal operation, requests pass through
  OPEN      -- endpoint is down, requests fail immediately
  HALF_OPEN -- cooldown expired, probe requests allowed

All workers run on one event loop and the state changes below contain no
``await``, so no lock is needed.
"""

import logging
import time
from enum import Enum

logger = logging.getLogger("redraft.circuit_breaker")

DEFAULT_FAILURE_THRESHOLD = 3    # consecutive failures before opening
DEFAULT_COOLDOWN_SECONDS = 60    # seconds to wait before half-open probe


class CircuitState(Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitBreakerOpen(Exception):
    """Raised when the circuit is open and requests are blocked."""

    def __init__(self, endpoint: str, retry_after: float):
        self.endpoint = endpoint
        self.retry_after = retry_after
        super().__init__(
            f"Circuit breaker OPEN for '{endpoint}'. "
            f"Retry after {retry_after:.0f}s."
        )


class CircuitBreaker:
    """Per-endpoint circuit breaker."""

    def __init__(
        self,
        endpoint: str,
        failure_threshold: int = DEFAULT_FAILURE_THRESHOLD,
        cooldown_seconds: float = DEFAULT_COOLDOWN_SECONDS,
    ) -> None:
        if failure_threshold < 1:
            raise ValueError("failure_threshold must be >= 1")
        self.endpoint = endpoint
        self._failure_threshold = failure_threshold
        self._cooldown_seconds = cooldown_seconds

        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._last_failure_time = 0.0

    @property
    def state(self) -> CircuitState:
        return self._state

    @property
    def failure_count(self) -> int:
        return self._failure_count

    def check(self) -> None:
        """Check if a request is allowed. Raises CircuitBreakerOpen if not."""
        if self._state == CircuitState.CLOSED:
            return
        if self._state == CircuitState.OPEN:
            elapsed = time.monotonic() - self._last_failure_time
            if elapsed >= self._cooldown_seconds:
                self._state = CircuitState.HALF_OPEN
                logger.info("Circuit %s: OPEN -> HALF_OPEN (cooldown expired)", self.endpoint)
                return
            raise CircuitBreakerOpen(self.endpoint, self._cooldown_seconds - elapsed)
        # HALF_OPEN: let the probe through
        return

    def record_success(self) -> None:
        if self._state == CircuitState.HALF_OPEN:
            logger.info("Circuit %s: HALF_OPEN -> CLOSED", self.endpoint)
        self._state = CircuitState.CLOSED
        self._failure_count = 0

    def record_failure(self) -> None:
        self._failure_count += 1
        self._last_failure_time = time.monotonic()
        if self._state == CircuitState.HALF_OPEN:
            self._state = CircuitState.OPEN
            logger.warning("Circuit %s: HALF_OPEN -> OPEN (probe failed)", self.endpoint)
        elif self._state == CircuitState.CLOSED and self._failure_count >= self._failure_threshold:
            self._state = CircuitState.OPEN
            logger.warning(
                "Circuit %s: CLOSED -> OPEN (%d consecutive failures)",
                self.endpoint, self._failure_count,
            )
