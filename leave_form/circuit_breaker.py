"""
Circuit breaker pattern for calls to the leave-management API.
Fails fast while the backend is down instead of piling up requests.
"""

import logging
import time
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)


class CircuitBreakerOpenError(RuntimeError):
    """Raised when circuit breaker blocks execution."""


class CircuitState(Enum):
    """Circuit breaker states."""

    CLOSED = "closed"  # Normal operation
    OPEN = "open"  # Blocking requests
    HALF_OPEN = "half_open"  # Testing recovery


class CircuitBreaker:
    """
    Async circuit breaker.

    States:
    - CLOSED: Requests pass through normally
    - OPEN: All requests fail immediately (service is down)
    - HALF_OPEN: Allow one test request to check if service recovered

    Transitions:
    - CLOSED -> OPEN: After failure_threshold consecutive tracked failures
    - OPEN -> HALF_OPEN: After timeout seconds
    - HALF_OPEN -> CLOSED: If test request succeeds
    - HALF_OPEN -> OPEN: If test request fails

    Only exceptions listed in tracked_exceptions count as failures. Anything
    else (e.g. a 4xx rejection of a bad request) propagates without touching
    the counter.
    """

    def __init__(
        self,
        failure_threshold: int = 5,
        timeout: int = 60,
        name: str = "CircuitBreaker",
        tracked_exceptions: tuple[type[BaseException], ...] = (Exception,),
    ):
        """
        Initialize circuit breaker.

        Args:
            failure_threshold: Number of failures before opening circuit
            timeout: Seconds to wait before attempting recovery
            name: Name for logging
            tracked_exceptions: Exception types that count as failures
        """
        self.failure_threshold = failure_threshold
        self.timeout = timeout
        self.name = name
        self.tracked_exceptions = tracked_exceptions

        self.failure_count = 0
        self.state = CircuitState.CLOSED
        self.last_failure_time = None

        logger.info(
            f"CircuitBreaker '{name}' initialized: "
            f"threshold={failure_threshold}, timeout={timeout}s"
        )

    async def call(self, func: Callable[..., Awaitable[Any]], *args, **kwargs) -> Any:
        """
        Await func with circuit breaker protection.

        Raises:
            CircuitBreakerOpenError: If circuit is OPEN
            Exception: Whatever func raises
        """
        if self.state == CircuitState.OPEN:
            if self._should_attempt_reset():
                logger.info(f"CircuitBreaker '{self.name}': OPEN -> HALF_OPEN")
                self.state = CircuitState.HALF_OPEN
            else:
                raise CircuitBreakerOpenError(
                    f"CircuitBreaker '{self.name}' is OPEN. Service unavailable."
                )

        try:
            result = await func(*args, **kwargs)
        except self.tracked_exceptions as e:
            self._record_failure()
            logger.error(
                f"CircuitBreaker '{self.name}' failure "
                f"({self.failure_count}/{self.failure_threshold}): {str(e)}"
            )
            raise

        if self.state == CircuitState.HALF_OPEN:
            logger.info(f"CircuitBreaker '{self.name}': HALF_OPEN -> CLOSED")
        self._reset()
        return result

    def _record_failure(self):
        """Record a failure and potentially open circuit."""
        self.failure_count += 1
        self.last_failure_time = time.time()

        if self.state == CircuitState.HALF_OPEN or self.failure_count >= self.failure_threshold:
            logger.warning(f"CircuitBreaker '{self.name}': Threshold exceeded. -> OPEN")
            self.state = CircuitState.OPEN

    def _should_attempt_reset(self) -> bool:
        """Check if enough time has passed to attempt recovery."""
        if self.last_failure_time is None:
            return True

        elapsed = time.time() - self.last_failure_time
        return elapsed >= self.timeout

    def _reset(self):
        """Reset circuit breaker to normal operation."""
        self.failure_count = 0
        self.state = CircuitState.CLOSED
        self.last_failure_time = None

    def get_state(self) -> dict:
        """Get current circuit breaker state for monitoring."""
        return {
            "name": self.name,
            "state": self.state.value,
            "failure_count": self.failure_count,
            "failure_threshold": self.failure_threshold,
            "last_failure_time": self.last_failure_time,
        }
