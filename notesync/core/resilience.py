"""
Resilience Infrastructure.

Circuit breaker listener, retry callback, and the composed call wrapper
used for every remote document store request.

The composed resilience stack is always applied in this order (outside-in):
    Circuit Breaker (aiobreaker) → Retry (tenacity) → Semaphore → Timeout → Call

Usage:
    from notesync.core.resilience import create_circuit_breaker, resilient_call

    breaker = create_circuit_breaker("remote_store")

    result = await resilient_call(
        breaker,
        lambda: client.get(url),
        dependency="remote_store",
        retry_on=(httpx.TransportError,),
    )
"""

import asyncio
from collections.abc import Awaitable, Callable
from datetime import timedelta
from typing import Any, TypeVar

import aiobreaker
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from notesync.core.concurrency import get_semaphore
from notesync.core.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class ResilienceLogger(aiobreaker.CircuitBreakerListener):
    """Circuit breaker listener that emits structured resilience events.

    Every state transition is logged with a standardized set of fields
    so that resilience events can be filtered and aggregated:

        jq 'select(.resilience_event != null)' logs/system.jsonl
    """

    def __init__(self, dependency: str) -> None:
        self.dependency = dependency

    def state_change(self, cb: aiobreaker.CircuitBreaker, old_state: Any, new_state: Any) -> None:
        event_map = {
            "open": "circuit_breaker_opened",
            "half-open": "circuit_breaker_half_open",
            "closed": "circuit_breaker_closed",
        }
        new_str = str(new_state).lower()
        event = event_map.get(new_str, f"circuit_breaker_{new_str}")
        log_level = "error" if new_str == "open" else "info"

        getattr(logger, log_level)(
            f"Circuit breaker {self.dependency}: {old_state} → {new_state}",
            extra={
                "resilience_event": event,
                "dependency": self.dependency,
                "failure_count": cb.fail_counter,
            },
        )

    def failure(self, cb: aiobreaker.CircuitBreaker, exception: Exception) -> None:
        logger.warning(
            f"Circuit breaker {self.dependency}: failure recorded",
            extra={
                "resilience_event": "circuit_breaker_failure",
                "dependency": self.dependency,
                "failure_count": cb.fail_counter,
                "error": str(exception),
            },
        )


def log_retry(retry_state: Any) -> None:
    """Tenacity before_sleep callback that emits structured retry events.

    Pass this as `before_sleep=log_retry` in any retry policy.

    Args:
        retry_state: tenacity.RetryCallState instance
    """
    duration_ms = None
    if retry_state.outcome_timestamp and retry_state.start_time:
        duration_ms = round(
            (retry_state.outcome_timestamp - retry_state.start_time) * 1000
        )

    error = None
    if retry_state.outcome and retry_state.outcome.failed:
        error = str(retry_state.outcome.exception())

    fn_name = getattr(retry_state.fn, "__name__", "unknown")

    logger.warning(
        f"Retrying {fn_name} (attempt {retry_state.attempt_number})",
        extra={
            "resilience_event": "retry_attempt",
            "dependency": fn_name,
            "attempt": retry_state.attempt_number,
            "duration_ms": duration_ms,
            "error": error,
        },
    )


def create_circuit_breaker(
    dependency: str,
    fail_max: int = 5,
    timeout_duration: int = 30,
) -> aiobreaker.CircuitBreaker:
    """Create a circuit breaker with structured logging.

    Args:
        dependency: Name of the external dependency (for logging)
        fail_max: Number of failures before opening
        timeout_duration: Seconds to wait before half-open test

    Returns:
        Configured CircuitBreaker instance
    """
    return aiobreaker.CircuitBreaker(
        fail_max=fail_max,
        timeout_duration=timedelta(seconds=timeout_duration),
        listeners=[ResilienceLogger(dependency)],
    )


async def resilient_call(
    breaker: aiobreaker.CircuitBreaker,
    call: Callable[[], Awaitable[T]],
    *,
    dependency: str,
    retry_on: tuple[type[BaseException], ...],
    max_attempts: int = 3,
    backoff_multiplier: float = 0.5,
    backoff_max: float = 4.0,
    timeout: float | None = None,
) -> T:
    """
    Run one remote call through the full resilience stack.

    Args:
        breaker: Circuit breaker guarding the dependency
        call: Zero-argument factory producing the awaitable for one attempt
        dependency: Semaphore name and log label
        retry_on: Exception types that trigger a retry
        max_attempts: Total attempts including the first
        backoff_multiplier: Exponential backoff multiplier in seconds
        backoff_max: Upper bound on a single backoff wait
        timeout: Per-attempt timeout in seconds, or None for no limit

    Returns:
        Result of the call

    Raises:
        aiobreaker.CircuitBreakerError: If the circuit is open
        Exception: The last error once retries are exhausted
    """

    async def attempt() -> T:
        async with get_semaphore(dependency):
            if timeout is None:
                return await call()
            async with asyncio.timeout(timeout):
                return await call()

    async def with_retry() -> T:
        async for retry_state in AsyncRetrying(
            stop=stop_after_attempt(max_attempts),
            wait=wait_exponential(multiplier=backoff_multiplier, max=backoff_max),
            retry=retry_if_exception_type(retry_on),
            before_sleep=log_retry,
            reraise=True,
        ):
            with retry_state:
                result = await attempt()
        return result

    return await breaker.call_async(with_retry)
