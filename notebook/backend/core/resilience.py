"""
Resilience Infrastructure.

Wraps event handlers in the resilience stack, outside-in:
    Circuit Breaker (aiobreaker) → Retry (tenacity) → Timeout → Call

Every layer is configured per consumer in events.yaml and logs
structured resilience events (filter on the resilience_event field).

Usage:
    from notebook.backend.core.resilience import with_resilience

    @with_resilience("scope-maintenance", consumer_config)
    async def apply(action):
        return await action()
"""

import asyncio
import functools
from collections.abc import Awaitable, Callable
from datetime import timedelta
from typing import Any, TypeVar

import aiobreaker
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from notebook.backend.core.config_schema import ConsumerConfigSchema
from notebook.backend.core.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

RETRYABLE_ERRORS = (ConnectionError, TimeoutError)

_STATE_EVENTS = {
    "open": "circuit_breaker_opened",
    "half_open": "circuit_breaker_half_open",
    "closed": "circuit_breaker_closed",
}


def _state_name(state: Any) -> str:
    state = getattr(state, "state", state)
    return str(getattr(state, "name", state)).lower().replace("-", "_")


class ResilienceLogger(aiobreaker.CircuitBreakerListener):
    """Logs breaker transitions and recorded failures for one dependency."""

    def __init__(self, dependency: str) -> None:
        self.dependency = dependency

    def state_change(self, cb: aiobreaker.CircuitBreaker, old_state: Any, new_state: Any) -> None:
        old, new = _state_name(old_state), _state_name(new_state)
        log = logger.error if new == "open" else logger.info
        log(
            f"Circuit breaker {self.dependency}: {old} -> {new}",
            extra={
                "resilience_event": _STATE_EVENTS.get(new, f"circuit_breaker_{new}"),
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
    """tenacity before_sleep hook: one warning per retried attempt."""
    duration_ms = None
    if retry_state.outcome_timestamp and retry_state.start_time:
        duration_ms = round((retry_state.outcome_timestamp - retry_state.start_time) * 1000)

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
    """
    Create a logged circuit breaker.

    Args:
        dependency: Name used in resilience log records
        fail_max: Consecutive failures before the breaker opens
        timeout_duration: Seconds before an open breaker lets a trial call through
    """
    return aiobreaker.CircuitBreaker(
        fail_max=fail_max,
        timeout_duration=timedelta(seconds=timeout_duration),
        listeners=[ResilienceLogger(dependency)],
    )


def with_resilience(
    dependency: str,
    config: ConsumerConfigSchema,
) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
    """
    Decorate a coroutine function with breaker, retry and timeout.

    Only RETRYABLE_ERRORS are retried; anything else fails at once and
    counts against the breaker. The last error is re-raised.
    """
    breaker = create_circuit_breaker(
        dependency,
        fail_max=config.circuit_breaker.fail_max,
        timeout_duration=config.circuit_breaker.timeout_duration,
    )

    def decorate(fn: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @functools.wraps(fn)
        async def timed(*args: Any, **kwargs: Any) -> T:
            async with asyncio.timeout(config.processing_timeout):
                return await fn(*args, **kwargs)

        retried = retry(
            stop=stop_after_attempt(config.retry.max_attempts),
            wait=wait_exponential(
                multiplier=config.retry.backoff_multiplier,
                min=1,
                max=config.retry.backoff_max,
            ),
            retry=retry_if_exception_type(RETRYABLE_ERRORS),
            before_sleep=log_retry,
            reraise=True,
        )(timed)
        return breaker(retried)

    return decorate
