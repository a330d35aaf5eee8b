"""
Bounded retry with multiplicative backoff.

``run_with_retry`` re-invokes a zero-argument coroutine function until it
succeeds, the failure is not retryable, or ``max_retries`` retries have been
spent. The retry decision itself is the pure function ``is_retryable``.

Delay before retry k (k >= 1) is ``initial_delay_ms * delay_multiplier**(k-1)``,
rounded to whole milliseconds at every step.

Usage:
    policy = RetryPolicy(max_retries=3, initial_delay_ms=200, delay_multiplier=2)
    response = await run_with_retry(lambda: client.get(url), policy)
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Optional, TypeVar

from .exceptions import HTTPChainError
from .models.config import RetryPolicy
from .observability.logging import HttpchainLoggerAdapter, get_httpchain_logger, log_retry

__all__ = [
    "RETRYABLE_MESSAGE_MARKERS",
    "is_retryable",
    "run_with_retry",
]

T = TypeVar("T")

# Lower-case fragments marking a transient send/connection failure.
RETRYABLE_MESSAGE_MARKERS = ("failed to send", "connection", "network")


def _has_retryable_marker(text: str) -> bool:
    lowered = text.lower()
    return any(marker in lowered for marker in RETRYABLE_MESSAGE_MARKERS)


def is_retryable(error: BaseException) -> bool:
    """
    Whether a failure is likely transient.

    HTTPChainError with a status code: retryable only for 5xx.
    HTTPChainError without one: retryable if its message names a send,
    connection or network failure. Anything else: same test on ``str(error)``.
    """
    if isinstance(error, HTTPChainError):
        if error.status_code is not None:
            return 500 <= error.status_code < 600
        return _has_retryable_marker(error.message)
    return _has_retryable_marker(str(error))


def _terminal_error(message: str, last: BaseException) -> HTTPChainError:
    if isinstance(last, HTTPChainError):
        return HTTPChainError(message=message, status_code=last.status_code, cause=last, url=last.url)
    return HTTPChainError(message=message, cause=last)


async def run_with_retry(
    operation: Callable[[], Awaitable[T]],
    policy: Optional[RetryPolicy] = None,
    *,
    logger: Optional[HttpchainLoggerAdapter] = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """
    Run ``operation`` with retries.

    Args:
        operation: Zero-argument callable returning an awaitable
        policy: Retry configuration (defaults to ``RetryPolicy()``)
        logger: Optional logger for retry events
        sleep: Awaitable sleep taking seconds

    Returns:
        The first successful result

    Raises:
        HTTPChainError: "Request failed after N retries" once retries are
            exhausted, or "Request failed and is not retryable" for terminal
            failures. Both carry the last failure as cause and its status code.
    """
    policy = policy or RetryPolicy()
    logger = logger or get_httpchain_logger(__name__)
    attempt = 0
    delay_ms = policy.initial_delay_ms

    while True:
        try:
            return await operation()
        except Exception as exc:
            attempt += 1

            if attempt > policy.max_retries:
                logger.error(
                    "retry.exhausted",
                    attempts=attempt,
                    max_retries=policy.max_retries,
                    error_type=exc.__class__.__name__,
                    error_message=str(exc),
                )
                raise _terminal_error(
                    f"Request failed after {policy.max_retries} retries: {exc}", exc
                ) from exc

            if not is_retryable(exc):
                logger.info(
                    "retry.not_retryable",
                    attempts=attempt,
                    error_type=exc.__class__.__name__,
                    error_message=str(exc),
                )
                raise _terminal_error(
                    f"Request failed and is not retryable: {exc}", exc
                ) from exc

            log_retry(
                logger,
                attempt=attempt,
                max_retries=policy.max_retries,
                delay_ms=delay_ms,
                reason=_retry_reason(exc),
            )
            await sleep(delay_ms / 1000)
            delay_ms = round(delay_ms * policy.delay_multiplier)


def _retry_reason(error: BaseException) -> str:
    status_code = getattr(error, "status_code", None)
    if status_code is not None:
        return f"server_error_{status_code}"
    return "network_error"
