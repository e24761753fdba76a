"""
Bounded exponential-backoff retry for async operations.

Retries only transient failures (HTTP 429, HTTP 5xx, transport errors).
Anything else propagates on the first attempt.

Dependencies: tenacity
System role: Retry policy for idempotent reads and the completion fetch
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
    wait_random,
)

from menechat.core.exceptions import ApiError, NetworkError

logger = logging.getLogger(__name__)

T = TypeVar("T")

RETRYABLE_STATUS = 429


def is_retryable(exc: BaseException) -> bool:
    """
    Decide whether a failure is worth retrying.

    Args:
        exc: Raised exception

    Returns:
        bool: True for rate limiting, server errors and transport failures
    """
    if isinstance(exc, NetworkError):
        return True
    if isinstance(exc, ApiError):
        return exc.status == RETRYABLE_STATUS or exc.status >= 500
    return False


class BackoffPolicy:
    """
    Wraps a fallible async operation with bounded exponential backoff.

    The delay before retry n (0-based) is base_delay * 2**n plus a uniform
    jitter in [0, max_jitter] seconds.
    """

    def __init__(
        self,
        max_attempts: int = 5,
        base_delay: float = 1.0,
        max_jitter: float = 1.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """
        Initialize backoff policy.

        Args:
            max_attempts: Total attempts including the first call
            base_delay: Delay before the first retry, in seconds
            max_jitter: Upper bound of the random jitter added to each delay
            sleep: Awaitable sleep function (injectable for tests)
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.max_jitter = max_jitter
        self._sleep = sleep

    def _log_retry(self, retry_state: RetryCallState) -> None:
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        logger.warning(
            f"{__name__}:run - Retry {retry_state.attempt_number}/{self.max_attempts} "
            f"after {type(exc).__name__}",
            extra={
                "attempt": retry_state.attempt_number,
                "error_msg": str(exc),
                "sleep_seconds": round(retry_state.upcoming_sleep, 3),
            },
        )

    def _retrying(self) -> AsyncRetrying:
        return AsyncRetrying(
            retry=retry_if_exception(is_retryable),
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=self.base_delay, exp_base=2)
            + wait_random(0, self.max_jitter),
            before_sleep=self._log_retry,
            sleep=self._sleep,
            reraise=True,
        )

    async def run(self, operation: Callable[[], Awaitable[T]]) -> T:
        """
        Invoke operation, retrying transient failures.

        Args:
            operation: Zero-argument coroutine function

        Returns:
            The operation's result

        Raises:
            Exception: The first non-retryable failure, or the last failure
                once attempts are exhausted
        """
        async for attempt in self._retrying():
            with attempt:
                return await operation()
        raise AssertionError("unreachable: tenacity re-raises the last failure")
