"""
Test suite for BackoffPolicy.

Tests retry classification, exponential delays and attempt bounds using a
recording sleep so no test waits in real time.

System role: Verification of the retry policy
"""

from unittest.mock import AsyncMock

import pytest

from menechat.core.backoff import BackoffPolicy, is_retryable
from menechat.core.exceptions import (
    ApiError,
    NetworkError,
    PersistenceError,
    ValidationError,
)


class TestIsRetryable:
    """Test suite for failure classification."""

    @pytest.mark.parametrize("status", [429, 500, 502, 503])
    def test_rate_limit_and_server_errors_are_retryable(self, status: int) -> None:
        assert is_retryable(ApiError("boom", status=status))

    @pytest.mark.parametrize("status", [400, 401, 403, 404])
    def test_client_errors_are_not_retryable(self, status: int) -> None:
        assert not is_retryable(ApiError("bad", status=status))

    def test_network_error_is_retryable(self) -> None:
        assert is_retryable(NetworkError("connection reset"))

    def test_other_errors_are_not_retryable(self) -> None:
        assert not is_retryable(ValidationError("empty"))
        assert not is_retryable(PersistenceError("disk full"))
        assert not is_retryable(RuntimeError("bug"))


class TestBackoffPolicyRun:
    """Test suite for BackoffPolicy.run()."""

    @pytest.mark.asyncio
    async def test_run_should_return_first_success_without_sleeping(
        self, fast_backoff: BackoffPolicy, recording_sleep
    ) -> None:
        # Arrange
        operation = AsyncMock(return_value="ok")

        # Act
        result = await fast_backoff.run(operation)

        # Assert
        assert result == "ok"
        assert operation.await_count == 1
        assert recording_sleep.delays == []

    @pytest.mark.asyncio
    async def test_run_should_retry_rate_limited_call_until_success(
        self, fast_backoff: BackoffPolicy, recording_sleep
    ) -> None:
        """Four 429s then success: five calls, four growing sleeps."""
        # Arrange
        operation = AsyncMock(
            side_effect=[ApiError("rate limited", status=429)] * 4 + ["finally"]
        )

        # Act
        result = await fast_backoff.run(operation)

        # Assert
        assert result == "finally"
        assert operation.await_count == 5
        assert recording_sleep.delays == [1.0, 2.0, 4.0, 8.0]

    @pytest.mark.asyncio
    async def test_run_should_await_and_retry_lambda_wrapped_coroutine(
        self, fast_backoff: BackoffPolicy, recording_sleep
    ) -> None:
        """Call sites pass `lambda: client.complete(...)`, a plain function returning a coroutine."""
        # Arrange
        calls = []

        async def complete(text: str) -> str:
            calls.append(text)
            if len(calls) < 5:
                raise ApiError("rate limited", status=429)
            return f"reply to {text}"

        # Act
        result = await fast_backoff.run(lambda: complete("Hello"))

        # Assert
        assert result == "reply to Hello"
        assert calls == ["Hello"] * 5
        assert recording_sleep.delays == [1.0, 2.0, 4.0, 8.0]

    @pytest.mark.asyncio
    async def test_run_should_add_bounded_jitter(self, recording_sleep) -> None:
        # Arrange
        policy = BackoffPolicy(max_attempts=4, base_delay=0.5, max_jitter=0.25, sleep=recording_sleep)
        operation = AsyncMock(side_effect=[NetworkError("down")] * 3 + [1])

        # Act
        await policy.run(operation)

        # Assert
        for n, delay in enumerate(recording_sleep.delays):
            base = 0.5 * 2**n
            assert base <= delay <= base + 0.25

    @pytest.mark.asyncio
    async def test_run_should_reraise_last_error_after_max_attempts(
        self, fast_backoff: BackoffPolicy, recording_sleep
    ) -> None:
        # Arrange
        operation = AsyncMock(side_effect=ApiError("unavailable", status=503))

        # Act / Assert
        with pytest.raises(ApiError) as exc_info:
            await fast_backoff.run(operation)

        assert exc_info.value.status == 503
        assert operation.await_count == 5
        assert len(recording_sleep.delays) == 4

    @pytest.mark.asyncio
    async def test_run_should_fail_fast_on_non_retryable_error(
        self, fast_backoff: BackoffPolicy, recording_sleep
    ) -> None:
        # Arrange
        operation = AsyncMock(side_effect=ApiError("bad request", status=400))

        # Act / Assert
        with pytest.raises(ApiError):
            await fast_backoff.run(operation)

        assert operation.await_count == 1
        assert recording_sleep.delays == []


class TestBackoffPolicyInit:
    """Test suite for BackoffPolicy construction."""

    def test_init_should_reject_zero_attempts(self) -> None:
        with pytest.raises(ValueError):
            BackoffPolicy(max_attempts=0)

    @pytest.mark.asyncio
    async def test_single_attempt_policy_never_retries(self, recording_sleep) -> None:
        policy = BackoffPolicy(max_attempts=1, sleep=recording_sleep)
        operation = AsyncMock(side_effect=NetworkError("down"))

        with pytest.raises(NetworkError):
            await policy.run(operation)

        assert operation.await_count == 1
