"""Tests for retry strategies."""

from unittest.mock import AsyncMock

import pytest

from autobook.core.exceptions import (
    MissingTokenError,
    NetworkError,
    UpstreamRejectedError,
    ValidationError,
)
from autobook.core.retry import get_booking_submit_retry, is_retryable_submission_error


@pytest.mark.parametrize(
    "exc, retry_on_rejection, expected",
    [
        (NetworkError("timeout"), True, True),
        (NetworkError("timeout"), False, True),
        (UpstreamRejectedError(409), True, True),
        (UpstreamRejectedError(409), False, False),
        (UpstreamRejectedError(503), False, True),
        (ValidationError("bad"), True, False),
        (MissingTokenError(), True, False),
        (RuntimeError("boom"), True, False),
    ],
)
def test_is_retryable_submission_error(exc, retry_on_rejection, expected):
    """Network failures always retry; rejections depend on the mode."""
    assert is_retryable_submission_error(exc, retry_on_rejection) is expected


def test_get_booking_submit_retry():
    """Test booking retry decorator can be created."""
    retry_decorator = get_booking_submit_retry()
    assert retry_decorator is not None


@pytest.mark.asyncio
async def test_booking_retry_application():
    """The decorator retries until success and sleeps between attempts."""
    sleep = AsyncMock()
    attempt_count = [0]

    @get_booking_submit_retry(max_attempts=3, initial_delay=0.1, sleep=sleep)
    async def flaky():
        attempt_count[0] += 1
        if attempt_count[0] < 3:
            raise NetworkError("Temporary failure")
        return "success"

    result = await flaky()

    assert result == "success"
    assert attempt_count[0] == 3
    assert [c.args[0] for c in sleep.await_args_list] == pytest.approx([0.1, 0.2])


@pytest.mark.asyncio
async def test_booking_retry_reraises_last_error():
    """Exhausted retries re-raise the original exception."""

    @get_booking_submit_retry(max_attempts=2, initial_delay=0, sleep=AsyncMock())
    async def always_fails():
        raise UpstreamRejectedError(502, "bad gateway")

    with pytest.raises(UpstreamRejectedError) as exc_info:
        await always_fails()

    assert exc_info.value.status == 502


@pytest.mark.asyncio
async def test_booking_retry_does_not_retry_validation_errors():
    """Non-retryable errors propagate after one attempt."""
    attempt_count = [0]

    @get_booking_submit_retry(sleep=AsyncMock())
    async def invalid():
        attempt_count[0] += 1
        raise ValidationError("bad payload")

    with pytest.raises(ValidationError):
        await invalid()

    assert attempt_count[0] == 1
