"""Retry strategies for upstream booking calls."""

import logging
from typing import Any, Awaitable, Callable, Optional

from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from ..constants import Retries
from .exceptions import NetworkError, UpstreamRejectedError

logger = logging.getLogger(__name__)


def is_retryable_submission_error(exc: BaseException, retry_on_rejection: bool = True) -> bool:
    """
    Decide whether a failed submission attempt may be retried.

    Args:
        exc: Exception raised by the attempt
        retry_on_rejection: Retry upstream rejections of any status, not only 5xx

    Returns:
        True if another attempt is allowed
    """
    if isinstance(exc, NetworkError):
        return True
    if isinstance(exc, UpstreamRejectedError):
        return retry_on_rejection or exc.status >= 500
    return False


def get_booking_submit_retry(
    max_attempts: int = Retries.MAX_PROXY_BOOKING,
    initial_delay: float = Retries.BACKOFF_INITIAL_SECONDS,
    retry_on_rejection: bool = True,
    sleep: Optional[Callable[[float], Awaitable[Any]]] = None,
):
    """
    Get retry strategy for the proxy booking submission.

    Delays start at ``initial_delay`` and double on each attempt
    (300ms, 600ms, ... with the defaults).

    Args:
        max_attempts: Total number of attempts, first one included
        initial_delay: Delay in seconds after the first failed attempt
        retry_on_rejection: Also retry non-5xx upstream rejections
        sleep: Optional awaitable sleep function (tests inject a recorder)

    Returns:
        Retry decorator configured for booking submissions
    """
    options = {
        "stop": stop_after_attempt(max_attempts),
        "wait": wait_exponential(multiplier=initial_delay, exp_base=Retries.BACKOFF_MULTIPLIER),
        "retry": retry_if_exception(
            lambda exc: is_retryable_submission_error(exc, retry_on_rejection)
        ),
        "before_sleep": before_sleep_log(logger, logging.WARNING),
        "reraise": True,
    }
    if sleep is not None:
        options["sleep"] = sleep
    return retry(**options)
