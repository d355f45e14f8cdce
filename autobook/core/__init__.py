"""Core infrastructure module."""

from .exceptions import (
    AutobookError,
    ConfigurationError,
    MissingTokenError,
    NetworkError,
    UpstreamRejectedError,
    ValidationError,
)
from .logger import setup_structured_logging
from .retry import get_booking_submit_retry, is_retryable_submission_error

__all__ = [
    "AutobookError",
    "ConfigurationError",
    "MissingTokenError",
    "NetworkError",
    "UpstreamRejectedError",
    "ValidationError",
    "setup_structured_logging",
    "get_booking_submit_retry",
    "is_retryable_submission_error",
]
