"""Unified constants and configuration values for Court Autobook.

All classes can be imported directly from this package:
    from autobook.constants import Timeouts, Retries, BookingDefaults
"""

from .booking import BookingDefaults, PollStatus, UpstreamDefaults
from .resilience import RateLimits, Retries
from .timing import Intervals, Timeouts

__all__ = [
    "BookingDefaults",
    "Intervals",
    "PollStatus",
    "RateLimits",
    "Retries",
    "Timeouts",
    "UpstreamDefaults",
]
