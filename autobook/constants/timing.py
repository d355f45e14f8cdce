"""Timing-related constants (timeouts, intervals, delays)."""

from typing import Final


class Timeouts:
    """Timeout values in SECONDS."""

    HTTP_REQUEST_SECONDS: Final[int] = 10
    PROXY_REQUEST_SECONDS: Final[int] = 15
    # Slow upstreams may hold a booking POST open for a long time
    PROXY_BOOKING_SECONDS: Final[int] = 120
    PROXY_RAW_BOOKING_SECONDS: Final[int] = 180
    DIAGNOSTIC_SECONDS: Final[int] = 5
    GRACEFUL_SHUTDOWN_SECONDS: Final[int] = 5


class Intervals:
    """Interval values in SECONDS."""

    STATUS_POLL: Final[float] = 8.0
    BOOKING_PACING: Final[float] = 0.0
    HEADER_VARIANT_DELAY: Final[float] = 0.2
    MIN_REPEAT_RUN: Final[int] = 0
