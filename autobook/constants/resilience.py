"""Resilience-related constants (retries, rate limits)."""

from typing import Final


class Retries:
    """Retry configuration for the proxy booking path."""

    MAX_PROXY_BOOKING: Final[int] = 3
    BACKOFF_INITIAL_SECONDS: Final[float] = 0.3
    BACKOFF_MULTIPLIER: Final[int] = 2


class RateLimits:
    """Rate limiting configuration for control-plane endpoints."""

    RUN_CONTROL: Final[str] = "10/minute"
