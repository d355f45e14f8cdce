"""Booking defaults and upstream endpoint constants."""

from typing import Final, Tuple


class BookingDefaults:
    """Defaults applied when a run does not specify its own parameters."""

    DURATIONS: Final[Tuple[int, ...]] = (90,)
    WINDOW_START: Final[str] = "18:30"
    WINDOW_END: Final[str] = "22:00"
    SLOT_DURATION_MINUTES: Final[int] = 60


class UpstreamDefaults:
    """Defaults for the upstream court-booking service."""

    API_BASE: Final[str] = "https://api.foys.io/court-booking/members/api/v1"
    MEMBERS_PATH: Final[str] = "/members/api/v1"
    PUBLIC_PATH: Final[str] = "/public/api/v1"
    SITE_ORIGIN: Final[str] = "https://www.padelpowers.com"
    BOOKING_URL_BASE: Final[str] = "https://www.padelpowers.com/en/booking/court-booking/booking/"
    ORGANISATION_ID: Final[str] = "48c8d621-a469-4645-17ee-08db9da35083"
    FEDERATION_ID: Final[str] = "30c6ef06-0a88-4ed7-a0ba-23352869c8a1"
    LOCATION_ID: Final[str] = "205c6c05-c583-4d1f-b10d-1b3c3ff47bac"
    RESERVATION_TYPE_ID: Final[int] = 85


class PollStatus:
    """Reservation lifecycle values used by the status poller."""

    PENDING: Final[str] = "pending"
    TERMINAL: Final[str] = "terminal"
    UNKNOWN: Final[str] = "unknown"
