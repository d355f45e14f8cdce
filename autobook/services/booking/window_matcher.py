"""Wall-clock window matching for candidate slots."""

import re
from datetime import datetime, timedelta
from typing import Any, Optional, Tuple

_HHMM = re.compile(r"^\s*(\d{1,2}):(\d{2})\s*$")
_OFFSET_SUFFIX = re.compile(r"(Z|[+-]\d{2}:?\d{2})$", re.IGNORECASE)


def parse_hhmm(value: str, end_of_day: bool = False) -> Optional[Tuple[int, int]]:
    """
    Parse an "HH:MM" wall-clock string.

    Args:
        value: Time of day
        end_of_day: Also accept "24:00" (midnight closing a window)

    Returns:
        (hour, minute) tuple, or None if malformed
    """
    if not isinstance(value, str):
        return None
    match = _HHMM.match(value)
    if not match:
        return None
    hour, minute = int(match.group(1)), int(match.group(2))
    if end_of_day and (hour, minute) == (24, 0):
        return hour, minute
    if hour > 23 or minute > 59:
        return None
    return hour, minute


def parse_slot_start(value: Any) -> Optional[datetime]:
    """
    Parse an upstream timestamp into a naive wall-clock datetime.

    Accepts ISO-like text ("2025-03-01T18:30", "2025-03-01T18:30:00.000Z",
    "2025-03-01 18:30:00+01:00"). A timezone suffix is dropped without
    conversion: slots and windows share one local reference frame.

    Args:
        value: Timestamp text

    Returns:
        Naive datetime, or None if unparsable
    """
    if isinstance(value, datetime):
        return value.replace(tzinfo=None)
    if not isinstance(value, str) or not value.strip():
        return None

    text = _OFFSET_SUFFIX.sub("", value.strip())
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    return parsed.replace(tzinfo=None)


def fits(
    start_local: Optional[datetime],
    window_start: str,
    window_end: str,
    duration_minutes: int,
) -> bool:
    """
    Check whether [start, start + duration) falls inside a daily window.

    The window is placed on the calendar day of ``start_local``. Both bounds
    are inclusive: a slot may start exactly at the window start and end
    exactly at the window end. A window end of "24:00" closes at the following
    midnight. Seconds are ignored.

    Args:
        start_local: Slot start (wall-clock)
        window_start: Window start, "HH:MM"
        window_end: Window end, "HH:MM" (or "24:00")
        duration_minutes: Slot length in minutes

    Returns:
        True if the slot fits, False otherwise (including malformed input)
    """
    if start_local is None:
        return False
    opening = parse_hhmm(window_start)
    closing = parse_hhmm(window_end, end_of_day=True)
    if opening is None or closing is None:
        return False

    start = start_local.replace(tzinfo=None, second=0, microsecond=0)
    window_open = start.replace(hour=opening[0], minute=opening[1])
    midnight = start.replace(hour=0, minute=0)
    window_close = midnight + timedelta(hours=closing[0], minutes=closing[1])
    end = start + timedelta(minutes=duration_minutes)

    return start >= window_open and end <= window_close


def slot_fits_window(start: Any, window_start: str, window_end: str, duration_minutes: int) -> bool:
    """Parse a raw slot start and check it against a window."""
    return fits(parse_slot_start(start), window_start, window_end, duration_minutes)
