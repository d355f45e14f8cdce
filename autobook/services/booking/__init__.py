"""Court Booking Package.

Slot extraction, window matching, submission, orchestration and reservation
status polling.
"""

from .booking_orchestrator import BookingOrchestrator
from .booking_submitter import (
    BookingSubmitter,
    build_booking_url,
    extract_reservation_reference,
    format_reservation_time,
)
from .models import (
    BookingOutcome,
    BookingWindow,
    CandidateSlot,
    DurationReport,
    ErrorKind,
    PollState,
    ReservationRequest,
    RunResult,
)
from .slot_extractor import extract_slots, find_slot_records, normalize_slot
from .status_poller import StatusPoller, classify_status, extract_status
from .window_matcher import fits, parse_hhmm, parse_slot_start, slot_fits_window

__all__ = [
    # Main services
    "BookingOrchestrator",
    "BookingSubmitter",
    "StatusPoller",
    # Extraction and matching
    "extract_slots",
    "find_slot_records",
    "normalize_slot",
    "fits",
    "slot_fits_window",
    "parse_hhmm",
    "parse_slot_start",
    # Submission helpers
    "build_booking_url",
    "extract_reservation_reference",
    "format_reservation_time",
    "extract_status",
    "classify_status",
    # Models
    "BookingOutcome",
    "BookingWindow",
    "CandidateSlot",
    "DurationReport",
    "ErrorKind",
    "PollState",
    "ReservationRequest",
    "RunResult",
]
