"""Booking models - slots, windows, requests and outcomes."""

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, TypedDict

from ...constants import BookingDefaults, PollStatus


class ErrorKind(str, Enum):
    """Classification of a failed booking step."""

    VALIDATION = "validation"
    UPSTREAM_REJECTED = "upstream_rejected"
    NETWORK_FAILURE = "network_failure"


class ReservationLine(TypedDict):
    """One reserved inventory item inside a reservation request."""

    inventoryItemId: int


class ReservationRequest(TypedDict):
    """Type definition for the upstream reservation request body."""

    reservationTypeId: int
    startDateTime: str
    endDateTime: str
    reservations: List[ReservationLine]


@dataclass
class CandidateSlot:
    """A bookable slot found in a search document."""

    inventory_id: str
    start: str
    duration_minutes: int = BookingDefaults.SLOT_DURATION_MINUTES
    available: Optional[bool] = None
    raw: Any = field(default=None, repr=False, compare=False)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-friendly dictionary (source record excluded)."""
        return {
            "inventoryItemId": self.inventory_id,
            "start": self.start,
            "durationMinutes": self.duration_minutes,
            "available": self.available,
        }


@dataclass(frozen=True)
class BookingWindow:
    """Daily wall-clock window ("HH:MM") a booking must fall into."""

    start_of_day: str = BookingDefaults.WINDOW_START
    end_of_day: str = BookingDefaults.WINDOW_END


@dataclass
class BookingOutcome:
    """Result of one booking submission (possibly retried)."""

    success: bool
    status: Optional[int] = None
    payload: Any = None
    reference: Optional[str] = None
    booking_url: Optional[str] = None
    error_kind: Optional[ErrorKind] = None
    message: Optional[str] = None
    attempts: int = 1

    @classmethod
    def succeeded(
        cls,
        status: int,
        payload: Any,
        reference: Optional[str],
        booking_url: Optional[str],
        attempts: int = 1,
    ) -> "BookingOutcome":
        return cls(
            success=True,
            status=status,
            payload=payload,
            reference=reference,
            booking_url=booking_url,
            attempts=attempts,
        )

    @classmethod
    def failed(
        cls,
        error_kind: ErrorKind,
        message: Optional[str] = None,
        status: Optional[int] = None,
        payload: Any = None,
        attempts: int = 1,
    ) -> "BookingOutcome":
        return cls(
            success=False,
            status=status,
            payload=payload,
            error_kind=error_kind,
            message=message,
            attempts=attempts,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the JSON shape returned by the control plane."""
        data: Dict[str, Any] = {"ok": self.success, "attempts": self.attempts}
        if self.status is not None:
            data["status"] = self.status
        if self.payload is not None:
            data["data"] = self.payload
        if self.success:
            data["reference"] = self.reference
            data["bookingUrl"] = self.booking_url
        else:
            data["reason"] = self.error_kind.value if self.error_kind else None
            if self.message:
                data["error"] = self.message
        return data


@dataclass
class DurationReport:
    """Per-duration diagnostics collected by the orchestrator."""

    duration: int
    found: Optional[int] = None
    candidates: Optional[int] = None
    status: Optional[int] = None
    body: Any = None
    error: Optional[str] = None
    attempts: List[Dict[str, Any]] = field(default_factory=list)

    def record_attempt(self, slot: CandidateSlot, outcome: BookingOutcome) -> None:
        """Keep the upstream answer of a failed candidate submission."""
        attempt: Dict[str, Any] = {"inventoryItemId": slot.inventory_id, "start": slot.start}
        if outcome.error_kind:
            attempt["reason"] = outcome.error_kind.value
        if outcome.status is not None:
            attempt["status"] = outcome.status
        if outcome.payload is not None:
            attempt["body"] = outcome.payload
        if outcome.message:
            attempt["error"] = outcome.message
        self.attempts.append(attempt)

        # The latest rejection also surfaces at duration level
        if outcome.status is not None:
            self.status = outcome.status
            self.body = outcome.payload
        self.error = outcome.message

    def to_dict(self) -> Dict[str, Any]:
        return {key: value for key, value in asdict(self).items() if value not in (None, [])}


@dataclass
class RunResult:
    """Result of one orchestrator run across all durations."""

    booked: bool
    details: List[DurationReport] = field(default_factory=list)
    duration: Optional[int] = None
    slot: Optional[CandidateSlot] = None
    outcome: Optional[BookingOutcome] = None

    @property
    def booking_url(self) -> Optional[str]:
        return self.outcome.booking_url if self.outcome else None

    @property
    def reference(self) -> Optional[str]:
        return self.outcome.reference if self.outcome else None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "booked": self.booked,
            "details": [report.to_dict() for report in self.details],
        }
        if self.booked:
            data["duration"] = self.duration
            data["slot"] = self.slot.to_dict() if self.slot else None
            data["response"] = self.outcome.to_dict() if self.outcome else None
            data["bookingUrl"] = self.booking_url
        return data


@dataclass
class PollState:
    """Current state of a reservation status poll."""

    guid: str
    last_status: str = PollStatus.PENDING
    raw_status: Optional[str] = None
    polls: int = 0
    active: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "guid": self.guid,
            "lastStatus": self.last_status,
            "rawStatus": self.raw_status,
            "polls": self.polls,
            "active": self.active,
        }
