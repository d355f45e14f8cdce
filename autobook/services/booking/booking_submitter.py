"""Booking submitter - turns a candidate slot into a reservation request."""

import re
from datetime import datetime, timedelta
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple

from loguru import logger

from ...constants import Retries, UpstreamDefaults
from ...core.exceptions import NetworkError, UpstreamRejectedError, ValidationError
from ...core.retry import get_booking_submit_retry
from ..api.models import BookingTransport, TransportResponse
from .aliases import Accessor, field, first_item, resolve_first
from .models import BookingOutcome, CandidateSlot, ErrorKind, ReservationRequest
from .window_matcher import parse_slot_start

RESERVATION_TIME_FORMAT = "%Y-%m-%dT%H:%M"
_INTEGER = re.compile(r"-?\d+")

REFERENCE_ACCESSORS: Tuple[Accessor, ...] = (
    field("guid"),
    field("bookingId"),
    field("id"),
    first_item("reservations", "guid"),
)


def format_reservation_time(value: datetime) -> str:
    """Format a datetime with minute precision and no seconds/timezone suffix."""
    return value.strftime(RESERVATION_TIME_FORMAT)


def extract_reservation_reference(payload: Any) -> Optional[str]:
    """
    Extract the reservation reference from a booking response.

    Args:
        payload: Upstream response body

    Returns:
        Reference string, or None if no alias carries one
    """
    reference = resolve_first(payload, REFERENCE_ACCESSORS)
    return str(reference) if reference is not None else None


def build_booking_url(base: str, reference: Optional[str]) -> Optional[str]:
    """Build the user-facing booking link for a reference."""
    if not reference:
        return None
    return f"{base}{reference}"


class BookingSubmitter:
    """Builds reservation requests and submits them through the transport."""

    def __init__(
        self,
        transport: BookingTransport,
        reservation_type_id: int,
        booking_url_base: str = UpstreamDefaults.BOOKING_URL_BASE,
    ):
        """
        Initialize booking submitter.

        Args:
            transport: Upstream transport used for submissions
            reservation_type_id: Reservation type sent with every request
            booking_url_base: Base path of the user-facing booking link
        """
        self.transport = transport
        self.reservation_type_id = reservation_type_id
        self.booking_url_base = booking_url_base

    def build_request(self, slot: CandidateSlot, duration_minutes: int) -> ReservationRequest:
        """
        Build the reservation request for a slot.

        Args:
            slot: Candidate slot
            duration_minutes: Reservation length in minutes

        Returns:
            Reservation request body

        Raises:
            ValidationError: If the slot lacks a usable inventory id or start
        """
        inventory_id = (slot.inventory_id or "").strip()
        if not inventory_id:
            raise ValidationError("Slot has no inventory item id", field="inventoryItemId")
        if not _INTEGER.fullmatch(inventory_id):
            raise ValidationError(
                f"Inventory item id is not an integer: {inventory_id!r}", field="inventoryItemId"
            )
        if duration_minutes <= 0:
            raise ValidationError(f"Invalid duration: {duration_minutes}", field="duration")

        start = parse_slot_start(slot.start)
        if start is None:
            raise ValidationError(f"Unparsable slot start: {slot.start!r}", field="start")
        start = start.replace(second=0, microsecond=0)
        end = start + timedelta(minutes=duration_minutes)

        return {
            "reservationTypeId": self.reservation_type_id,
            "startDateTime": format_reservation_time(start),
            "endDateTime": format_reservation_time(end),
            "reservations": [{"inventoryItemId": int(inventory_id)}],
        }

    def _success(self, response: TransportResponse, attempts: int = 1) -> BookingOutcome:
        reference = extract_reservation_reference(response.body)
        booking_url = build_booking_url(self.booking_url_base, reference)
        if reference:
            logger.info(f"Booking created: {reference} ({booking_url})")
        else:
            logger.warning("Booking accepted but no reservation reference found in response")
        return BookingOutcome.succeeded(
            status=response.status,
            payload=response.body,
            reference=reference,
            booking_url=booking_url,
            attempts=attempts,
        )

    async def submit(self, slot: CandidateSlot, duration_minutes: int) -> BookingOutcome:
        """
        Submit one reservation for a slot (single attempt, no retries).

        Args:
            slot: Candidate slot
            duration_minutes: Reservation length in minutes

        Returns:
            Structured booking outcome
        """
        try:
            request = self.build_request(slot, duration_minutes)
        except ValidationError as e:
            logger.debug(f"Skipping slot {slot.inventory_id}@{slot.start}: {e.message}")
            return BookingOutcome.failed(ErrorKind.VALIDATION, message=e.message)

        try:
            response = await self.transport.submit_booking(dict(request))
        except NetworkError as e:
            return BookingOutcome.failed(ErrorKind.NETWORK_FAILURE, message=e.message)
        except UpstreamRejectedError as e:
            return BookingOutcome.failed(
                ErrorKind.UPSTREAM_REJECTED, message=e.message, status=e.status, payload=e.body
            )

        if not response.ok:
            logger.warning(
                f"Booking rejected for inventory {request['reservations'][0]['inventoryItemId']} "
                f"at {request['startDateTime']}: {response.status}"
            )
            return BookingOutcome.failed(
                ErrorKind.UPSTREAM_REJECTED,
                message=f"Upstream rejected booking with status {response.status}",
                status=response.status,
                payload=response.body,
            )
        return self._success(response)

    async def submit_with_retry(
        self,
        payload: Dict[str, Any],
        max_attempts: int = Retries.MAX_PROXY_BOOKING,
        initial_delay: float = Retries.BACKOFF_INITIAL_SECONDS,
        retry_on_rejection: bool = True,
        sleep: Optional[Callable[[float], Awaitable[Any]]] = None,
    ) -> BookingOutcome:
        """
        Submit a raw reservation payload with bounded retry and exponential backoff.

        Used by the control plane's proxy booking endpoint. Every failure kind
        is retried while attempts remain unless ``retry_on_rejection`` is off,
        in which case only network failures and 5xx responses are retried.

        Args:
            payload: Reservation request body, passed through unchanged
            max_attempts: Total number of attempts
            initial_delay: Backoff after the first failure, doubled afterwards
            retry_on_rejection: Retry non-5xx upstream rejections too
            sleep: Optional awaitable sleep function

        Returns:
            Structured booking outcome, including the attempt count
        """
        attempts = 0

        @get_booking_submit_retry(
            max_attempts=max_attempts,
            initial_delay=initial_delay,
            retry_on_rejection=retry_on_rejection,
            sleep=sleep,
        )
        async def attempt() -> TransportResponse:
            nonlocal attempts
            attempts += 1
            logger.info(f"proxy-booking attempt {attempts}/{max_attempts}")
            response = await self.transport.submit_booking(payload)
            if not response.ok:
                raise UpstreamRejectedError(response.status, response.body)
            return response

        try:
            response = await attempt()
        except UpstreamRejectedError as e:
            logger.warning(f"proxy-booking failed after {attempts} attempt(s): {e.status}")
            return BookingOutcome.failed(
                ErrorKind.UPSTREAM_REJECTED,
                message=e.message,
                status=e.status,
                payload=e.body,
                attempts=attempts,
            )
        except NetworkError as e:
            logger.warning(f"proxy-booking failed after {attempts} attempt(s): {e.message}")
            return BookingOutcome.failed(
                ErrorKind.NETWORK_FAILURE, message=e.message, attempts=attempts
            )
        return self._success(response, attempts)
