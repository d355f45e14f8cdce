"""Upstream API models - transport responses and the transport protocol."""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol


@dataclass
class TransportResponse:
    """A structured upstream HTTP response."""

    status: int
    body: Any = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


class BookingTransport(Protocol):
    """Upstream operations the booking core depends on."""

    async def search_availability(self, date: str, duration: int) -> Any:
        """Return a raw search document; raise on structured failure."""
        ...

    async def submit_booking(self, payload: Dict[str, Any]) -> TransportResponse:
        """Submit a reservation request; raise NetworkError without a response."""
        ...

    async def get_booking_status(self, reference: str) -> Any:
        """Return the reservation status document for a reference."""
        ...


class RequestTransport(Protocol):
    """Arbitrary upstream requests used by the pass-through endpoints."""

    async def request(
        self,
        method: str,
        url: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
        headers: Optional[Dict[str, str]] = None,
        browser_headers: bool = True,
    ) -> TransportResponse:
        """Return any response; raise NetworkError without one."""
        ...
