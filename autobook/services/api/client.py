"""Court booking API client - aiohttp transport for the upstream service."""

import asyncio
from typing import Any, Dict, Optional
from urllib.parse import quote

import aiohttp
from loguru import logger

from ...constants import Timeouts, UpstreamDefaults
from ...core.config.booking_config import BookingConfig
from ...core.exceptions import MissingTokenError, NetworkError, UpstreamRejectedError
from .models import TransportResponse


def public_api_base(api_base: str) -> str:
    """
    Derive the public API base from the members API base.

    Args:
        api_base: Configured (members) API base URL

    Returns:
        Public API base without a trailing slash
    """
    return api_base.replace(UpstreamDefaults.MEMBERS_PATH, UpstreamDefaults.PUBLIC_PATH).rstrip("/")


def search_date_param(date: str) -> str:
    """Format a YYYY-MM-DD date the way the search endpoint expects it."""
    return f"{date}T00:00:00.000Z"


def base_headers(config: BookingConfig) -> Dict[str, str]:
    """Credential and tenant headers every upstream call carries."""
    return {
        "Authorization": f"Bearer {config.token}",
        "Content-Type": "application/json",
        "x-organisationid": config.organisation_id,
        "x-federationid": config.federation_id,
    }


class CourtBookingClient:
    """
    Direct API client for the upstream court-booking service.

    Implements search, booking submission and booking status lookups.
    """

    def __init__(
        self,
        config: BookingConfig,
        site_origin: str = UpstreamDefaults.SITE_ORIGIN,
        timeout: float = Timeouts.HTTP_REQUEST_SECONDS,
    ):
        """
        Initialize court booking client.

        Args:
            config: Snapshot of the booking configuration (token, identifiers)
            site_origin: Origin sent to the upstream API
            timeout: Default request timeout in seconds
        """
        self.config = config
        self.site_origin = site_origin.rstrip("/")
        self.timeout = timeout
        self._http_session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self):
        """Async context manager entry."""
        await self._init_http_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()

    @property
    def api_base(self) -> str:
        return self.config.api_base.rstrip("/")

    def _build_headers(self) -> Dict[str, str]:
        return {
            **base_headers(self.config),
            "Accept": "application/json, text/plain, */*",
            "Origin": self.site_origin,
            "Referer": (
                f"{self.site_origin}/en/booking/court-booking/reservation"
                f"?locationId={self.config.location_id}"
            ),
        }

    async def _init_http_session(self) -> None:
        """Initialize HTTP session (headers are sent per request)."""
        if not self.config.has_token:
            raise MissingTokenError()
        if self._http_session is None:
            self._http_session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            )
            logger.debug(f"HTTP session initialized for {self.api_base}")

    async def close(self) -> None:
        """Close HTTP session."""
        if self._http_session:
            await self._http_session.close()
            self._http_session = None

    @property
    def _session(self) -> aiohttp.ClientSession:
        """Get HTTP session, raising error if not initialized."""
        if self._http_session is None:
            raise RuntimeError("HTTP session not initialized. Call _init_http_session() first.")
        return self._http_session

    @staticmethod
    async def _read_body(response: aiohttp.ClientResponse) -> Any:
        # Upstream error pages are often HTML/text rather than JSON; undecodable
        # bytes (UnicodeDecodeError is a ValueError) are replaced, not raised
        try:
            return await response.json(content_type=None)
        except ValueError:
            return await response.text(errors="replace")

    async def _request(
        self,
        method: str,
        url: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> TransportResponse:
        """
        Issue one request and return the structured response.

        Browser-like headers are sent unless explicit headers are given.

        Raises:
            NetworkError: If no response was received
        """
        await self._init_http_session()
        try:
            async with self._session.request(
                method, url, params=params, json=json, headers=headers or self._build_headers()
            ) as response:
                body = await self._read_body(response)
                return TransportResponse(status=response.status, body=body)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            message = str(e) or e.__class__.__name__
            logger.warning(f"{method} {url} failed without a response: {message}")
            raise NetworkError(message) from e

    async def search_availability(self, date: str, duration: int) -> Any:
        """
        Search open slots for a date and playing time.

        Args:
            date: Target date (YYYY-MM-DD)
            duration: Playing time in minutes

        Returns:
            Raw search document

        Raises:
            UpstreamRejectedError: If the search endpoint returns a non-2xx status
            NetworkError: If no response was received
        """
        params = {
            "reservationTypeId": self.config.reservation_type_id,
            "locationId": self.config.location_id,
            "playingTimes[]": duration,
            "date": search_date_param(date),
        }
        url = f"{public_api_base(self.config.api_base)}/locations/search"
        response = await self._request("GET", url, params=params)
        if not response.ok:
            logger.warning(f"Search failed for {date} / {duration}min: {response.status}")
            raise UpstreamRejectedError(response.status, response.body)
        return response.body

    async def submit_booking(self, payload: Dict[str, Any]) -> TransportResponse:
        """
        Submit a reservation request.

        Args:
            payload: Reservation request body

        Returns:
            Structured response (any status)

        Raises:
            NetworkError: If no response was received
        """
        logger.info(f"POST {self.api_base}/bookings")
        return await self._request("POST", f"{self.api_base}/bookings", json=payload)

    async def get_booking_status(self, reference: str) -> Any:
        """
        Get a reservation by its reference.

        Args:
            reference: Reservation reference (guid)

        Returns:
            Reservation document

        Raises:
            UpstreamRejectedError: If the lookup returns a non-2xx status
            NetworkError: If no response was received
        """
        url = f"{self.api_base}/bookings/{quote(reference, safe='')}"
        response = await self._request("GET", url)
        if not response.ok:
            raise UpstreamRejectedError(response.status, response.body)
        return response.body

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
        """
        Issue an arbitrary upstream request with the configured credentials.

        Args:
            method: HTTP method
            url: Absolute upstream URL
            params: Query parameters
            json: JSON body
            headers: Header overrides, merged over the defaults
            browser_headers: Send Origin/Referer/Accept with the credential headers

        Returns:
            Structured response (any status)

        Raises:
            NetworkError: If no response was received
        """
        defaults = self._build_headers() if browser_headers else base_headers(self.config)
        merged = {**defaults, **(headers or {})}
        logger.info(f"{method.upper()} {url} (pass-through)")
        return await self._request(method.upper(), url, params=params, json=json, headers=merged)
