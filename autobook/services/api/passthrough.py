"""Upstream pass-through - caller-shaped requests and ordered fallbacks.

The upstream API has moved endpoints and query shapes between versions, so
the pass-through endpoints try a fixed list of variants and keep the first
2xx answer.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Tuple
from urllib.parse import quote, urlencode

from loguru import logger

from ...constants import Intervals, UpstreamDefaults
from ...core.config.booking_config import BookingConfig
from ...core.exceptions import NetworkError
from .client import base_headers, public_api_base, search_date_param
from .models import RequestTransport, TransportResponse

# Characters left untouched by a browser's encodeURI
_URI_SAFE = ";,/?:@&=+$-_.!~*'()#"

# (label reported to the caller, absolute URL, query parameters)
Attempt = Tuple[str, str, Optional[Dict[str, Any]]]


@dataclass
class VariantResult:
    """Outcome of trying request variants in order.

    On success ``tried`` is the winning variant; otherwise it lists every
    variant and ``response``/``error`` describe the last failure.
    """

    tried: Any
    response: Optional[TransportResponse] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.response is not None and self.response.ok


@dataclass
class HeaderVariantResult:
    """Outcome of a booking submitted with alternative header sets."""

    tried_headers: Optional[List[str]] = None
    response: Optional[TransportResponse] = None
    attempts: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.response is not None and self.response.ok


def _label(url: str, params: Optional[Dict[str, Any]]) -> str:
    return f"{url}?{urlencode(params)}" if params else url


def search_variants(config: BookingConfig, date: str, duration: int) -> List[Attempt]:
    """
    Search requests to try, most specific first.

    The public locations search comes first; the remaining variants cover
    older members-API shapes (``/search`` and ``/availability``, with the
    playing time as array, scalar or omitted).

    Args:
        config: Booking configuration snapshot
        date: Target date (YYYY-MM-DD)
        duration: Playing time in minutes

    Returns:
        Ordered (label, url, params) attempts
    """
    api_base = config.api_base.rstrip("/")
    common = {"reservationTypeId": config.reservation_type_id, "locationId": config.location_id}
    date_param = {"date": search_date_param(date)}

    shapes = [
        (f"{public_api_base(config.api_base)}/locations/search", {"playingTimes[]": duration}),
        (f"{api_base}/search", {"playingTimes[]": duration}),
        (f"{api_base}/search", {"playingTimes": duration}),
        (f"{api_base}/search", {}),
        (f"{api_base}/availability", {"playingTimes[]": duration}),
        (f"{api_base}/availability", {"playingTimes": duration}),
    ]
    attempts: List[Attempt] = []
    for url, playing in shapes:
        params = {**common, **playing, **date_param}
        attempts.append((_label(url, params), url, params))
    return attempts


def path_variants(path: str) -> List[str]:
    """
    Spellings of a caller-supplied API path, duplicates removed.

    Covers URI-encoding, the ``playingTimes[]`` array syntax and the
    ``/search`` -> ``/availability`` endpoint move.
    """
    variants = [
        path,
        quote(path, safe=_URI_SAFE),
        path.replace("playingTimes[]", "playingTimes"),
        path.replace("playingTimes[]", "playingTimes%5B%5D"),
        path.replace("/search", "/availability", 1),
        path.replace("/search", "/availability/search", 1),
    ]
    return list(dict.fromkeys(variants))


def header_variants(site_origin: str = UpstreamDefaults.SITE_ORIGIN) -> List[Dict[str, str]]:
    """Extra headers layered over the credential headers, fullest first."""
    origin = site_origin.rstrip("/")
    return [
        {"Origin": origin, "Referer": f"{origin}/"},
        {"Origin": origin},
        {"Referer": f"{origin}/"},
        {"Connection": "close"},
        {"Accept-Encoding": "identity"},
        {},
    ]


class UpstreamPassthrough:
    """Sends caller-shaped requests upstream with the configured credentials."""

    def __init__(
        self,
        transport: RequestTransport,
        config: BookingConfig,
        site_origin: str = UpstreamDefaults.SITE_ORIGIN,
        variant_delay: float = Intervals.HEADER_VARIANT_DELAY,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        """
        Initialize upstream pass-through.

        Args:
            transport: Transport issuing the requests
            config: Booking configuration snapshot (token, identifiers, API base)
            site_origin: Site used for Origin/Referer header variants
            variant_delay: Pause between failed header variants
            sleep: Awaitable sleep function
        """
        self.transport = transport
        self.config = config
        self.site_origin = site_origin
        self.variant_delay = variant_delay
        self._sleep = sleep

    async def _first_ok(
        self,
        method: str,
        attempts: Sequence[Attempt],
        *,
        json: Any = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> VariantResult:
        last_response: Optional[TransportResponse] = None
        last_error: Optional[str] = "unknown"

        for label, url, params in attempts:
            try:
                response = await self.transport.request(
                    method, url, params=params, json=json, headers=headers
                )
            except NetworkError as e:
                logger.debug(f"Variant {label} failed without a response: {e.message}")
                last_response, last_error = None, e.message
                continue

            if response.ok:
                logger.info(f"Variant {label} answered {response.status}")
                return VariantResult(tried=label, response=response)
            logger.debug(f"Variant {label} answered {response.status}")
            last_response, last_error = response, None

        return VariantResult(
            tried=[label for label, _, _ in attempts], response=last_response, error=last_error
        )

    async def search(self, date: str, duration: int) -> VariantResult:
        """Run an availability search through the search variants."""
        return await self._first_ok("GET", search_variants(self.config, date, duration))

    async def request_path(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> VariantResult:
        """
        Request a path under the configured API base, trying its spellings.

        Args:
            method: HTTP method
            path: Path (optionally with query string) relative to the API base
            params: Query parameters
            json: JSON body
            headers: Header overrides

        Returns:
            VariantResult whose ``tried`` is the path spelling that answered
        """
        api_base = self.config.api_base.rstrip("/")
        attempts = [
            (variant, f"{api_base}/{variant.lstrip('/')}", params)
            for variant in path_variants(path)
        ]
        return await self._first_ok(method, attempts, json=json, headers=headers)

    async def request_url(
        self,
        method: str,
        url: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> TransportResponse:
        """Request an absolute URL verbatim; raises NetworkError without a response."""
        return await self.transport.request(method, url, params=params, json=json, headers=headers)

    async def submit_raw(
        self, url: str, payload: Any = None, headers: Optional[Dict[str, str]] = None
    ) -> TransportResponse:
        """POST a booking body to an absolute URL with credential headers only."""
        return await self.transport.request(
            "POST", url, json=payload or {}, headers=headers, browser_headers=False
        )

    async def submit_header_variants(self, payload: Any) -> HeaderVariantResult:
        """
        Submit a booking with alternative header sets until one is accepted.

        Args:
            payload: Reservation request body

        Returns:
            HeaderVariantResult with the accepted header names, or every
            failed attempt
        """
        url = f"{self.config.api_base.rstrip('/')}/bookings"
        credentials = list(base_headers(self.config))
        result = HeaderVariantResult()
        variants = header_variants(self.site_origin)

        for index, extra in enumerate(variants):
            names = credentials + list(extra)
            logger.info(f"Booking with header variant {names}")
            try:
                response = await self.transport.request(
                    "POST", url, json=payload, headers=extra, browser_headers=False
                )
            except NetworkError as e:
                result.attempts.append({"headers": names, "error": e.message})
            else:
                if response.ok:
                    result.tried_headers = names
                    result.response = response
                    return result
                result.attempts.append(
                    {
                        "headers": names,
                        "error": f"Request failed with status code {response.status}",
                        "status": response.status,
                    }
                )

            if index < len(variants) - 1 and self.variant_delay:
                await self._sleep(self.variant_delay)

        logger.warning(f"All {len(variants)} header variants failed for {url}")
        return result
