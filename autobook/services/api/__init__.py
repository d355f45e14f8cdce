"""Upstream court-booking API integration."""

from autobook.services.api.client import CourtBookingClient, public_api_base, search_date_param
from autobook.services.api.models import BookingTransport, RequestTransport, TransportResponse
from autobook.services.api.passthrough import UpstreamPassthrough, VariantResult

__all__ = [
    "BookingTransport",
    "CourtBookingClient",
    "RequestTransport",
    "TransportResponse",
    "UpstreamPassthrough",
    "VariantResult",
    "public_api_base",
    "search_date_param",
]
