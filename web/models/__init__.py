"""Pydantic models for the Court Autobook control plane."""

from .proxy import ProxyRequest, RawBookingRequest
from .run import ProxySearchRequest, StartRequest

__all__ = [
    "ProxyRequest",
    "ProxySearchRequest",
    "RawBookingRequest",
    "StartRequest",
]
