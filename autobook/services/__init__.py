"""Business logic services module."""

import importlib as _importlib
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .api.client import CourtBookingClient as CourtBookingClient
    from .booking.booking_orchestrator import BookingOrchestrator as BookingOrchestrator
    from .booking.booking_submitter import BookingSubmitter as BookingSubmitter
    from .booking.status_poller import StatusPoller as StatusPoller

_LAZY_MODULE_MAP = {
    "CourtBookingClient": ("autobook.services.api.client", "CourtBookingClient"),
    "BookingOrchestrator": (
        "autobook.services.booking.booking_orchestrator",
        "BookingOrchestrator",
    ),
    "BookingSubmitter": ("autobook.services.booking.booking_submitter", "BookingSubmitter"),
    "StatusPoller": ("autobook.services.booking.status_poller", "StatusPoller"),
}

__all__ = list(_LAZY_MODULE_MAP.keys())


def __getattr__(name: str):
    """Lazy import with explicit mapping - importlib based."""
    if name in _LAZY_MODULE_MAP:
        module_path, attr_name = _LAZY_MODULE_MAP[name]
        module = _importlib.import_module(module_path)
        attr = getattr(module, attr_name)
        globals()[name] = attr
        return attr
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
