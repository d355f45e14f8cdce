"""Court Autobook - Automated court slot discovery and reservation."""

import importlib as _importlib
from typing import TYPE_CHECKING, Any

__version__ = "1.0.0"
__license__ = "MIT"

if TYPE_CHECKING:
    from .core.logger import setup_structured_logging as setup_structured_logging
    from .core.run_controller import RunController as RunController
    from .services.api.client import CourtBookingClient as CourtBookingClient
    from .services.booking.booking_orchestrator import (
        BookingOrchestrator as BookingOrchestrator,
    )
    from .services.booking.booking_submitter import BookingSubmitter as BookingSubmitter
    from .services.booking.slot_extractor import extract_slots as extract_slots
    from .services.booking.status_poller import StatusPoller as StatusPoller
    from .services.booking.window_matcher import fits as fits

# Explicit lazy-loading map: name -> (module_path, attribute_name)
_LAZY_MODULE_MAP = {
    "setup_structured_logging": ("autobook.core.logger", "setup_structured_logging"),
    "RunController": ("autobook.core.run_controller", "RunController"),
    "CourtBookingClient": ("autobook.services.api.client", "CourtBookingClient"),
    "BookingOrchestrator": (
        "autobook.services.booking.booking_orchestrator",
        "BookingOrchestrator",
    ),
    "BookingSubmitter": ("autobook.services.booking.booking_submitter", "BookingSubmitter"),
    "extract_slots": ("autobook.services.booking.slot_extractor", "extract_slots"),
    "StatusPoller": ("autobook.services.booking.status_poller", "StatusPoller"),
    "fits": ("autobook.services.booking.window_matcher", "fits"),
}

__all__ = list(_LAZY_MODULE_MAP.keys())


def __getattr__(name: str) -> Any:
    """Lazy import with explicit mapping - importlib based."""
    if name in _LAZY_MODULE_MAP:
        module_path, attr_name = _LAZY_MODULE_MAP[name]
        module = _importlib.import_module(module_path)
        attr = getattr(module, attr_name)
        globals()[name] = attr
        return attr
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
