"""Routes package for the Court Autobook control plane."""

from .bookings import router as bookings_router
from .config import router as config_router
from .diagnostics import router as diagnostics_router
from .run import router as run_router

__all__ = [
    "bookings_router",
    "config_router",
    "diagnostics_router",
    "run_router",
]
