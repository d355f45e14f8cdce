"""FastAPI control plane for Court Autobook."""

import os
import re
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from autobook import __version__
from autobook.core.config.booking_config import ConfigStore
from autobook.core.config.settings import AutobookSettings, get_settings
from autobook.core.exceptions import AutobookError
from autobook.core.run_controller import RunController, TransportFactory
from web.dependencies import limiter
from web.exception_handlers import autobook_exception_handler, validation_exception_handler
from web.routes import bookings_router, config_router, diagnostics_router, run_router

# Comprehensive localhost detection pattern
_LOCALHOST_PATTERN = re.compile(
    r"^https?://"
    r"(localhost(\.|:|/|$)|127\.0\.0\.1|(\[::1\]|::1)|0\.0\.0\.0)"
    r"(:\d+)?"
    r"(/.*)?$",
    re.IGNORECASE,
)


def validate_cors_origins(origins_str: str, is_development: bool) -> List[str]:
    """
    Parse CORS origins, dropping wildcard and localhost origins outside development.

    Args:
        origins_str: Comma-separated list of allowed origins
        is_development: Whether the app runs in a development-like environment

    Returns:
        List of validated origin strings
    """
    origins = [origin.strip() for origin in origins_str.split(",") if origin.strip()]
    if is_development:
        return origins

    invalid = [o for o in origins if o == "*" or _LOCALHOST_PATTERN.match(o)]
    if invalid:
        logger.warning(f"Removing insecure CORS origins in production: {invalid}")
        origins = [o for o in origins if o not in invalid]
    return origins


def create_app(
    settings: Optional[AutobookSettings] = None,
    store: Optional[ConfigStore] = None,
    transport_factory: Optional[TransportFactory] = None,
) -> FastAPI:
    """
    Factory function to create FastAPI application instance.

    Args:
        settings: Application settings (environment-derived when None)
        store: Booking configuration store (from ``settings.config_path`` when None)
        transport_factory: Optional transport factory passed to the run controller

    Returns:
        Configured FastAPI application instance
    """
    settings = settings or get_settings()
    store = store or ConfigStore(settings.config_path)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Configure the run controller on startup; stop runs and polls on shutdown."""
        logger.info("Control plane starting up...")
        controller = RunController.get_instance()
        controller.configure(store, settings, transport_factory)

        yield

        logger.info("Control plane shutting down...")
        try:
            await controller.shutdown()
        except Exception as e:
            logger.error(f"Error stopping run controller: {e}")

    app = FastAPI(
        title="Court Autobook Control Plane",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs" if settings.is_development else None,
        redoc_url=None,
        openapi_url="/openapi.json" if settings.is_development else None,
        openapi_tags=[
            {"name": "run", "description": "Start, stop and inspect booking runs"},
            {"name": "config", "description": "Upstream credentials and identifiers"},
            {"name": "bookings", "description": "Proxy booking, search and status lookups"},
            {"name": "diagnostics", "description": "Upstream connectivity checks"},
        ],
    )
    app.state.settings = settings
    app.state.config_store = store

    allowed_origins = validate_cors_origins(
        os.getenv("CORS_ALLOWED_ORIGINS", f"http://localhost:{settings.port}"),
        settings.is_development,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Accept", "Content-Type", "Authorization"],
        max_age=3600,
    )

    limiter.enabled = settings.rate_limit_enabled
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_exception_handler(AutobookError, autobook_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    app.include_router(config_router)
    app.include_router(run_router)
    app.include_router(bookings_router)
    app.include_router(diagnostics_router)

    return app
