"""Shared dependencies for the Court Autobook control plane."""

from fastapi import Depends, HTTPException, Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from autobook.core.config.booking_config import BookingConfig, ConfigStore
from autobook.core.config.settings import AutobookSettings
from autobook.core.run_controller import RunController

# Shared by the app state and the route decorators
limiter = Limiter(key_func=get_remote_address)


def get_app_settings(request: Request) -> AutobookSettings:
    """Get the settings the application was created with."""
    return request.app.state.settings


def get_config_store(request: Request) -> ConfigStore:
    """Get the booking configuration store."""
    return request.app.state.config_store


def get_controller() -> RunController:
    """
    Get the RunController instance.

    Returns:
        RunController instance

    Raises:
        HTTPException: If controller is not configured
    """
    controller = RunController.get_instance()
    if not controller.get_status()["configured"]:
        raise HTTPException(
            status_code=503,
            detail="Run controller not configured. Please restart the application.",
        )
    return controller


def get_token_config(controller: RunController = Depends(get_controller)) -> BookingConfig:
    """
    Get a configuration snapshot for a request that calls upstream.

    Raises:
        MissingTokenError: If no auth token is configured (mapped to 400 no-token)
    """
    return controller.snapshot_config()
