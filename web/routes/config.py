"""Booking configuration routes."""

from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, HTTPException
from loguru import logger
from pydantic import ValidationError

from autobook.core.config.booking_config import ConfigStore
from autobook.core.run_controller import RunController
from autobook.utils.token import get_token_expiry
from web.dependencies import get_config_store, get_controller

router = APIRouter(prefix="/api", tags=["config"])


def _token_expires_at(token: str) -> Any:
    expiry = get_token_expiry(token)
    return expiry.isoformat() if expiry else None


@router.get("/config")
async def get_config(
    store: ConfigStore = Depends(get_config_store),
    controller: RunController = Depends(get_controller),
) -> Dict[str, Any]:
    """
    Get the booking configuration (token masked).

    Returns:
        ``{config, running, tokenExpiresAt}``
    """
    config = store.get()
    return {
        "config": config.to_public_dict(),
        "running": controller.is_running,
        "tokenExpiresAt": _token_expires_at(config.token),
    }


@router.post("/config")
async def update_config(
    values: Dict[str, Any] = Body(...),
    store: ConfigStore = Depends(get_config_store),
) -> Dict[str, Any]:
    """
    Merge values into the booking configuration and persist it.

    Args:
        values: Partial configuration document

    Returns:
        ``{ok, config, tokenExpiresAt}`` with the merged configuration

    Raises:
        HTTPException: If a value has the wrong type
    """
    try:
        config = store.update(values)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))

    logger.info(f"Booking configuration updated: {sorted(values)}")
    return {
        "ok": True,
        "config": config.to_public_dict(),
        "tokenExpiresAt": _token_expires_at(config.token),
    }
