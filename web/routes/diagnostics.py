"""Connectivity diagnostics route for the upstream API host."""

from typing import Any, Dict

from fastapi import APIRouter, Depends

from autobook.core.config.booking_config import ConfigStore
from autobook.core.config.settings import AutobookSettings
from autobook.services.api.diagnostics import run_diagnostics
from web.dependencies import get_app_settings, get_config_store

router = APIRouter(prefix="/api", tags=["diagnostics"])


@router.get("/diag")
async def diagnostics(
    store: ConfigStore = Depends(get_config_store),
    settings: AutobookSettings = Depends(get_app_settings),
) -> Dict[str, Any]:
    """
    Check DNS, TCP and HTTP reachability of the configured API base.

    No token is needed: only the host is contacted.

    Returns:
        ``{ok, diag: {config, dns, tcp, http}}``
    """
    api_base = store.get().api_base
    report = await run_diagnostics(api_base, timeout=settings.diagnostic_timeout)
    return {"ok": True, "diag": report}
