"""Booking run control routes."""

from datetime import date
from typing import Any, Dict

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from loguru import logger

from autobook.constants import RateLimits
from autobook.core.run_controller import RunController, RunParams
from autobook.services.booking.models import BookingWindow
from web.dependencies import get_controller, limiter
from web.models.run import StartRequest

router = APIRouter(prefix="/api", tags=["run"])


@router.post("/start")
@limiter.limit(RateLimits.RUN_CONTROL)
async def start_run(
    request: Request,
    command: StartRequest,
    controller: RunController = Depends(get_controller),
) -> Any:
    """
    Run a booking attempt now and schedule repeats when an interval is set.

    Args:
        request: FastAPI request object (required for rate limiter)
        command: Run parameters

    Returns:
        ``{ok, running, lastRun}``, or 400 ``already-running``
    """
    params = RunParams(
        date=command.date or date.today().isoformat(),
        durations=command.durations,
        window=BookingWindow(command.window_start, command.window_end),
        interval_seconds=command.interval_seconds,
    )
    result = await controller.start(params)
    if not result["ok"]:
        return JSONResponse(status_code=400, content=result)

    logger.info(f"Booking run started via control plane for {params.date}")
    return result


@router.post("/stop")
@limiter.limit(RateLimits.RUN_CONTROL)
async def stop_run(
    request: Request, controller: RunController = Depends(get_controller)
) -> Dict[str, Any]:
    """
    Stop the run schedule.

    Args:
        request: FastAPI request object (required for rate limiter)

    Returns:
        ``{ok: true}`` or ``{ok: false, reason: "not-running"}``
    """
    return await controller.stop()


@router.get("/status")
async def get_run_status(controller: RunController = Depends(get_controller)) -> Dict[str, Any]:
    """Get schedule state, the last run result and the reservation poll state."""
    return controller.get_status()
