"""Exception handlers mapping Autobook errors onto control-plane JSON bodies."""

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger

from autobook.core.exceptions import (
    AutobookError,
    ConfigurationError,
    MissingTokenError,
    NetworkError,
    UpstreamRejectedError,
    ValidationError,
)


async def autobook_exception_handler(request: Request, exc: AutobookError) -> JSONResponse:
    """Convert an AutobookError to an ``{"ok": false, ...}`` response."""
    if isinstance(exc, MissingTokenError):
        return JSONResponse(status_code=400, content={"ok": False, "reason": "no-token"})

    if isinstance(exc, UpstreamRejectedError):
        # Upstream status and body are passed through verbatim
        return JSONResponse(
            status_code=exc.status,
            content={"ok": False, "status": exc.status, "data": exc.body},
        )

    if isinstance(exc, NetworkError):
        return JSONResponse(
            status_code=502,
            content={"ok": False, "reason": "network-error", "error": exc.message},
        )

    if isinstance(exc, ValidationError):
        return JSONResponse(
            status_code=400,
            content={"ok": False, "reason": "validation", "error": exc.message, **exc.details},
        )

    if isinstance(exc, ConfigurationError):
        return JSONResponse(
            status_code=503,
            content={
                "ok": False,
                "reason": exc.details.get("reason", "configuration"),
                "error": exc.message,
            },
        )

    logger.error(f"Unhandled {exc.__class__.__name__} on {request.url.path}: {exc.message}")
    return JSONResponse(status_code=500, content={"ok": False, "error": exc.message})


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Convert request validation errors to a flat field -> message map."""
    errors = {}
    for error in exc.errors():
        field = ".".join(str(loc) for loc in error["loc"] if loc != "body")
        errors[field] = error["msg"]

    return JSONResponse(
        status_code=422,
        content={"ok": False, "reason": "invalid-request", "errors": errors},
    )
