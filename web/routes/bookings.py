"""Upstream proxy routes: bookings, searches, pass-through requests and status."""

from datetime import date
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Query
from fastapi.responses import JSONResponse

from autobook.core.config.booking_config import BookingConfig
from autobook.core.config.settings import AutobookSettings
from autobook.core.exceptions import NetworkError
from autobook.core.run_controller import RunController
from autobook.services.api.passthrough import UpstreamPassthrough, VariantResult
from autobook.services.booking.booking_submitter import BookingSubmitter
from autobook.services.booking.models import ErrorKind
from web.dependencies import get_app_settings, get_controller, get_token_config
from web.models.proxy import ProxyRequest, RawBookingRequest
from web.models.run import ProxySearchRequest

router = APIRouter(prefix="/api", tags=["bookings"])


def _variant_failure(result: VariantResult, **extra: Any) -> JSONResponse:
    """Map exhausted variants onto the last upstream answer, or 500 without one."""
    if result.response is not None:
        status = result.response.status
        return JSONResponse(
            status_code=status,
            content={"ok": False, "status": status, "data": result.response.body, **extra},
        )
    return JSONResponse(
        status_code=500,
        content={"ok": False, "reason": "no-variants-worked", "error": result.error, **extra},
    )


@router.post("/proxy-booking")
async def proxy_booking(
    payload: Dict[str, Any] = Body(...),
    config: BookingConfig = Depends(get_token_config),
    controller: RunController = Depends(get_controller),
    settings: AutobookSettings = Depends(get_app_settings),
) -> Any:
    """
    Submit a raw reservation payload with bounded retry and backoff.

    Args:
        payload: Reservation request body, forwarded unchanged

    Returns:
        Booking outcome; failures carry the upstream status (or 502 without one)
    """
    async with controller.create_transport(config, settings.proxy_booking_timeout) as transport:
        submitter = BookingSubmitter(
            transport,
            reservation_type_id=config.reservation_type_id,
            booking_url_base=settings.booking_url_base,
        )
        outcome = await submitter.submit_with_retry(
            payload,
            max_attempts=settings.proxy_max_attempts,
            initial_delay=settings.proxy_initial_backoff,
            retry_on_rejection=settings.proxy_retry_on_rejection,
        )

    if outcome.success:
        return outcome.to_dict()

    status_code = 502
    if outcome.error_kind == ErrorKind.UPSTREAM_REJECTED and outcome.status:
        status_code = outcome.status
    return JSONResponse(status_code=status_code, content=outcome.to_dict())


@router.post("/proxy-search")
async def proxy_search(
    search: Optional[ProxySearchRequest] = None,
    config: BookingConfig = Depends(get_token_config),
    controller: RunController = Depends(get_controller),
    settings: AutobookSettings = Depends(get_app_settings),
) -> Any:
    """
    Run one availability search and return the raw document.

    Search variants (endpoint and playing-time shapes) are tried in order
    until one answers 2xx.

    Args:
        search: Optional ``{date, duration}``; today and the first default
            duration when omitted

    Returns:
        ``{ok, tried, status, date, duration, data}``; the last upstream
        status when every variant fails
    """
    search = search or ProxySearchRequest()
    search_date = search.date or date.today().isoformat()

    async with controller.create_transport(config, settings.proxy_timeout) as transport:
        passthrough = UpstreamPassthrough(transport, config, site_origin=settings.site_origin)
        result = await passthrough.search(search_date, search.duration)

    if not result.ok:
        return _variant_failure(result)
    return {
        "ok": True,
        "tried": result.tried,
        "status": result.response.status,
        "date": search_date,
        "duration": search.duration,
        "data": result.response.body,
    }


@router.post("/proxy-request")
async def proxy_request(
    proxy: Optional[ProxyRequest] = None,
    controller: RunController = Depends(get_controller),
    settings: AutobookSettings = Depends(get_app_settings),
) -> Any:
    """
    Send an arbitrary request upstream with the configured credentials.

    A ``fullUrl`` is requested verbatim; a ``path`` is resolved against the
    API base and its alternative spellings are tried in order.

    Returns:
        ``{ok, tried, status, data}``; 400 ``missing-path-or-fullUrl`` when
        neither target is given
    """
    proxy = proxy or ProxyRequest()
    if not proxy.path and not proxy.full_url:
        return JSONResponse(
            status_code=400, content={"ok": False, "reason": "missing-path-or-fullUrl"}
        )

    config = controller.snapshot_config()
    async with controller.create_transport(config, settings.proxy_timeout) as transport:
        passthrough = UpstreamPassthrough(transport, config, site_origin=settings.site_origin)

        if proxy.full_url:
            try:
                response = await passthrough.request_url(
                    proxy.method,
                    proxy.full_url,
                    params=proxy.params,
                    json=proxy.data,
                    headers=proxy.headers,
                )
            except NetworkError as e:
                return JSONResponse(
                    status_code=500,
                    content={"ok": False, "reason": "network-error", "error": e.message},
                )
            if not response.ok:
                return JSONResponse(
                    status_code=response.status,
                    content={"ok": False, "status": response.status, "data": response.body},
                )
            return {
                "ok": True,
                "tried": proxy.full_url,
                "status": response.status,
                "data": response.body,
            }

        result = await passthrough.request_path(
            proxy.method,
            proxy.path,
            params=proxy.params,
            json=proxy.data,
            headers=proxy.headers,
        )

    if not result.ok:
        return _variant_failure(result, tried=result.tried)
    return {
        "ok": True,
        "tried": result.tried,
        "status": result.response.status,
        "data": result.response.body,
    }


@router.post("/proxy-booking-raw")
async def proxy_booking_raw(
    raw: Optional[RawBookingRequest] = None,
    controller: RunController = Depends(get_controller),
    settings: AutobookSettings = Depends(get_app_settings),
) -> Any:
    """
    POST a booking body verbatim to a full URL, once, without retry.

    Returns:
        ``{ok, status, data}``; 400 ``missing-fullUrl`` without a target,
        502 ``network-error`` without an upstream response
    """
    raw = raw or RawBookingRequest()
    if not raw.full_url:
        return JSONResponse(status_code=400, content={"ok": False, "reason": "missing-fullUrl"})

    config = controller.snapshot_config()
    async with controller.create_transport(config, settings.proxy_raw_timeout) as transport:
        passthrough = UpstreamPassthrough(transport, config, site_origin=settings.site_origin)
        response = await passthrough.submit_raw(raw.full_url, raw.data, raw.headers)

    if not response.ok:
        return JSONResponse(
            status_code=response.status,
            content={"ok": False, "status": response.status, "data": response.body},
        )
    return {"ok": True, "status": response.status, "data": response.body}


@router.post("/proxy-booking-try-variants")
async def proxy_booking_try_variants(
    body: Optional[Dict[str, Any]] = Body(default=None),
    config: BookingConfig = Depends(get_token_config),
    controller: RunController = Depends(get_controller),
    settings: AutobookSettings = Depends(get_app_settings),
) -> Any:
    """
    Submit a booking with alternative header sets until one is accepted.

    Args:
        body: ``{payload}`` or the reservation payload itself

    Returns:
        ``{ok, triedHeaders, status, data}``; 502 ``all-variants-failed``
        with every attempt otherwise
    """
    body = body or {}
    payload = body.get("payload") or body

    async with controller.create_transport(config, settings.proxy_booking_timeout) as transport:
        passthrough = UpstreamPassthrough(
            transport,
            config,
            site_origin=settings.site_origin,
            variant_delay=settings.header_variant_delay,
        )
        result = await passthrough.submit_header_variants(payload)

    if not result.ok:
        return JSONResponse(
            status_code=502,
            content={"ok": False, "reason": "all-variants-failed", "attempts": result.attempts},
        )
    return {
        "ok": True,
        "triedHeaders": result.tried_headers,
        "status": result.response.status,
        "data": result.response.body,
    }


@router.get("/booking-status")
async def booking_status(
    guid: Optional[str] = Query(default=None, description="Reservation reference"),
    controller: RunController = Depends(get_controller),
    settings: AutobookSettings = Depends(get_app_settings),
) -> Any:
    """
    Look up a reservation by its reference.

    Returns:
        ``{ok, data}``; 400 ``missing-guid`` without a reference
    """
    if not guid:
        return JSONResponse(status_code=400, content={"ok": False, "reason": "missing-guid"})

    config = controller.snapshot_config()
    async with controller.create_transport(config, settings.proxy_timeout) as transport:
        document = await transport.get_booking_status(guid)
    return {"ok": True, "data": document}
