"""Connectivity diagnostics for the upstream API host."""

import asyncio
import socket
from typing import Any, Dict, List
from urllib.parse import urlparse

import aiohttp
from loguru import logger

from ...constants import Timeouts
from ...core.exceptions import ConfigurationError

_FAMILIES = {socket.AF_INET: 4, socket.AF_INET6: 6}


def _failure(e: Exception) -> Dict[str, Any]:
    return {"ok": False, "error": str(e) or e.__class__.__name__}


async def check_dns(host: str) -> Dict[str, Any]:
    """Resolve every address of a host."""
    try:
        infos = await asyncio.get_running_loop().getaddrinfo(host, None)
        addresses: List[Dict[str, Any]] = []
        for family, _, _, _, sockaddr in infos:
            entry = {"address": sockaddr[0], "family": _FAMILIES.get(family, family)}
            if entry not in addresses:
                addresses.append(entry)
        return {"ok": True, "addresses": addresses}
    except Exception as e:
        logger.warning(f"DNS lookup for {host} failed: {e}")
        return _failure(e)


async def check_tcp(
    host: str, port: int = 443, timeout: float = Timeouts.DIAGNOSTIC_SECONDS
) -> Dict[str, Any]:
    """Open (and close) a TCP connection to the host."""
    try:
        _, writer = await asyncio.wait_for(asyncio.open_connection(host, port), timeout)
        writer.close()
        await writer.wait_closed()
        return {"ok": True}
    except Exception as e:
        logger.warning(f"TCP connect to {host}:{port} failed: {e!r}")
        return _failure(e)


async def check_http(url: str, timeout: float = Timeouts.DIAGNOSTIC_SECONDS) -> Dict[str, Any]:
    """Send a HEAD request; any status counts as reachable."""
    try:
        async with aiohttp.ClientSession(
            timeout=aiohttp.ClientTimeout(total=timeout)
        ) as session:
            async with session.head(url) as response:
                return {
                    "ok": True,
                    "status": response.status,
                    "headers": dict(response.headers),
                }
    except Exception as e:
        logger.warning(f"HEAD {url} failed: {e!r}")
        return _failure(e)


async def run_diagnostics(
    api_base: str, timeout: float = Timeouts.DIAGNOSTIC_SECONDS
) -> Dict[str, Any]:
    """
    Check DNS, TCP and HTTP reachability of the configured API base.

    Each check reports ``{"ok": ...}`` independently; one failing check does
    not skip the others.

    Args:
        api_base: Configured upstream API base URL
        timeout: Per-check timeout in seconds

    Returns:
        ``{"config", "dns", "tcp", "http"}`` report

    Raises:
        ConfigurationError: If the API base has no host name
    """
    parsed = urlparse(api_base)
    host = parsed.hostname
    if not host:
        raise ConfigurationError(
            f"API base has no host: {api_base!r}", details={"reason": "invalid-api-base"}
        )

    logger.info(f"Running connectivity diagnostics for {host}")
    return {
        "config": {"apiBase": api_base},
        "dns": await check_dns(host),
        "tcp": await check_tcp(host, parsed.port or 443, timeout),
        "http": await check_http(api_base, timeout),
    }
