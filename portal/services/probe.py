"""Outbound HTTP and TCP probes for service-application health checks,
external-service and data-source connection tests.

Any response below 400 counts as healthy; transport errors and timeouts
are reported as unhealthy rather than raised.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any

import httpx

from portal.core.config import settings

logger = logging.getLogger(__name__)


@dataclass
class ProbeOutcome:
    success: bool
    message: str
    status_code: int | None = None
    response_time_ms: float | None = None


def auth_headers(auth_type: str, credentials: dict[str, Any] | None) -> tuple[dict[str, str], Any]:
    """Translate stored adaptor credentials into (headers, httpx auth)."""
    creds = credentials or {}
    headers: dict[str, str] = {}
    auth = None
    if auth_type == "API_KEY" and creds.get("apiKey"):
        headers[creds.get("headerName", "X-Api-Key")] = str(creds["apiKey"])
    elif auth_type == "OAUTH2" and creds.get("accessToken"):
        headers["Authorization"] = f"Bearer {creds['accessToken']}"
    elif auth_type == "BASIC" and creds.get("username"):
        auth = httpx.BasicAuth(str(creds["username"]), str(creds.get("password", "")))
    return headers, auth


async def probe_endpoint(
    url: str,
    *,
    headers: dict[str, str] | None = None,
    auth: Any = None,
) -> ProbeOutcome:
    start = time.monotonic()
    try:
        async with httpx.AsyncClient(timeout=settings.health_check_timeout) as client:
            response = await client.get(url, headers=headers, auth=auth)
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        logger.warning("Probe %s failed: %s", url, exc)
        return ProbeOutcome(success=False, message=f"Connection failed: {exc.__class__.__name__}")

    elapsed = round((time.monotonic() - start) * 1000, 2)
    if response.status_code < 400:
        return ProbeOutcome(
            success=True,
            message=f"Endpoint responded with HTTP {response.status_code}",
            status_code=response.status_code,
            response_time_ms=elapsed,
        )
    return ProbeOutcome(
        success=False,
        message=f"Endpoint returned HTTP {response.status_code}",
        status_code=response.status_code,
        response_time_ms=elapsed,
    )


async def probe_socket(host: str, port: int) -> ProbeOutcome:
    """Open (and close) a TCP connection to ``host:port``."""
    start = time.monotonic()
    try:
        _, writer = await asyncio.wait_for(
            asyncio.open_connection(host, port), timeout=settings.health_check_timeout
        )
    except (OSError, asyncio.TimeoutError) as exc:
        logger.warning("Probe %s:%s failed: %s", host, port, exc)
        return ProbeOutcome(success=False, message=f"Connection failed: {exc.__class__.__name__}")

    writer.close()
    await writer.wait_closed()
    return ProbeOutcome(
        success=True,
        message=f"Connected to {host}:{port}",
        response_time_ms=round((time.monotonic() - start) * 1000, 2),
    )
