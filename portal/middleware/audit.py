"""Audit logging middleware: records every state-changing request to audit_trail."""

import asyncio
import logging
import re
import time
from collections.abc import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from portal.core.config import settings
from portal.core.http import client_ip, user_agent
from portal.db.base import async_session_factory
from portal.domain.audit import AuditTrail

logger = logging.getLogger(__name__)

# Methods that mutate state
_WRITE_ACTIONS = {"POST": "CREATE", "PUT": "UPDATE", "PATCH": "UPDATE", "DELETE": "DELETE"}

_API_PREFIX = re.compile(r"^/?api/v\d+/?")
_ID_PATTERN = re.compile(r"^[0-9a-fA-F-]{36}$")


def parse_entity(path: str) -> tuple[str, str | None]:
    """Infer (entity_type, entity_id) from a request path.

    ``/api/v1/contracts/<uuid>/sign`` -> ("contracts", "<uuid>");
    ``/api/v1/mdm/wells`` -> ("mdm", None).
    """
    parts = [p for p in _API_PREFIX.sub("", path).strip("/").split("/") if p]
    if not parts:
        return "unknown", None
    entity_id = next((p for p in parts[1:] if _ID_PATTERN.match(p)), None)
    return parts[0], entity_id


class AuditMiddleware(BaseHTTPMiddleware):
    """Logs all write operations.

    Each audit row is written in a background task after the response is
    produced. Failures are logged and never reach the caller.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start = time.monotonic()
        response = await call_next(request)
        duration_ms = round((time.monotonic() - start) * 1000, 2)

        if settings.audit_requests and request.method in _WRITE_ACTIONS:
            asyncio.create_task(self._record(request, response.status_code, duration_ms))

        return response

    async def _record(self, request: Request, status_code: int, duration_ms: float) -> None:
        path = request.url.path
        entity_type, entity_id = parse_entity(path)
        try:
            async with async_session_factory() as session:
                session.add(
                    AuditTrail(
                        client_id=settings.default_client_id,
                        ip_address=client_ip(request),
                        user_agent=user_agent(request),
                        action=_WRITE_ACTIONS[request.method],
                        entity_type=entity_type,
                        entity_id=entity_id,
                        path=path,
                        status_code=status_code,
                        duration_ms=duration_ms,
                        description=f"{request.method} {path} -> {status_code} ({duration_ms}ms)",
                    )
                )
                await session.commit()
        except Exception:  # pragma: no cover
            logger.exception("Failed to record audit row for %s %s", request.method, path)
