"""External service / adaptor router: CRUD, connection tests, sync jobs,
adaptor audit log and usage statistics.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from portal.core.config import settings
from portal.core.http import client_ip, user_agent
from portal.core.pagination import PaginationParams
from portal.core.response import DataResponse, ItemsResponse, ListResponse, page_of
from portal.db.base import get_db
from portal.schemas.common import ProbeResult
from portal.schemas.external_service import (
    AdaptorAuditCreate,
    AdaptorAuditOut,
    AdaptorStats,
    ExternalServiceCreate,
    ExternalServiceOut,
    ExternalServiceUpdate,
    ServiceTypeSummary,
    SyncComplete,
    SyncFail,
    SyncLogOut,
    SyncStart,
)
from portal.services.external_service import ExternalServiceService

router = APIRouter(prefix="/external-services", tags=["External Services"])


def _svc(session: AsyncSession) -> ExternalServiceService:
    return ExternalServiceService(session, settings.default_client_id)


# ------------------------------------------------------------------
# CRUD
# ------------------------------------------------------------------

@router.get("", response_model=ListResponse[ExternalServiceOut])
async def list_external_services(
    service_type: Optional[str] = Query(default=None, alias="serviceType"),
    filter_status: Optional[str] = Query(default=None, alias="status"),
    pagination: PaginationParams = Depends(),
    session: AsyncSession = Depends(get_db),
):
    items, total = await _svc(session).list_services(
        pagination, service_type=service_type, status=filter_status
    )
    return page_of([ExternalServiceOut.model_validate(s) for s in items], total, pagination)


@router.get("/summary", response_model=ItemsResponse[ServiceTypeSummary])
async def external_service_summary(session: AsyncSession = Depends(get_db)):
    """Counts grouped by service type, then by status."""
    return {"data": await _svc(session).summary()}


@router.post("", response_model=DataResponse[ExternalServiceOut], status_code=status.HTTP_201_CREATED)
async def create_external_service(
    body: ExternalServiceCreate,
    session: AsyncSession = Depends(get_db),
):
    service = await _svc(session).create_service(body)
    return {"data": ExternalServiceOut.model_validate(service)}


@router.get("/{service_id}", response_model=DataResponse[ExternalServiceOut])
async def get_external_service(service_id: str, session: AsyncSession = Depends(get_db)):
    service = await _svc(session).get_service(service_id)
    return {"data": ExternalServiceOut.model_validate(service)}


@router.put("/{service_id}", response_model=DataResponse[ExternalServiceOut])
async def update_external_service(
    service_id: str,
    body: ExternalServiceUpdate,
    session: AsyncSession = Depends(get_db),
):
    service = await _svc(session).update_service(service_id, body)
    return {"data": ExternalServiceOut.model_validate(service)}


@router.delete("/{service_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_external_service(service_id: str, session: AsyncSession = Depends(get_db)):
    await _svc(session).delete_service(service_id)


@router.post("/{service_id}/test", response_model=DataResponse[ProbeResult])
async def test_external_service(service_id: str, session: AsyncSession = Depends(get_db)):
    outcome = await _svc(session).test_connection(service_id)
    return {"data": ProbeResult.model_validate(outcome)}


# ------------------------------------------------------------------
# Sync jobs
# ------------------------------------------------------------------

@router.get("/{service_id}/sync", response_model=ItemsResponse[SyncLogOut])
async def list_sync_logs(
    service_id: str,
    limit: int = Query(default=50, ge=1, le=500),
    session: AsyncSession = Depends(get_db),
):
    logs = await _svc(session).sync_logs(service_id, limit=limit)
    return {"data": [SyncLogOut.model_validate(log) for log in logs]}


@router.post("/{service_id}/sync", response_model=DataResponse[SyncLogOut], status_code=status.HTTP_201_CREATED)
async def start_sync(
    service_id: str,
    body: SyncStart,
    session: AsyncSession = Depends(get_db),
):
    log = await _svc(session).start_sync(service_id, body)
    return {"data": SyncLogOut.model_validate(log)}


@router.post("/{service_id}/sync/{sync_id}/complete", response_model=DataResponse[SyncLogOut])
async def complete_sync(
    service_id: str,
    sync_id: str,
    body: SyncComplete,
    session: AsyncSession = Depends(get_db),
):
    log = await _svc(session).complete_sync(service_id, sync_id, body)
    return {"data": SyncLogOut.model_validate(log)}


@router.post("/{service_id}/sync/{sync_id}/fail", response_model=DataResponse[SyncLogOut])
async def fail_sync(
    service_id: str,
    sync_id: str,
    body: SyncFail,
    session: AsyncSession = Depends(get_db),
):
    log = await _svc(session).fail_sync(service_id, sync_id, body)
    return {"data": SyncLogOut.model_validate(log)}


# ------------------------------------------------------------------
# Adaptor audit log + stats
# ------------------------------------------------------------------

@router.get("/{service_id}/audit", response_model=ItemsResponse[AdaptorAuditOut])
async def list_adaptor_audit(
    service_id: str,
    action: Optional[str] = Query(default=None),
    start_date: Optional[datetime] = Query(default=None, alias="startDate"),
    end_date: Optional[datetime] = Query(default=None, alias="endDate"),
    limit: int = Query(default=50, ge=1, le=500),
    session: AsyncSession = Depends(get_db),
):
    entries = await _svc(session).audit_logs(
        service_id, action=action, start_date=start_date, end_date=end_date, limit=limit
    )
    return {"data": [AdaptorAuditOut.model_validate(e) for e in entries]}


@router.post("/{service_id}/audit", response_model=DataResponse[AdaptorAuditOut], status_code=status.HTTP_201_CREATED)
async def record_adaptor_audit(
    service_id: str,
    body: AdaptorAuditCreate,
    request: Request,
    session: AsyncSession = Depends(get_db),
):
    entry = await _svc(session).record_audit(
        service_id, body, ip_address=client_ip(request), user_agent=user_agent(request)
    )
    return {"data": AdaptorAuditOut.model_validate(entry)}


@router.get("/{service_id}/stats", response_model=DataResponse[AdaptorStats])
async def adaptor_stats(
    service_id: str,
    days: int = Query(default=30, ge=1, le=365),
    session: AsyncSession = Depends(get_db),
):
    return {"data": await _svc(session).stats(service_id, days=days)}
