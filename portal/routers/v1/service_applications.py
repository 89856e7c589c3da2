"""Service application router."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from portal.core.config import settings
from portal.core.pagination import PaginationParams
from portal.core.response import DataResponse, ListResponse, page_of
from portal.db.base import get_db
from portal.schemas.common import ProbeResult
from portal.schemas.contract import (
    ServiceApplicationCreate,
    ServiceApplicationOut,
    ServiceApplicationUpdate,
)
from portal.services.contract import ServiceApplicationService

router = APIRouter(prefix="/service-applications", tags=["Service Applications"])


def _svc(session: AsyncSession) -> ServiceApplicationService:
    return ServiceApplicationService(session, settings.default_client_id)


@router.get("", response_model=ListResponse[ServiceApplicationOut])
async def list_service_applications(
    filter_status: Optional[str] = Query(default=None, alias="status"),
    pagination: PaginationParams = Depends(),
    session: AsyncSession = Depends(get_db),
):
    items, total = await _svc(session).list_applications(pagination, status=filter_status)
    return page_of([ServiceApplicationOut.model_validate(a) for a in items], total, pagination)


@router.post("", response_model=DataResponse[ServiceApplicationOut], status_code=status.HTTP_201_CREATED)
async def create_service_application(
    body: ServiceApplicationCreate,
    session: AsyncSession = Depends(get_db),
):
    application = await _svc(session).create_application(body)
    return {"data": ServiceApplicationOut.model_validate(application)}


@router.get("/{app_id}", response_model=DataResponse[ServiceApplicationOut])
async def get_service_application(app_id: str, session: AsyncSession = Depends(get_db)):
    application = await _svc(session).get_application(app_id)
    return {"data": ServiceApplicationOut.model_validate(application)}


@router.put("/{app_id}", response_model=DataResponse[ServiceApplicationOut])
async def update_service_application(
    app_id: str,
    body: ServiceApplicationUpdate,
    session: AsyncSession = Depends(get_db),
):
    application = await _svc(session).update_application(app_id, body)
    return {"data": ServiceApplicationOut.model_validate(application)}


@router.delete("/{app_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_service_application(app_id: str, session: AsyncSession = Depends(get_db)):
    await _svc(session).delete_application(app_id)


@router.post("/{app_id}/health", response_model=DataResponse[ProbeResult])
async def check_service_application_health(app_id: str, session: AsyncSession = Depends(get_db)):
    """Probe the configured endpoint and store healthy / unhealthy."""
    outcome = await _svc(session).check_health(app_id)
    return {"data": ProbeResult.model_validate(outcome)}
