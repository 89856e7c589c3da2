"""Network settings router: participant API endpoints and their reachability."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from portal.core.config import settings
from portal.core.pagination import PaginationParams
from portal.core.response import DataResponse, ListResponse, page_of
from portal.db.base import get_db
from portal.schemas.common import ProbeResult
from portal.schemas.system import (
    NetworkCheck,
    NetworkSettingCreate,
    NetworkSettingOut,
    NetworkSettingUpdate,
)
from portal.services.system import NetworkSettingService

router = APIRouter(prefix="/network-settings", tags=["Network Settings"])


def _svc(session: AsyncSession) -> NetworkSettingService:
    return NetworkSettingService(session, settings.default_client_id)


async def _one(svc: NetworkSettingService, setting) -> NetworkSettingOut:
    return (await svc.describe([setting]))[0]


@router.get("", response_model=ListResponse[NetworkSettingOut])
async def list_network_settings(
    provider_id: Optional[str] = Query(default=None, alias="providerId"),
    protocol: Optional[str] = Query(default=None),
    filter_status: Optional[str] = Query(default=None, alias="status"),
    pagination: PaginationParams = Depends(),
    session: AsyncSession = Depends(get_db),
):
    svc = _svc(session)
    items, total = await svc.list_settings(
        pagination, provider_id=provider_id, protocol=protocol, status=filter_status
    )
    return page_of(await svc.describe(items), total, pagination)


@router.post("", response_model=DataResponse[NetworkSettingOut], status_code=status.HTTP_201_CREATED)
async def create_network_setting(body: NetworkSettingCreate, session: AsyncSession = Depends(get_db)):
    svc = _svc(session)
    return {"data": await _one(svc, await svc.create_setting(body))}


@router.get("/{setting_id}", response_model=DataResponse[NetworkSettingOut])
async def get_network_setting(setting_id: str, session: AsyncSession = Depends(get_db)):
    svc = _svc(session)
    return {"data": await _one(svc, await svc.get_setting(setting_id))}


@router.put("/{setting_id}", response_model=DataResponse[NetworkSettingOut])
async def update_network_setting(
    setting_id: str,
    body: NetworkSettingUpdate,
    session: AsyncSession = Depends(get_db),
):
    svc = _svc(session)
    return {"data": await _one(svc, await svc.update_setting(setting_id, body))}


@router.delete("/{setting_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_network_setting(setting_id: str, session: AsyncSession = Depends(get_db)):
    await _svc(session).delete_setting(setting_id)


@router.post("/{setting_id}/check", response_model=DataResponse[NetworkCheck])
async def check_network_setting(setting_id: str, session: AsyncSession = Depends(get_db)):
    svc = _svc(session)
    setting, outcome = await svc.check(setting_id)
    return {"data": {"setting": await _one(svc, setting), "result": ProbeResult.model_validate(outcome)}}
