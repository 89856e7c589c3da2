"""Resource (data asset) router."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from portal.core.config import settings
from portal.core.pagination import PaginationParams
from portal.core.response import DataResponse, ListResponse, page_of
from portal.db.base import get_db
from portal.schemas.connector import ResourceCreate, ResourceOut, ResourceUpdate
from portal.services.connector import ResourceService

router = APIRouter(prefix="/resources", tags=["Resources"])


def _svc(session: AsyncSession) -> ResourceService:
    return ResourceService(session, settings.default_client_id)


@router.get("", response_model=ListResponse[ResourceOut])
async def list_resources(
    type: Optional[str] = Query(default=None, description="GeoJSON | CSV | Seismic | WellLog | Production | Other"),
    access_policy: Optional[str] = Query(default=None, alias="accessPolicy"),
    provider_id: Optional[str] = Query(default=None, alias="providerId"),
    pagination: PaginationParams = Depends(),
    session: AsyncSession = Depends(get_db),
):
    items, total = await _svc(session).list_resources(
        pagination, type=type, access_policy=access_policy, provider_id=provider_id
    )
    return page_of([ResourceOut.model_validate(r) for r in items], total, pagination)


@router.post("", response_model=DataResponse[ResourceOut], status_code=status.HTTP_201_CREATED)
async def create_resource(body: ResourceCreate, session: AsyncSession = Depends(get_db)):
    """Register a data asset; the provider must be a known participant."""
    resource = await _svc(session).create_resource(body)
    return {"data": ResourceOut.model_validate(resource)}


@router.get("/{resource_id}", response_model=DataResponse[ResourceOut])
async def get_resource(resource_id: str, session: AsyncSession = Depends(get_db)):
    resource = await _svc(session).get_resource(resource_id)
    return {"data": ResourceOut.model_validate(resource)}


@router.put("/{resource_id}", response_model=DataResponse[ResourceOut])
async def update_resource(
    resource_id: str,
    body: ResourceUpdate,
    session: AsyncSession = Depends(get_db),
):
    resource = await _svc(session).update_resource(resource_id, body)
    return {"data": ResourceOut.model_validate(resource)}


@router.delete("/{resource_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_resource(resource_id: str, session: AsyncSession = Depends(get_db)):
    await _svc(session).delete_resource(resource_id)
