"""Data route router."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from portal.core.config import settings
from portal.core.pagination import PaginationParams
from portal.core.response import DataResponse, ListResponse, page_of
from portal.db.base import get_db
from portal.schemas.connector import DataRouteCreate, DataRouteOut, DataRouteUpdate
from portal.services.connector import DataRouteService

router = APIRouter(prefix="/routes", tags=["Routes"])


def _svc(session: AsyncSession) -> DataRouteService:
    return DataRouteService(session, settings.default_client_id)


@router.get("", response_model=ListResponse[DataRouteOut])
async def list_routes(
    filter_status: Optional[str] = Query(default=None, alias="status"),
    provider_id: Optional[str] = Query(default=None, alias="providerId"),
    consumer_id: Optional[str] = Query(default=None, alias="consumerId"),
    pagination: PaginationParams = Depends(),
    session: AsyncSession = Depends(get_db),
):
    items, total = await _svc(session).list_routes(
        pagination, status=filter_status, provider_id=provider_id, consumer_id=consumer_id
    )
    return page_of([DataRouteOut.model_validate(r) for r in items], total, pagination)


@router.post("", response_model=DataResponse[DataRouteOut], status_code=status.HTTP_201_CREATED)
async def create_route(body: DataRouteCreate, session: AsyncSession = Depends(get_db)):
    route = await _svc(session).create_route(body)
    return {"data": DataRouteOut.model_validate(route)}


@router.get("/{route_id}", response_model=DataResponse[DataRouteOut])
async def get_route(route_id: str, session: AsyncSession = Depends(get_db)):
    route = await _svc(session).get_route(route_id)
    return {"data": DataRouteOut.model_validate(route)}


@router.put("/{route_id}", response_model=DataResponse[DataRouteOut])
async def update_route(route_id: str, body: DataRouteUpdate, session: AsyncSession = Depends(get_db)):
    route = await _svc(session).update_route(route_id, body)
    return {"data": DataRouteOut.model_validate(route)}


@router.delete("/{route_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_route(route_id: str, session: AsyncSession = Depends(get_db)):
    await _svc(session).delete_route(route_id)
