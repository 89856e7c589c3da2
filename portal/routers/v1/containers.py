"""Connector container router, including lifecycle actions and metrics."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from portal.core.config import settings
from portal.core.pagination import PaginationParams
from portal.core.response import DataResponse, ListResponse, page_of
from portal.db.base import get_db
from portal.schemas.connector import (
    ContainerActionRequest,
    ContainerCreate,
    ContainerMetrics,
    ContainerOut,
    ContainerUpdate,
)
from portal.services.connector import ContainerService

router = APIRouter(prefix="/containers", tags=["Containers"])


def _svc(session: AsyncSession) -> ContainerService:
    return ContainerService(session, settings.default_client_id)


@router.get("", response_model=ListResponse[ContainerOut])
async def list_containers(
    filter_status: Optional[str] = Query(default=None, alias="status"),
    pagination: PaginationParams = Depends(),
    session: AsyncSession = Depends(get_db),
):
    items, total = await _svc(session).list_containers(pagination, status=filter_status)
    return page_of([ContainerOut.model_validate(c) for c in items], total, pagination)


@router.post("", response_model=DataResponse[ContainerOut], status_code=status.HTTP_201_CREATED)
async def create_container(body: ContainerCreate, session: AsyncSession = Depends(get_db)):
    container = await _svc(session).create_container(body)
    return {"data": ContainerOut.model_validate(container)}


@router.get("/{container_id}", response_model=DataResponse[ContainerOut])
async def get_container(container_id: str, session: AsyncSession = Depends(get_db)):
    container = await _svc(session).get_container(container_id)
    return {"data": ContainerOut.model_validate(container)}


@router.put("/{container_id}", response_model=DataResponse[ContainerOut])
async def update_container(
    container_id: str,
    body: ContainerUpdate,
    session: AsyncSession = Depends(get_db),
):
    container = await _svc(session).update_container(container_id, body)
    return {"data": ContainerOut.model_validate(container)}


@router.delete("/{container_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_container(container_id: str, session: AsyncSession = Depends(get_db)):
    await _svc(session).delete_container(container_id)


@router.post("/{container_id}/actions", response_model=DataResponse[ContainerOut])
async def container_action(
    container_id: str,
    body: ContainerActionRequest,
    session: AsyncSession = Depends(get_db),
):
    """Run ``start``, ``stop`` or ``restart``; anything else is a 400."""
    container = await _svc(session).perform_action(container_id, body.action)
    return {"data": ContainerOut.model_validate(container)}


@router.put("/{container_id}/metrics", response_model=DataResponse[ContainerOut])
async def update_container_metrics(
    container_id: str,
    body: ContainerMetrics,
    session: AsyncSession = Depends(get_db),
):
    container = await _svc(session).update_metrics(container_id, body)
    return {"data": ContainerOut.model_validate(container)}
