"""Data request router."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from portal.core.config import settings
from portal.core.pagination import PaginationParams
from portal.core.response import DataResponse, ListResponse, page_of
from portal.db.base import get_db
from portal.schemas.connector import (
    DataRequestCreate,
    DataRequestOut,
    DataRequestStatusUpdate,
    DataRequestUpdate,
)
from portal.services.connector import DataRequestService

router = APIRouter(prefix="/requests", tags=["Data Requests"])


def _svc(session: AsyncSession) -> DataRequestService:
    return DataRequestService(session, settings.default_client_id)


@router.get("", response_model=ListResponse[DataRequestOut])
async def list_requests(
    filter_status: Optional[str] = Query(default=None, alias="status"),
    request_type: Optional[str] = Query(default=None, alias="requestType"),
    requester_id: Optional[str] = Query(default=None, alias="requesterId"),
    provider_id: Optional[str] = Query(default=None, alias="providerId"),
    pagination: PaginationParams = Depends(),
    session: AsyncSession = Depends(get_db),
):
    items, total = await _svc(session).list_requests(
        pagination,
        status=filter_status,
        request_type=request_type,
        requester_id=requester_id,
        provider_id=provider_id,
    )
    return page_of([DataRequestOut.model_validate(r) for r in items], total, pagination)


@router.post("", response_model=DataResponse[DataRequestOut], status_code=status.HTTP_201_CREATED)
async def create_request(body: DataRequestCreate, session: AsyncSession = Depends(get_db)):
    request = await _svc(session).create_request(body)
    return {"data": DataRequestOut.model_validate(request)}


@router.get("/{request_id}", response_model=DataResponse[DataRequestOut])
async def get_request(request_id: str, session: AsyncSession = Depends(get_db)):
    request = await _svc(session).get_request(request_id)
    return {"data": DataRequestOut.model_validate(request)}


@router.put("/{request_id}", response_model=DataResponse[DataRequestOut])
async def update_request(
    request_id: str,
    body: DataRequestUpdate,
    session: AsyncSession = Depends(get_db),
):
    request = await _svc(session).update_request(request_id, body)
    return {"data": DataRequestOut.model_validate(request)}


@router.patch("/{request_id}/status", response_model=DataResponse[DataRequestOut])
async def update_request_status(
    request_id: str,
    body: DataRequestStatusUpdate,
    session: AsyncSession = Depends(get_db),
):
    """Move a request to pending / approved / delivered / rejected."""
    request = await _svc(session).set_status(request_id, body.status)
    return {"data": DataRequestOut.model_validate(request)}


@router.delete("/{request_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_request(request_id: str, session: AsyncSession = Depends(get_db)):
    await _svc(session).delete_request(request_id)
