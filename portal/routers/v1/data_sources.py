"""Data source router: CRUD and connection tests."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from portal.core.config import settings
from portal.core.pagination import PaginationParams
from portal.core.response import DataResponse, ListResponse, page_of
from portal.db.base import get_db
from portal.schemas.common import ProbeResult
from portal.schemas.system import DataSourceCreate, DataSourceOut, DataSourceUpdate
from portal.services.system import DataSourceService

router = APIRouter(prefix="/data-sources", tags=["Data Sources"])


def _svc(session: AsyncSession) -> DataSourceService:
    return DataSourceService(session, settings.default_client_id)


@router.get("", response_model=ListResponse[DataSourceOut])
async def list_data_sources(
    source_type: Optional[str] = Query(default=None, alias="type"),
    filter_status: Optional[str] = Query(default=None, alias="status"),
    pagination: PaginationParams = Depends(),
    session: AsyncSession = Depends(get_db),
):
    items, total = await _svc(session).list_sources(
        pagination, source_type=source_type, status=filter_status
    )
    return page_of([DataSourceOut.from_source(s) for s in items], total, pagination)


@router.post("", response_model=DataResponse[DataSourceOut], status_code=status.HTTP_201_CREATED)
async def create_data_source(body: DataSourceCreate, session: AsyncSession = Depends(get_db)):
    source = await _svc(session).create_source(body)
    return {"data": DataSourceOut.from_source(source)}


@router.get("/{source_id}", response_model=DataResponse[DataSourceOut])
async def get_data_source(source_id: str, session: AsyncSession = Depends(get_db)):
    source = await _svc(session).get_source(source_id)
    return {"data": DataSourceOut.from_source(source)}


@router.put("/{source_id}", response_model=DataResponse[DataSourceOut])
async def update_data_source(
    source_id: str,
    body: DataSourceUpdate,
    session: AsyncSession = Depends(get_db),
):
    source = await _svc(session).update_source(source_id, body)
    return {"data": DataSourceOut.from_source(source)}


@router.delete("/{source_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_data_source(source_id: str, session: AsyncSession = Depends(get_db)):
    await _svc(session).delete_source(source_id)


@router.post("/{source_id}/test", response_model=DataResponse[ProbeResult])
async def test_data_source(source_id: str, session: AsyncSession = Depends(get_db)):
    """Reachability check; the outcome is stored as the source's status."""
    outcome = await _svc(session).test_connection(source_id)
    return {"data": ProbeResult.model_validate(outcome)}
