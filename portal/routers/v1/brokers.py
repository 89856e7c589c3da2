"""Broker router."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from portal.core.config import settings
from portal.core.pagination import PaginationParams
from portal.core.response import DataResponse, ListResponse, page_of
from portal.db.base import get_db
from portal.schemas.connector import BrokerCreate, BrokerOut, BrokerUpdate
from portal.services.connector import BrokerService

router = APIRouter(prefix="/brokers", tags=["Brokers"])


def _svc(session: AsyncSession) -> BrokerService:
    return BrokerService(session, settings.default_client_id)


@router.get("", response_model=ListResponse[BrokerOut])
async def list_brokers(
    validation_status: Optional[str] = Query(default=None, alias="validationStatus"),
    pagination: PaginationParams = Depends(),
    session: AsyncSession = Depends(get_db),
):
    items, total = await _svc(session).list_brokers(pagination, validation_status=validation_status)
    return page_of([BrokerOut.model_validate(b) for b in items], total, pagination)


@router.post("", response_model=DataResponse[BrokerOut], status_code=status.HTTP_201_CREATED)
async def create_broker(body: BrokerCreate, session: AsyncSession = Depends(get_db)):
    broker = await _svc(session).create_broker(body)
    return {"data": BrokerOut.model_validate(broker)}


@router.get("/{broker_id}", response_model=DataResponse[BrokerOut])
async def get_broker(broker_id: str, session: AsyncSession = Depends(get_db)):
    broker = await _svc(session).get_broker(broker_id)
    return {"data": BrokerOut.model_validate(broker)}


@router.put("/{broker_id}", response_model=DataResponse[BrokerOut])
async def update_broker(broker_id: str, body: BrokerUpdate, session: AsyncSession = Depends(get_db)):
    broker = await _svc(session).update_broker(broker_id, body)
    return {"data": BrokerOut.model_validate(broker)}


@router.delete("/{broker_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_broker(broker_id: str, session: AsyncSession = Depends(get_db)):
    await _svc(session).delete_broker(broker_id)
