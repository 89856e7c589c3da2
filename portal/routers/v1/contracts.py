"""Contract router.

``/active`` and ``/expired`` are declared before ``/{contract_id}`` so they
are not captured as ids.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from portal.core.config import settings
from portal.core.pagination import PaginationParams
from portal.core.response import DataResponse, ItemsResponse, ListResponse, page_of
from portal.db.base import get_db
from portal.schemas.contract import ContractCreate, ContractOut, ContractUpdate
from portal.services.contract import ContractService

router = APIRouter(prefix="/contracts", tags=["Contracts"])


def _svc(session: AsyncSession) -> ContractService:
    return ContractService(session, settings.default_client_id)


@router.get("", response_model=ListResponse[ContractOut])
async def list_contracts(
    provider_id: Optional[str] = Query(default=None, alias="providerId"),
    consumer_id: Optional[str] = Query(default=None, alias="consumerId"),
    filter_status: Optional[str] = Query(default=None, alias="status"),
    contract_type: Optional[str] = Query(default=None, alias="contractType"),
    pagination: PaginationParams = Depends(),
    session: AsyncSession = Depends(get_db),
):
    items, total = await _svc(session).list_contracts(
        pagination,
        provider_id=provider_id,
        consumer_id=consumer_id,
        status=filter_status,
        contract_type=contract_type,
    )
    return page_of([ContractOut.model_validate(c) for c in items], total, pagination)


@router.get("/active", response_model=ItemsResponse[ContractOut])
async def active_contracts(session: AsyncSession = Depends(get_db)):
    """Active contracts whose validity window contains now."""
    items = await _svc(session).active_contracts()
    return {"data": [ContractOut.model_validate(c) for c in items]}


@router.get("/expired", response_model=ItemsResponse[ContractOut])
async def expired_contracts(session: AsyncSession = Depends(get_db)):
    """Active or pending contracts whose validity has already ended."""
    items = await _svc(session).expired_contracts()
    return {"data": [ContractOut.model_validate(c) for c in items]}


@router.post("", response_model=DataResponse[ContractOut], status_code=status.HTTP_201_CREATED)
async def create_contract(body: ContractCreate, session: AsyncSession = Depends(get_db)):
    contract = await _svc(session).create_contract(body)
    return {"data": ContractOut.model_validate(contract)}


@router.get("/{contract_id}", response_model=DataResponse[ContractOut])
async def get_contract(contract_id: str, session: AsyncSession = Depends(get_db)):
    contract = await _svc(session).get_contract(contract_id)
    return {"data": ContractOut.model_validate(contract)}


@router.put("/{contract_id}", response_model=DataResponse[ContractOut])
async def update_contract(
    contract_id: str,
    body: ContractUpdate,
    session: AsyncSession = Depends(get_db),
):
    contract = await _svc(session).update_contract(contract_id, body)
    return {"data": ContractOut.model_validate(contract)}


@router.delete("/{contract_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_contract(contract_id: str, session: AsyncSession = Depends(get_db)):
    await _svc(session).delete_contract(contract_id)


@router.post("/{contract_id}/sign", response_model=DataResponse[ContractOut])
async def sign_contract(contract_id: str, session: AsyncSession = Depends(get_db)):
    contract = await _svc(session).sign_contract(contract_id)
    return {"data": ContractOut.model_validate(contract)}


@router.post("/{contract_id}/terminate", response_model=DataResponse[ContractOut])
async def terminate_contract(contract_id: str, session: AsyncSession = Depends(get_db)):
    contract = await _svc(session).terminate_contract(contract_id)
    return {"data": ContractOut.model_validate(contract)}
