"""Clearing-house router: transactions, validations, negotiations, payments."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from portal.core.config import settings
from portal.core.http import client_ip
from portal.core.pagination import PaginationParams
from portal.core.response import DataResponse, ItemsResponse, ListResponse, page_of
from portal.db.base import get_db
from portal.schemas.clearing_house import (
    ClearingHouseStats,
    NegotiationCreate,
    NegotiationOut,
    NegotiationRespond,
    PaymentCreate,
    PaymentOut,
    PaymentStatusUpdate,
    TransactionAuditLogOut,
    TransactionCreate,
    TransactionDetail,
    TransactionOut,
    TransactionUpdate,
    ValidationCreate,
    ValidationOut,
    ValidationResult,
)
from portal.services.clearing_house import ClearingHouseService

router = APIRouter(prefix="/clearing-house", tags=["Clearing House"])


def _svc(session: AsyncSession, request: Request | None = None) -> ClearingHouseService:
    return ClearingHouseService(
        session,
        settings.default_client_id,
        actor_ip=client_ip(request) if request is not None else None,
    )


# ------------------------------------------------------------------
# Transactions
# ------------------------------------------------------------------

@router.get("/transactions", response_model=ListResponse[TransactionOut])
async def list_transactions(
    filter_status: Optional[str] = Query(default=None, alias="status"),
    transaction_type: Optional[str] = Query(default=None, alias="transactionType"),
    user_id: Optional[str] = Query(default=None, alias="userId", description="Any party of the transaction"),
    pagination: PaginationParams = Depends(),
    session: AsyncSession = Depends(get_db),
):
    items, total = await _svc(session).list_transactions(
        pagination, status=filter_status, transaction_type=transaction_type, user_id=user_id
    )
    return page_of([TransactionOut.model_validate(t) for t in items], total, pagination)


@router.post("/transactions", response_model=DataResponse[TransactionOut], status_code=status.HTTP_201_CREATED)
async def create_transaction(
    body: TransactionCreate,
    request: Request,
    session: AsyncSession = Depends(get_db),
):
    txn = await _svc(session, request).create_transaction(body)
    return {"data": TransactionOut.model_validate(txn)}


@router.get("/transactions/{txn_id}", response_model=DataResponse[TransactionDetail])
async def get_transaction(txn_id: str, session: AsyncSession = Depends(get_db)):
    """Transaction with its validations, payments, negotiations and latest audit entries."""
    found = await _svc(session).transaction_detail(txn_id)
    detail = TransactionDetail.model_validate(found["transaction"])
    detail.validations = [ValidationOut.model_validate(v) for v in found["validations"]]
    detail.payments = [PaymentOut.model_validate(p) for p in found["payments"]]
    detail.negotiations = [NegotiationOut.model_validate(n) for n in found["negotiations"]]
    detail.audit_logs = [TransactionAuditLogOut.model_validate(a) for a in found["audit_logs"]]
    return {"data": detail}


@router.put("/transactions/{txn_id}", response_model=DataResponse[TransactionOut])
async def update_transaction(
    txn_id: str,
    body: TransactionUpdate,
    request: Request,
    session: AsyncSession = Depends(get_db),
):
    txn = await _svc(session, request).update_transaction(txn_id, body)
    return {"data": TransactionOut.model_validate(txn)}


@router.delete("/transactions/{txn_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_transaction(txn_id: str, request: Request, session: AsyncSession = Depends(get_db)):
    await _svc(session, request).delete_transaction(txn_id)


@router.get("/transactions/{txn_id}/audit-logs", response_model=ItemsResponse[TransactionAuditLogOut])
async def transaction_audit_logs(txn_id: str, session: AsyncSession = Depends(get_db)):
    entries = await _svc(session).audit_logs(txn_id)
    return {"data": [TransactionAuditLogOut.model_validate(e) for e in entries]}


@router.post(
    "/transactions/{txn_id}/validate",
    response_model=DataResponse[ValidationResult],
    status_code=status.HTTP_201_CREATED,
)
async def validate_transaction(
    txn_id: str,
    body: ValidationCreate,
    request: Request,
    session: AsyncSession = Depends(get_db),
):
    """Record one validator decision and advance the approval count."""
    validation, txn = await _svc(session, request).validate_transaction(txn_id, body)
    return {
        "data": ValidationResult(
            validation=ValidationOut.model_validate(validation),
            transaction=TransactionOut.model_validate(txn),
        )
    }


@router.get("/stats", response_model=DataResponse[ClearingHouseStats])
async def clearing_house_stats(session: AsyncSession = Depends(get_db)):
    return {"data": await _svc(session).stats()}


# ------------------------------------------------------------------
# Negotiations
# ------------------------------------------------------------------

@router.get("/negotiations", response_model=ListResponse[NegotiationOut])
async def list_negotiations(
    transaction_id: Optional[str] = Query(default=None, alias="transactionId"),
    filter_status: Optional[str] = Query(default=None, alias="status"),
    proposed_by_user_id: Optional[str] = Query(default=None, alias="proposedByUserId"),
    pagination: PaginationParams = Depends(),
    session: AsyncSession = Depends(get_db),
):
    items, total = await _svc(session).list_negotiations(
        pagination,
        transaction_id=transaction_id,
        status=filter_status,
        proposed_by_user_id=proposed_by_user_id,
    )
    return page_of([NegotiationOut.model_validate(n) for n in items], total, pagination)


@router.post("/negotiations", response_model=DataResponse[NegotiationOut], status_code=status.HTTP_201_CREATED)
async def create_negotiation(
    body: NegotiationCreate,
    request: Request,
    session: AsyncSession = Depends(get_db),
):
    negotiation = await _svc(session, request).create_negotiation(body)
    return {"data": NegotiationOut.model_validate(negotiation)}


@router.post("/negotiations/{negotiation_id}/respond", response_model=DataResponse[NegotiationOut])
async def respond_to_negotiation(
    negotiation_id: str,
    body: NegotiationRespond,
    request: Request,
    session: AsyncSession = Depends(get_db),
):
    """ACCEPT / REJECT close the round; COUNTER returns the new counter offer."""
    negotiation = await _svc(session, request).respond_to_negotiation(negotiation_id, body)
    return {"data": NegotiationOut.model_validate(negotiation)}


# ------------------------------------------------------------------
# Payments
# ------------------------------------------------------------------

@router.get("/payments", response_model=ListResponse[PaymentOut])
async def list_payments(
    transaction_id: Optional[str] = Query(default=None, alias="transactionId"),
    filter_status: Optional[str] = Query(default=None, alias="status"),
    payer_user_id: Optional[str] = Query(default=None, alias="payerUserId"),
    payee_user_id: Optional[str] = Query(default=None, alias="payeeUserId"),
    pagination: PaginationParams = Depends(),
    session: AsyncSession = Depends(get_db),
):
    items, total = await _svc(session).list_payments(
        pagination,
        transaction_id=transaction_id,
        status=filter_status,
        payer_user_id=payer_user_id,
        payee_user_id=payee_user_id,
    )
    return page_of([PaymentOut.model_validate(p) for p in items], total, pagination)


@router.post("/payments", response_model=DataResponse[PaymentOut], status_code=status.HTTP_201_CREATED)
async def create_payment(
    body: PaymentCreate,
    request: Request,
    session: AsyncSession = Depends(get_db),
):
    payment = await _svc(session, request).create_payment(body)
    return {"data": PaymentOut.model_validate(payment)}


@router.post("/payments/{payment_id}/status", response_model=DataResponse[PaymentOut])
async def update_payment_status(
    payment_id: str,
    body: PaymentStatusUpdate,
    request: Request,
    session: AsyncSession = Depends(get_db),
):
    payment = await _svc(session, request).update_payment_status(payment_id, body)
    return {"data": PaymentOut.model_validate(payment)}
