"""Clearing-house workflow.

A transaction is INITIATED, optionally negotiated (NEGOTIATING ->
PENDING_APPROVAL), validated until ``required_approvals`` approvals are
collected (APPROVED), paid (EXECUTING) and finally COMPLETED once every
payment settles. A single rejection or failed payment ends it.

Every state change appends a row to the transaction audit log. Each row
carries a SHA-256 integrity hash over (transaction id, event type,
description, timestamp).
"""

from __future__ import annotations

import hashlib
import json
import logging
from datetime import datetime, timedelta
from typing import Any

from pydantic_core import to_jsonable_python
from sqlalchemy.ext.asyncio import AsyncSession

from portal.core.clock import as_utc, utcnow
from portal.core.exceptions import ConflictError, NotFoundError, ValidationError
from portal.core.pagination import PaginationParams
from portal.domain.clearing_house import (
    ClearingHouseTransaction,
    ContractNegotiation,
    TransactionAuditLog,
    TransactionPayment,
    TransactionValidation,
)
from portal.repositories.clearing_house import (
    NegotiationRepository,
    PaymentRepository,
    TransactionAuditLogRepository,
    TransactionRepository,
    ValidationRepository,
)
from portal.repositories.participant import ParticipantRepository
from portal.schemas.clearing_house import (
    ClearingHouseStats,
    NegotiationCreate,
    NegotiationRespond,
    PaymentCreate,
    PaymentStatusUpdate,
    TransactionCreate,
    TransactionUpdate,
    TypeBreakdown,
    ValidationCreate,
)

logger = logging.getLogger(__name__)

PENDING_STATUSES = ("INITIATED", "PENDING_VALIDATION", "VALIDATING", "NEGOTIATING", "PENDING_APPROVAL")
TERMINAL_STATUSES = ("COMPLETED", "FAILED", "REJECTED", "CANCELLED")
FAILED_STATUSES = ("FAILED", "REJECTED", "CANCELLED")
DELETABLE_STATUSES = ("INITIATED", "PENDING_VALIDATION", "REJECTED", "CANCELLED")
PAYABLE_STATUSES = ("APPROVED", "EXECUTING")

# Allowed payment status moves; FAILED and REFUNDED are final
PAYMENT_TRANSITIONS = {
    "PENDING": ("PROCESSING", "COMPLETED", "FAILED"),
    "PROCESSING": ("COMPLETED", "FAILED"),
    "COMPLETED": ("REFUNDED",),
    "FAILED": (),
    "REFUNDED": (),
}

_DECISION_STATUS = {"APPROVE": "APPROVED", "REJECT": "REJECTED", "CONDITIONAL": "CONDITIONAL"}
COUNTER_OFFER_VALIDITY = timedelta(days=7)

# Columns captured in audit previous/new state snapshots
_SNAPSHOT_FIELDS = (
    "status",
    "current_approvals",
    "required_approvals",
    "contract_terms",
    "total_amount",
    "currency",
    "priority",
    "completed_at",
    "error_details",
)


def integrity_hash(transaction_id: str, event_type: str, description: str, timestamp: datetime) -> str:
    payload = json.dumps(
        {
            "transactionId": transaction_id,
            "eventType": event_type,
            "description": description,
            "timestamp": as_utc(timestamp).isoformat(),
        },
        sort_keys=True,
    )
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def verify_integrity(entry: TransactionAuditLog) -> bool:
    return entry.integrity_hash == integrity_hash(
        entry.transaction_id, entry.event_type, entry.event_description, entry.timestamp
    )


def _snapshot(txn: ClearingHouseTransaction) -> dict[str, Any]:
    return {name: to_jsonable_python(getattr(txn, name)) for name in _SNAPSHOT_FIELDS}


class ClearingHouseService:
    def __init__(self, session: AsyncSession, client_id: str, actor_ip: str | None = None):
        self._txns = TransactionRepository(session, client_id)
        self._validations = ValidationRepository(session, client_id)
        self._negotiations = NegotiationRepository(session, client_id)
        self._payments = PaymentRepository(session, client_id)
        self._audit = TransactionAuditLogRepository(session, client_id)
        self._participants = ParticipantRepository(session, client_id)
        self._actor_ip = actor_ip

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _log(
        self,
        txn_id: str,
        event_type: str,
        description: str,
        *,
        actor: str | None = None,
        previous_state: dict | None = None,
        new_state: dict | None = None,
        changed_fields: list[str] | None = None,
        metadata: dict | None = None,
        error_details: Any = None,
    ) -> TransactionAuditLog:
        now = utcnow()
        return await self._audit.create(
            transaction_id=txn_id,
            event_type=event_type,
            event_description=description,
            actor_user_id=actor,
            actor_ip_address=self._actor_ip,
            previous_state=previous_state,
            new_state=new_state,
            changed_fields=changed_fields,
            metadata=metadata,
            error_details=error_details,
            integrity_hash=integrity_hash(txn_id, event_type, description, now),
            timestamp=now,
        )

    async def _require_participants(self, **ids: str | None) -> None:
        missing = [
            f"{label} '{value}' does not exist"
            for label, value in ids.items()
            if value and not await self._participants.exists(value)
        ]
        if missing:
            raise ValidationError("Unknown participant reference", errors=missing)

    async def get_transaction(self, txn_id: str) -> ClearingHouseTransaction:
        txn = await self._txns.get_by_id(txn_id)
        if not txn:
            raise NotFoundError("Transaction", txn_id)
        return txn

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    async def create_transaction(self, data: TransactionCreate) -> ClearingHouseTransaction:
        await self._require_participants(
            initiatorId=data.initiator_id,
            providerId=data.provider_id,
            consumerId=data.consumer_id,
        )
        values = data.model_dump(exclude_none=True)
        for key in ("expected_completion", "expires_at"):
            if key in values:
                values[key] = as_utc(values[key])
        txn = await self._txns.create(
            **values,
            status="INITIATED",
            current_approvals=0,
            initiated_at=utcnow(),
        )
        await self._log(
            txn.id,
            "TRANSACTION_INITIATED",
            f"{txn.transaction_type} transaction initiated",
            actor=data.initiator_id,
            new_state=_snapshot(txn),
        )
        logger.info("Transaction %s initiated (%s)", txn.id, txn.transaction_type)
        return txn

    async def list_transactions(
        self,
        pagination: PaginationParams,
        *,
        status: str | None = None,
        transaction_type: str | None = None,
        user_id: str | None = None,
    ):
        return await self._txns.list(
            offset=pagination.offset,
            limit=pagination.limit,
            order_by=pagination.sort_column,
            order=pagination.order,
            filters={"status": status, "transaction_type": transaction_type},
            where=[self._txns.involving(user_id)] if user_id else None,
        )

    async def transaction_detail(self, txn_id: str) -> dict[str, Any]:
        txn = await self.get_transaction(txn_id)
        return {
            "transaction": txn,
            "validations": await self._validations.find_all(
                filters={"transaction_id": txn_id}, order_by="requested_at"
            ),
            "payments": await self._payments.find_all(
                filters={"transaction_id": txn_id}, order_by="requested_at"
            ),
            "negotiations": await self._negotiations.find_all(
                filters={"transaction_id": txn_id}, order_by="round"
            ),
            "audit_logs": await self._audit.for_transaction(txn_id, limit=50),
        }

    async def update_transaction(self, txn_id: str, data: TransactionUpdate) -> ClearingHouseTransaction:
        txn = await self.get_transaction(txn_id)
        previous = _snapshot(txn)
        previous_status = txn.status

        values = data.model_dump(exclude_none=True, exclude_unset=True)
        for key in ("expected_completion", "expires_at"):
            if key in values:
                values[key] = as_utc(values[key])
        if values.get("status") == "COMPLETED" and previous_status != "COMPLETED":
            values["completed_at"] = utcnow()

        changed = [
            key for key, value in values.items()
            if getattr(txn, "metadata_" if key == "metadata" else key) != value
        ]
        updated = await self._txns.update(txn_id, **values)
        await self._log(
            txn_id,
            "STATUS_CHANGED",
            f"Transaction updated: {previous_status} -> {updated.status}",
            previous_state=previous,
            new_state=_snapshot(updated),
            changed_fields=changed,
        )
        return updated  # type: ignore[return-value]

    async def delete_transaction(self, txn_id: str) -> None:
        txn = await self.get_transaction(txn_id)
        if txn.status not in DELETABLE_STATUSES:
            raise ValidationError(f"Cannot cancel a transaction in status {txn.status}")
        previous = _snapshot(txn)
        await self._txns.soft_delete(txn_id)
        await self._log(
            txn_id,
            "TRANSACTION_CANCELLED",
            f"Transaction removed while {txn.status}",
            previous_state=previous,
        )
        logger.info("Transaction %s cancelled", txn_id)

    async def audit_logs(self, txn_id: str) -> list[TransactionAuditLog]:
        # Audit history stays readable after the transaction is removed
        if not await self._txns.find_one_by(include_deleted=True, id=txn_id):
            raise NotFoundError("Transaction", txn_id)
        return await self._audit.for_transaction(txn_id)

    async def stats(self) -> ClearingHouseStats:
        T = ClearingHouseTransaction
        total = await self._txns.count()
        completed = await self._txns.count(T.status == "COMPLETED")
        counts = await self._txns.count_by("transaction_type")
        values = await self._txns.sum_by("transaction_type", "total_amount")
        return ClearingHouseStats(
            total_transactions=total,
            pending_transactions=await self._txns.count(T.status.in_(PENDING_STATUSES)),
            completed_transactions=completed,
            failed_transactions=await self._txns.count(T.status.in_(FAILED_STATUSES)),
            total_value=await self._txns.sum("total_amount", T.status == "COMPLETED"),
            success_rate=round(completed / total * 100, 2) if total else 0.0,
            by_type={
                t: TypeBreakdown(count=c, total_value=values.get(t, 0.0)) for t, c in counts.items()
            },
            validations_by_status=await self._validations.count_by("status"),
            payments_by_status=await self._payments.count_by("status"),
            payments_by_method=await self._payments.count_by("payment_method"),
        )

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    async def validate_transaction(
        self, txn_id: str, data: ValidationCreate
    ) -> tuple[TransactionValidation, ClearingHouseTransaction]:
        txn = await self.get_transaction(txn_id)
        if txn.status not in PENDING_STATUSES:
            raise ValidationError(f"Transaction is already {txn.status}")
        await self._require_participants(validatorId=data.validator_id)
        if await self._validations.approved_by(txn_id, data.validator_id):
            raise ConflictError("Validator has already approved this transaction")

        previous = _snapshot(txn)
        now = utcnow()
        validation = await self._validations.create(
            transaction_id=txn_id,
            **data.model_dump(exclude_none=True),
            status=_DECISION_STATUS[data.decision],
            requested_at=now,
            responded_at=now,
        )
        await self._log(
            txn_id,
            "VALIDATION_COMPLETED",
            f"{data.validation_type} validation by {data.validator_role}: {data.decision}",
            actor=data.validator_id,
            metadata={"validationId": validation.id, "decision": data.decision},
        )

        values: dict[str, Any] = {}
        if data.decision == "APPROVE":
            approvals = txn.current_approvals + 1
            values["current_approvals"] = approvals
            if approvals >= txn.required_approvals:
                values["status"] = "APPROVED"
            elif txn.status in ("INITIATED", "PENDING_VALIDATION"):
                values["status"] = "VALIDATING"
        elif data.decision == "REJECT":
            values["status"] = "REJECTED"
            values["error_details"] = {"reason": data.reasoning or "Rejected by validator",
                                       "validatorId": data.validator_id}
        elif txn.status in ("INITIATED", "PENDING_VALIDATION"):
            values["status"] = "VALIDATING"

        if values:
            txn = await self._txns.update(txn_id, **values)  # type: ignore[assignment]

        if values.get("status") == "APPROVED":
            await self._log(
                txn_id,
                "TRANSACTION_APPROVED",
                f"Transaction approved with {txn.current_approvals}/{txn.required_approvals} approvals",
                actor=data.validator_id,
                previous_state=previous,
                new_state=_snapshot(txn),
            )
            logger.info("Transaction %s approved", txn_id)
        elif values.get("status") == "REJECTED":
            await self._log(
                txn_id,
                "TRANSACTION_FAILED",
                f"Transaction rejected by {data.validator_role}",
                actor=data.validator_id,
                previous_state=previous,
                new_state=_snapshot(txn),
                error_details=values["error_details"],
            )
            logger.info("Transaction %s rejected by %s", txn_id, data.validator_id)
        return validation, txn

    # ------------------------------------------------------------------
    # Negotiation
    # ------------------------------------------------------------------

    async def create_negotiation(self, data: NegotiationCreate) -> ContractNegotiation:
        txn = await self.get_transaction(data.transaction_id)
        if txn.status in TERMINAL_STATUSES:
            raise ValidationError(f"Cannot negotiate a {txn.status} transaction")
        await self._require_participants(proposedByUserId=data.proposed_by_user_id)

        values = data.model_dump(exclude_none=True)
        if "valid_until" in values:
            values["valid_until"] = as_utc(values["valid_until"])
        negotiation = await self._negotiations.create(
            **values,
            round=await self._negotiations.last_round(txn.id) + 1,
            status="OPEN",
            proposed_at=utcnow(),
        )
        if txn.status in ("INITIATED", "PENDING_VALIDATION"):
            await self._txns.update(txn.id, status="NEGOTIATING")
        await self._log(
            txn.id,
            "NEGOTIATION_STARTED",
            f"{negotiation.proposal_type} submitted (round {negotiation.round})",
            actor=data.proposed_by_user_id,
            metadata={"negotiationId": negotiation.id, "round": negotiation.round},
        )
        return negotiation

    async def list_negotiations(
        self,
        pagination: PaginationParams,
        *,
        transaction_id: str | None = None,
        status: str | None = None,
        proposed_by_user_id: str | None = None,
    ):
        return await self._negotiations.list(
            offset=pagination.offset,
            limit=pagination.limit,
            order_by=pagination.sort_column,
            order=pagination.order,
            filters={
                "transaction_id": transaction_id,
                "status": status,
                "proposed_by_user_id": proposed_by_user_id,
            },
        )

    async def respond_to_negotiation(
        self, negotiation_id: str, data: NegotiationRespond
    ) -> ContractNegotiation:
        negotiation = await self._negotiations.get_by_id(negotiation_id)
        if not negotiation:
            raise NotFoundError("Negotiation", negotiation_id)
        if negotiation.status != "OPEN":
            raise ValidationError(f"Negotiation is already {negotiation.status}")
        if data.response_type == "COUNTER" and not data.counter_offer:
            raise ValidationError("counterOffer is required for a COUNTER response")
        await self._require_participants(responseByUserId=data.response_by_user_id)
        txn = await self.get_transaction(negotiation.transaction_id)
        if txn.status in TERMINAL_STATUSES:
            raise ValidationError(f"Cannot respond to a negotiation on a {txn.status} transaction")

        now = utcnow()
        response = {
            "response_by_user_id": data.response_by_user_id,
            "response_type": data.response_type,
            "response_notes": data.response_notes,
            "counter_offer": data.counter_offer,
            "responded_at": now,
        }
        meta = {"negotiationId": negotiation.id, "responseType": data.response_type}

        if data.response_type == "ACCEPT":
            negotiation = await self._negotiations.update(negotiation.id, status="ACCEPTED", **response)
            previous = _snapshot(txn)
            values: dict[str, Any] = {"contract_terms": negotiation.proposed_terms}
            # Already approved or executing transactions keep their status
            if txn.status in PENDING_STATUSES:
                values["status"] = "PENDING_APPROVAL"
            txn = await self._txns.update(txn.id, **values)
            await self._log(
                txn.id,
                "PROPOSAL_RESPONDED",
                f"Round {negotiation.round} proposal accepted",
                actor=data.response_by_user_id,
                previous_state=previous,
                new_state=_snapshot(txn),
                metadata=meta,
            )
            return negotiation  # type: ignore[return-value]

        if data.response_type == "REJECT":
            negotiation = await self._negotiations.update(negotiation.id, status="REJECTED", **response)
            await self._log(
                txn.id,
                "PROPOSAL_RESPONDED",
                f"Round {negotiation.round} proposal rejected",
                actor=data.response_by_user_id,
                metadata=meta,
            )
            return negotiation  # type: ignore[return-value]

        await self._negotiations.update(negotiation.id, status="COUNTER_OFFERED", **response)
        counter = await self._negotiations.create(
            transaction_id=txn.id,
            contract_id=negotiation.contract_id,
            round=negotiation.round + 1,
            proposed_by_user_id=data.response_by_user_id,
            proposal_type="COUNTER_OFFER",
            proposed_terms=data.counter_offer,
            previous_terms=negotiation.proposed_terms,
            payment_terms=negotiation.payment_terms,
            valid_until=now + COUNTER_OFFER_VALIDITY,
            status="OPEN",
            proposed_at=now,
        )
        await self._log(
            txn.id,
            "PROPOSAL_SUBMITTED",
            f"Counter offer submitted (round {counter.round})",
            actor=data.response_by_user_id,
            metadata={**meta, "counterNegotiationId": counter.id},
        )
        return counter

    # ------------------------------------------------------------------
    # Payments
    # ------------------------------------------------------------------

    async def create_payment(self, data: PaymentCreate) -> TransactionPayment:
        txn = await self.get_transaction(data.transaction_id)
        if txn.status not in PAYABLE_STATUSES:
            raise ValidationError(
                f"Payments require an APPROVED or EXECUTING transaction (current: {txn.status})"
            )
        await self._require_participants(
            payerUserId=data.payer_user_id, payeeUserId=data.payee_user_id
        )

        now = utcnow()
        fees = [f for f in (data.processing_fee, data.brokerage_fee, data.network_fee) if f is not None]
        payment_hash = hashlib.sha256(
            f"{txn.id}:{data.amount}:{data.currency}:{data.payer_user_id}:"
            f"{data.payee_user_id}:{now.isoformat()}".encode("utf-8")
        ).hexdigest()
        payment = await self._payments.create(
            **data.model_dump(exclude_none=True),
            total_fees=sum(fees) if fees else None,
            status="PENDING",
            payment_hash=payment_hash,
            requested_at=now,
        )
        previous = _snapshot(txn)
        if txn.status != "EXECUTING":
            txn = await self._txns.update(txn.id, status="EXECUTING")  # type: ignore[assignment]
        await self._log(
            txn.id,
            "PAYMENT_INITIATED",
            f"Payment of {data.amount} {data.currency} initiated via {data.payment_method}",
            actor=data.payer_user_id,
            previous_state=previous,
            new_state=_snapshot(txn),
            metadata={"paymentId": payment.id},
        )
        return payment

    async def list_payments(
        self,
        pagination: PaginationParams,
        *,
        transaction_id: str | None = None,
        status: str | None = None,
        payer_user_id: str | None = None,
        payee_user_id: str | None = None,
    ):
        return await self._payments.list(
            offset=pagination.offset,
            limit=pagination.limit,
            order_by=pagination.sort_column,
            order=pagination.order,
            filters={
                "transaction_id": transaction_id,
                "status": status,
                "payer_user_id": payer_user_id,
                "payee_user_id": payee_user_id,
            },
        )

    async def update_payment_status(self, payment_id: str, data: PaymentStatusUpdate) -> TransactionPayment:
        payment = await self._payments.get_by_id(payment_id)
        if not payment:
            raise NotFoundError("Payment", payment_id)
        if data.status not in PAYMENT_TRANSITIONS[payment.status]:
            raise ValidationError(f"Cannot move payment from {payment.status} to {data.status}")

        now = utcnow()
        values: dict[str, Any] = {"status": data.status}
        if data.gateway_transaction_id:
            values["gateway_transaction_id"] = data.gateway_transaction_id
        if data.gateway_response is not None:
            values["gateway_response"] = data.gateway_response
        if data.status == "PROCESSING":
            values["processed_at"] = now
        elif data.status == "COMPLETED":
            values["settled_at"] = now
            if payment.processed_at is None:
                values["processed_at"] = now
        payment = await self._payments.update(payment_id, **values)  # type: ignore[assignment]
        txn_id = payment.transaction_id

        if data.status == "COMPLETED":
            await self._log(
                txn_id,
                "PAYMENT_COMPLETED",
                f"Payment {payment_id} settled",
                metadata={"paymentId": payment_id},
            )
            siblings = await self._payments.find_all(filters={"transaction_id": txn_id})
            txn = await self.get_transaction(txn_id)
            if txn.status == "EXECUTING" and all(p.status == "COMPLETED" for p in siblings):
                previous = _snapshot(txn)
                txn = await self._txns.update(txn_id, status="COMPLETED", completed_at=now)  # type: ignore[assignment]
                await self._log(
                    txn_id,
                    "TRANSACTION_COMPLETED",
                    "All payments settled; transaction completed",
                    previous_state=previous,
                    new_state=_snapshot(txn),
                )
                logger.info("Transaction %s completed", txn_id)
        elif data.status == "FAILED":
            error = data.error_details or {"reason": "Payment failed", "paymentId": payment_id}
            txn = await self.get_transaction(txn_id)
            if txn.status in TERMINAL_STATUSES:
                return payment
            previous = _snapshot(txn)
            txn = await self._txns.update(txn_id, status="FAILED", error_details=error)  # type: ignore[assignment]
            await self._log(
                txn_id,
                "TRANSACTION_FAILED",
                f"Payment {payment_id} failed",
                previous_state=previous,
                new_state=_snapshot(txn),
                error_details=error,
            )
            logger.warning("Transaction %s failed on payment %s", txn_id, payment_id)
        return payment
