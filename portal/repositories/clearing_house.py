"""Repositories for the clearing house."""

from __future__ import annotations

from sqlalchemy import or_

from portal.domain.clearing_house import (
    ClearingHouseTransaction,
    ContractNegotiation,
    TransactionAuditLog,
    TransactionPayment,
    TransactionValidation,
)
from portal.repositories.base import BaseRepository


class TransactionRepository(BaseRepository[ClearingHouseTransaction]):
    model = ClearingHouseTransaction

    @staticmethod
    def involving(user_id: str):
        """Clause matching transactions where the user is any party."""
        return or_(
            ClearingHouseTransaction.initiator_id == user_id,
            ClearingHouseTransaction.provider_id == user_id,
            ClearingHouseTransaction.consumer_id == user_id,
        )


class ValidationRepository(BaseRepository[TransactionValidation]):
    model = TransactionValidation

    async def approved_by(self, transaction_id: str, validator_id: str) -> TransactionValidation | None:
        return await self.find_one_by(
            transaction_id=transaction_id, validator_id=validator_id, status="APPROVED"
        )


class NegotiationRepository(BaseRepository[ContractNegotiation]):
    model = ContractNegotiation

    async def last_round(self, transaction_id: str) -> int:
        value = await self.max("round", ContractNegotiation.transaction_id == transaction_id)
        return value or 0


class PaymentRepository(BaseRepository[TransactionPayment]):
    model = TransactionPayment


class TransactionAuditLogRepository(BaseRepository[TransactionAuditLog]):
    model = TransactionAuditLog

    async def for_transaction(self, transaction_id: str, limit: int | None = None) -> list[TransactionAuditLog]:
        return await self.find_all(
            TransactionAuditLog.transaction_id == transaction_id,
            order_by="timestamp",
            limit=limit,
        )
