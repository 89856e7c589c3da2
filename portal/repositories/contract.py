"""Repositories for service applications and contracts."""

from datetime import datetime

from portal.domain.contract import Contract, ServiceApplication
from portal.repositories.base import BaseRepository


class ServiceApplicationRepository(BaseRepository[ServiceApplication]):
    model = ServiceApplication


class ContractRepository(BaseRepository[Contract]):
    model = Contract

    async def list_active(self, now: datetime) -> list[Contract]:
        return await self.find_all(
            Contract.status == "active",
            Contract.valid_from <= now,
            Contract.valid_until >= now,
            order_by="valid_until",
            order="asc",
        )

    async def list_expired(self, now: datetime) -> list[Contract]:
        return await self.find_all(
            Contract.valid_until < now,
            Contract.status.in_(("active", "pending")),
            order_by="valid_until",
            order="asc",
        )
