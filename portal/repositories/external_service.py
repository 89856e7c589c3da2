"""Repositories for external services and their adaptor logs."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import func, select

from portal.domain.external_service import AdaptorAuditLog, AdaptorSyncLog, ExternalService
from portal.repositories.base import BaseRepository


class ExternalServiceRepository(BaseRepository[ExternalService]):
    model = ExternalService

    async def summary(self) -> list[tuple[str, str, int]]:
        """Rows of (service_type, status, count)."""
        q = (
            select(ExternalService.service_type, ExternalService.status, func.count())
            .where(*self._scope())
            .group_by(ExternalService.service_type, ExternalService.status)
            .order_by(ExternalService.service_type, ExternalService.status)
        )
        return [tuple(row) for row in (await self._session.execute(q)).all()]


class AdaptorSyncLogRepository(BaseRepository[AdaptorSyncLog]):
    model = AdaptorSyncLog

    async def in_progress(self, service_id: str) -> AdaptorSyncLog | None:
        return await self.find_one_by(external_service_id=service_id, status="in_progress")

    async def for_service(self, service_id: str, limit: int | None = 50) -> list[AdaptorSyncLog]:
        return await self.find_all(
            AdaptorSyncLog.external_service_id == service_id,
            order_by="started_at",
            limit=limit,
        )


class AdaptorAuditLogRepository(BaseRepository[AdaptorAuditLog]):
    model = AdaptorAuditLog

    async def for_service(
        self,
        service_id: str,
        *,
        action: str | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
        limit: int = 50,
    ) -> list[AdaptorAuditLog]:
        where = [AdaptorAuditLog.external_service_id == service_id]
        if action:
            where.append(AdaptorAuditLog.action == action)
        if start and end:
            where.append(AdaptorAuditLog.timestamp.between(start, end))
        return await self.find_all(*where, order_by="timestamp", limit=limit)
