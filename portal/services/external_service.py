"""External services and OGC/OSDU adaptor operations.

Sync jobs are recorded, not executed: ``start_sync`` opens an
``in_progress`` log and the adaptor reports back through
``complete_sync`` / ``fail_sync``. Each step is mirrored in the adaptor
audit log.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from portal.core.clock import as_utc, utcnow
from portal.core.exceptions import ConflictError, NotFoundError, ValidationError
from portal.core.pagination import PaginationParams
from portal.domain.external_service import AdaptorAuditLog, AdaptorSyncLog, ExternalService
from portal.repositories.external_service import (
    AdaptorAuditLogRepository,
    AdaptorSyncLogRepository,
    ExternalServiceRepository,
)
from portal.schemas.external_service import (
    AdaptorAuditCreate,
    AdaptorStats,
    AuditStats,
    ExternalServiceCreate,
    ExternalServiceUpdate,
    ServiceTypeSummary,
    SyncComplete,
    SyncFail,
    SyncStart,
    SyncStats,
)
from portal.services import probe
from portal.services.probe import ProbeOutcome

logger = logging.getLogger(__name__)

ADAPTOR_TYPE = "OGC_OSDU_ADAPTOR"


class ExternalServiceService:
    def __init__(self, session: AsyncSession, client_id: str):
        self._repo = ExternalServiceRepository(session, client_id)
        self._syncs = AdaptorSyncLogRepository(session, client_id)
        self._audit = AdaptorAuditLogRepository(session, client_id)

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    async def list_services(
        self,
        pagination: PaginationParams,
        *,
        service_type: str | None = None,
        status: str | None = None,
    ):
        return await self._repo.list(
            offset=pagination.offset,
            limit=pagination.limit,
            order_by=pagination.sort_column,
            order=pagination.order,
            filters={"service_type": service_type, "status": status},
        )

    async def get_service(self, service_id: str) -> ExternalService:
        service = await self._repo.get_by_id(service_id)
        if not service:
            raise NotFoundError("External service", service_id)
        return service

    async def create_service(self, data: ExternalServiceCreate) -> ExternalService:
        service = await self._repo.create(**data.model_dump(exclude_none=True))
        logger.info("External service %s registered (%s)", service.id, service.service_type)
        return service

    async def update_service(self, service_id: str, data: ExternalServiceUpdate) -> ExternalService:
        await self.get_service(service_id)
        updated = await self._repo.update(
            service_id, **data.model_dump(exclude_none=True, exclude_unset=True)
        )
        return updated  # type: ignore[return-value]

    async def delete_service(self, service_id: str) -> None:
        if not await self._repo.soft_delete(service_id):
            raise NotFoundError("External service", service_id)

    async def summary(self) -> list[ServiceTypeSummary]:
        grouped: dict[str, dict[str, int]] = {}
        for service_type, status, count in await self._repo.summary():
            grouped.setdefault(service_type, {})[status] = count
        return [
            ServiceTypeSummary(service_type=t, total=sum(s.values()), by_status=s)
            for t, s in grouped.items()
        ]

    async def test_connection(self, service_id: str) -> ProbeOutcome:
        service = await self.get_service(service_id)
        headers, auth = probe.auth_headers(service.auth_type, service.credentials)
        outcome = await probe.probe_endpoint(service.endpoint, headers=headers, auth=auth)
        values: dict[str, Any] = {"status": "active" if outcome.success else "error"}
        if outcome.success:
            values["last_sync"] = utcnow()
        await self._repo.update(service_id, **values)
        logger.info("Connection test %s: %s", service.name, outcome.message)
        return outcome

    # ------------------------------------------------------------------
    # Sync jobs
    # ------------------------------------------------------------------

    async def _get_sync(self, service_id: str, sync_id: str) -> AdaptorSyncLog:
        log = await self._syncs.get_by_id(sync_id)
        if not log or log.external_service_id != service_id:
            raise NotFoundError("Sync log", sync_id)
        if log.status != "in_progress":
            raise ConflictError(f"Sync '{sync_id}' already finished with status {log.status}")
        return log

    async def _audit_action(self, service: ExternalService, action: str, params: dict | None = None) -> None:
        await self._audit.create(
            external_service_id=service.id,
            action=action,
            endpoint=service.endpoint,
            request_method="POST",
            request_params=params,
        )

    async def start_sync(self, service_id: str, data: SyncStart) -> AdaptorSyncLog:
        service = await self.get_service(service_id)
        if service.service_type != ADAPTOR_TYPE:
            raise ValidationError("Sync is only supported for OGC/OSDU adaptor services")
        if await self._syncs.in_progress(service_id):
            raise ConflictError("A sync is already in progress for this service")

        log = await self._syncs.create(
            external_service_id=service_id,
            sync_type=data.sync_type,
            status="in_progress",
            metadata=data.metadata,
        )
        await self._repo.update(service_id, status="syncing", last_sync=utcnow())
        await self._audit_action(service, "SYNC_START", {"syncId": log.id, "syncType": data.sync_type})
        logger.info("Sync %s started for %s (%s)", log.id, service.name, data.sync_type)
        return log

    async def complete_sync(self, service_id: str, sync_id: str, data: SyncComplete) -> AdaptorSyncLog:
        service = await self.get_service(service_id)
        await self._get_sync(service_id, sync_id)
        values: dict[str, Any] = {
            "status": "completed",
            "records_processed": data.records_processed,
            "completed_at": utcnow(),
        }
        if data.metadata is not None:
            values["metadata"] = data.metadata
        log = await self._syncs.update(sync_id, **values)
        await self._repo.update(service_id, status="active")
        await self._audit_action(
            service, "SYNC_COMPLETE", {"syncId": sync_id, "recordsProcessed": data.records_processed}
        )
        logger.info("Sync %s completed: %d records", sync_id, data.records_processed)
        return log  # type: ignore[return-value]

    async def fail_sync(self, service_id: str, sync_id: str, data: SyncFail) -> AdaptorSyncLog:
        service = await self.get_service(service_id)
        await self._get_sync(service_id, sync_id)
        errors = data.errors if not isinstance(data.errors, str) else [data.errors]
        log = await self._syncs.update(
            sync_id, status="failed", errors=errors, completed_at=utcnow()
        )
        await self._repo.update(service_id, status="error")
        await self._audit_action(service, "SYNC_FAILED", {"syncId": sync_id})
        logger.warning("Sync %s failed for %s", sync_id, service.name)
        return log  # type: ignore[return-value]

    async def sync_logs(self, service_id: str, limit: int = 50) -> list[AdaptorSyncLog]:
        await self.get_service(service_id)
        return await self._syncs.for_service(service_id, limit=limit)

    # ------------------------------------------------------------------
    # Adaptor audit log
    # ------------------------------------------------------------------

    async def record_audit(
        self,
        service_id: str,
        data: AdaptorAuditCreate,
        *,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> AdaptorAuditLog:
        await self.get_service(service_id)
        values = data.model_dump(exclude_none=True)
        values.setdefault("ip_address", ip_address)
        values.setdefault("user_agent", user_agent)
        return await self._audit.create(external_service_id=service_id, **values)

    async def audit_logs(
        self,
        service_id: str,
        *,
        action: str | None = None,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
        limit: int = 50,
    ) -> list[AdaptorAuditLog]:
        await self.get_service(service_id)
        return await self._audit.for_service(
            service_id,
            action=action,
            start=as_utc(start_date),
            end=as_utc(end_date),
            limit=limit,
        )

    # ------------------------------------------------------------------
    # Stats
    # ------------------------------------------------------------------

    async def stats(self, service_id: str, days: int = 30) -> AdaptorStats:
        await self.get_service(service_id)
        since = utcnow() - timedelta(days=days)

        entries = await self._audit.find_all(
            AdaptorAuditLog.external_service_id == service_id,
            AdaptorAuditLog.timestamp >= since,
        )
        total = len(entries)
        ok = sum(1 for e in entries if e.response_status is not None and 200 <= e.response_status < 400)
        failed = sum(1 for e in entries if e.response_status is not None and e.response_status >= 400)
        times = [e.response_time for e in entries if e.response_time is not None]
        audit = AuditStats(
            total_requests=total,
            successful_requests=ok,
            failed_requests=failed,
            average_response_time=round(sum(times) / len(times), 2) if times else 0.0,
            success_rate=round(ok / total * 100, 2) if total else 0.0,
        )

        all_syncs = await self._syncs.for_service(service_id, limit=None)
        window = [s for s in all_syncs if as_utc(s.started_at) >= since]
        completed = [s for s in window if s.status == "completed"]
        failed_syncs = sum(1 for s in window if s.status == "failed")
        sync = SyncStats(
            total_syncs=len(window),
            completed_syncs=len(completed),
            failed_syncs=failed_syncs,
            total_records_processed=sum(s.records_processed for s in completed),
            success_rate=round(len(completed) / len(window) * 100, 2) if window else 0.0,
            last_sync=all_syncs[0].started_at if all_syncs else None,
            currently_syncing=any(s.status == "in_progress" for s in all_syncs),
        )
        return AdaptorStats(period_days=days, audit=audit, sync=sync)
