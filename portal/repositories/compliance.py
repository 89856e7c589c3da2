"""Compliance audit log repository."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import ColumnElement, String, cast

from portal.domain.compliance import ComplianceAuditLog
from portal.repositories.base import BaseRepository


class ComplianceAuditLogRepository(BaseRepository[ComplianceAuditLog]):
    model = ComplianceAuditLog

    def conditions(
        self,
        *,
        start: datetime | None = None,
        end: datetime | None = None,
        compliance_flag: str | None = None,
    ) -> list[ColumnElement]:
        where: list[ColumnElement] = []
        if start:
            where.append(ComplianceAuditLog.timestamp >= start)
        if end:
            where.append(ComplianceAuditLog.timestamp <= end)
        if compliance_flag:
            # Flags are a JSON array; match the quoted element in its text form
            flags = cast(ComplianceAuditLog.compliance_flags, String)
            where.append(flags.like(f'%"{compliance_flag}"%'))
        return where

    async def in_window(
        self,
        start: datetime,
        end: datetime,
        *,
        compliance_flag: str | None = None,
        limit: int | None = None,
    ) -> list[ComplianceAuditLog]:
        return await self.find_all(
            *self.conditions(start=start, end=end, compliance_flag=compliance_flag),
            order_by="timestamp",
            limit=limit,
        )
