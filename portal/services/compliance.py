"""Compliance audit log: tamper-evident event records and ISO 27001 /
PP No. 5/2021 reports over a time window.

Each entry is hashed (SHA-256 over its sorted JSON content, timestamp and
id excluded) when written; reports re-hash every entry and flag the ones
that no longer match.
"""

from __future__ import annotations

import hashlib
import json
import logging
from collections import Counter
from datetime import datetime
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from portal.core.clock import as_utc, utcnow
from portal.core.exceptions import NotFoundError, ValidationError
from portal.core.pagination import PaginationParams
from portal.domain.compliance import ComplianceAuditLog
from portal.repositories.compliance import ComplianceAuditLogRepository
from portal.schemas.compliance import (
    ComplianceLogCreate,
    ComplianceReport,
    IntegrityVerification,
    ReportEntry,
    ReportMetadata,
    ReportPeriod,
    ReportSummary,
    StandardStatus,
)

logger = logging.getLogger(__name__)

DEFAULT_FLAGS = ["ISO_27001", "PP_NO_5_2021_MIGAS"]
INCIDENT_FLAG = "SECURITY_INCIDENT"
HIGH_RISK_SCORE = 70
REPORT_LIMIT = 10000

REPORT_FLAGS = {"ISO_27001": "ISO_27001", "PP_NO_5_2021": "PP_NO_5_2021_MIGAS"}
REPORT_TITLES = {
    "ISO_27001": "ISO/IEC 27001:2013 Information Security Management",
    "PP_NO_5_2021": "PP No. 5/2021 tentang Pengelolaan Data Migas",
}
STANDARDS = {
    "ISO_27001": (
        "ISO/IEC 27001:2013 Information Security Management Systems",
        [
            "A.12.4.1 Event logging",
            "A.12.4.2 Protection of log information",
            "A.12.4.3 Administrator and operator logs",
            "A.12.4.4 Clock synchronisation",
        ],
    ),
    "PP_NO_5_2021": (
        "Peraturan Pemerintah No. 5 Tahun 2021 tentang Pengelolaan Data Migas",
        [
            "Pasal 8: Keamanan data migas",
            "Pasal 9: Audit trail sistem",
            "Pasal 10: Integritas data",
            "Pasal 11: Akses dan otorisasi",
        ],
    ),
}

_HASHED_FIELDS = (
    "event_type",
    "action",
    "entity_type",
    "entity_id",
    "user_id",
    "session_id",
    "ip_address",
    "user_agent",
    "resource_id",
    "contract_id",
    "security_level",
    "data_classification",
    "risk_score",
    "compliance_flags",
    "previous_state",
    "current_state",
    "change_reason",
    "error_details",
    "metadata",
)


def integrity_hash(values: dict[str, Any]) -> str:
    payload = json.dumps(
        {name: values.get(name) for name in _HASHED_FIELDS}, sort_keys=True, default=str
    )
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def verify_integrity(entry: ComplianceAuditLog) -> bool:
    values = {name: getattr(entry, name, None) for name in _HASHED_FIELDS}
    values["metadata"] = entry.metadata_
    return entry.integrity_hash == integrity_hash(values)


class ComplianceService:
    def __init__(self, session: AsyncSession, client_id: str):
        self._repo = ComplianceAuditLogRepository(session, client_id)

    async def record(self, *, event_type: str, action: str, entity_type: str, **values: Any) -> ComplianceAuditLog:
        """Append an entry; flags default to ISO 27001 + PP No. 5/2021."""
        values = {k: v for k, v in values.items() if v is not None}
        flags = list(values.pop("compliance_flags", DEFAULT_FLAGS))
        if event_type == "SECURITY_INCIDENT" and INCIDENT_FLAG not in flags:
            flags.insert(0, INCIDENT_FLAG)
        values.update(
            event_type=event_type,
            action=action,
            entity_type=entity_type,
            compliance_flags=flags,
        )
        values.setdefault("security_level", "INTERNAL")
        values.setdefault("data_classification", "INTERNAL")
        entry = await self._repo.create(**values, integrity_hash=integrity_hash(values), timestamp=utcnow())
        logger.debug("Compliance event %s %s on %s", event_type, action, entity_type)
        return entry

    async def create_log(
        self,
        data: ComplianceLogCreate,
        *,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> ComplianceAuditLog:
        values = data.model_dump(exclude_none=True)
        values["metadata"] = {**values.get("metadata", {}), "apiCreated": True}
        return await self.record(ip_address=ip_address, user_agent=user_agent, **values)

    async def list_logs(
        self,
        pagination: PaginationParams,
        *,
        event_type: str | None = None,
        user_id: str | None = None,
        entity_type: str | None = None,
        security_level: str | None = None,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
        compliance_flag: str | None = None,
    ):
        return await self._repo.list(
            offset=pagination.offset,
            limit=pagination.limit,
            order_by="timestamp",
            order=pagination.order,
            filters={
                "event_type": event_type,
                "user_id": user_id,
                "entity_type": entity_type,
                "security_level": security_level,
            },
            where=self._repo.conditions(
                start=as_utc(start_date), end=as_utc(end_date), compliance_flag=compliance_flag
            ),
        )

    async def get_log(self, log_id: str) -> ComplianceAuditLog:
        entry = await self._repo.get_by_id(log_id)
        if not entry:
            raise NotFoundError("Compliance audit log", log_id)
        return entry

    async def verify(self, log_id: str) -> bool:
        return verify_integrity(await self.get_log(log_id))

    async def report(self, start: datetime, end: datetime, report_format: str = "ISO_27001") -> ComplianceReport:
        start, end = as_utc(start), as_utc(end)
        if start >= end:
            raise ValidationError("startDate must be earlier than endDate")

        flagged = await self._repo.in_window(
            start, end, compliance_flag=REPORT_FLAGS[report_format], limit=REPORT_LIMIT
        )
        window = await self._repo.in_window(start, end)

        risks = [e.risk_score for e in window if e.risk_score is not None]
        summary = ReportSummary(
            total_events=len(window),
            events_by_type=dict(Counter(e.event_type for e in window)),
            security_incidents=sum(1 for e in window if INCIDENT_FLAG in (e.compliance_flags or [])),
            average_risk_score=round(sum(risks) / len(risks), 2) if risks else None,
            high_risk_events=sum(1 for r in risks if r > HIGH_RISK_SCORE),
        )

        entries = [
            ReportEntry.model_validate(e).model_copy(update={"integrity_verified": verify_integrity(e)})
            for e in flagged
        ]
        passed = sum(1 for e in entries if e.integrity_verified)
        failed = len(entries) - passed
        verification = IntegrityVerification(
            total_logs_verified=len(entries),
            integrity_passed=passed,
            integrity_failed=failed,
            integrity_rate=round(passed / len(entries) * 100, 2) if entries else 100.0,
        )
        if failed:
            logger.warning("Compliance report %s..%s: %d entries failed integrity", start, end, failed)

        status = "COMPLIANT" if not failed else "NON_COMPLIANT"
        return ComplianceReport(
            report_metadata=ReportMetadata(
                generated_at=utcnow(),
                format=report_format,
                period=ReportPeriod(start_date=start, end_date=end),
                compliance=REPORT_TITLES[report_format],
            ),
            summary=summary,
            audit_logs=entries,
            compliance_standards={
                key: StandardStatus(name=name, requirements=reqs, status=status)
                for key, (name, reqs) in STANDARDS.items()
            },
            integrity_verification=verification,
        )
