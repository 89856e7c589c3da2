"""Schemas for the compliance audit log and compliance reports."""

from datetime import datetime
from typing import Any, Literal

from pydantic import Field

from portal.schemas.common import CamelModel, metadata_field

AuditEventType = Literal[
    "RESOURCE_UPLOAD",
    "RESOURCE_DOWNLOAD",
    "RESOURCE_ACCESS",
    "RESOURCE_MODIFICATION",
    "RESOURCE_DELETION",
    "REQUEST_SUBMITTED",
    "REQUEST_APPROVED",
    "REQUEST_REJECTED",
    "REQUEST_DELIVERED",
    "USER_LOGIN",
    "USER_LOGOUT",
    "SYSTEM_CONFIGURATION",
    "SECURITY_INCIDENT",
]
SecurityLevel = Literal["PUBLIC", "INTERNAL", "CONFIDENTIAL", "SECRET"]
DataClassification = Literal["PUBLIC", "INTERNAL", "CONFIDENTIAL", "RESTRICTED"]
ReportFormat = Literal["ISO_27001", "PP_NO_5_2021"]


class ComplianceLogCreate(CamelModel):
    event_type: AuditEventType
    action: str = Field(min_length=1)
    entity_type: str = Field(min_length=1)
    entity_id: str | None = None
    user_id: str | None = None
    session_id: str | None = None
    resource_id: str | None = None
    contract_id: str | None = None
    security_level: SecurityLevel = "INTERNAL"
    data_classification: DataClassification = "INTERNAL"
    risk_score: int | None = Field(default=None, ge=0, le=100)
    previous_state: dict[str, Any] | None = None
    current_state: dict[str, Any] | None = None
    change_reason: str | None = None
    metadata: dict[str, Any] | None = None


class ComplianceLogOut(CamelModel):
    id: str
    event_type: str
    action: str
    entity_type: str
    entity_id: str | None = None
    user_id: str | None = None
    session_id: str | None = None
    ip_address: str | None = None
    user_agent: str | None = None
    resource_id: str | None = None
    contract_id: str | None = None
    security_level: str
    data_classification: str
    risk_score: int | None = None
    compliance_flags: list[str] = []
    previous_state: Any = None
    current_state: Any = None
    change_reason: str | None = None
    error_details: Any = None
    metadata: Any = metadata_field()
    integrity_hash: str
    timestamp: datetime


class IntegrityCheck(CamelModel):
    id: str
    integrity_verified: bool


# ---------------------------------------------------------------------------
# Report
# ---------------------------------------------------------------------------

class ReportPeriod(CamelModel):
    start_date: datetime
    end_date: datetime


class ReportMetadata(CamelModel):
    generated_at: datetime
    format: str
    period: ReportPeriod
    compliance: str


class ReportSummary(CamelModel):
    total_events: int
    events_by_type: dict[str, int]
    security_incidents: int
    average_risk_score: float | None = None
    high_risk_events: int


class ReportEntry(CamelModel):
    id: str
    timestamp: datetime
    event_type: str
    action: str
    user_id: str | None = None
    entity_type: str
    entity_id: str | None = None
    security_level: str
    data_classification: str
    risk_score: int | None = None
    integrity_verified: bool = False


class StandardStatus(CamelModel):
    name: str
    requirements: list[str]
    status: str


class IntegrityVerification(CamelModel):
    total_logs_verified: int
    integrity_passed: int
    integrity_failed: int
    integrity_rate: float


class ComplianceReport(CamelModel):
    report_metadata: ReportMetadata
    summary: ReportSummary
    audit_logs: list[ReportEntry]
    compliance_standards: dict[str, StandardStatus]
    integrity_verification: IntegrityVerification
