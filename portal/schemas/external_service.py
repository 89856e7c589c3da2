"""Schemas for external services, adaptor sync jobs and adaptor audit logs."""

from datetime import datetime
from typing import Any, Literal

from pydantic import Field

from portal.schemas.common import CamelModel, metadata_field

ServiceType = Literal["IDS_BROKER", "DATA_CATALOG", "AUTHENTICATION", "OGC_OSDU_ADAPTOR", "OTHER"]
AuthType = Literal["NONE", "API_KEY", "OAUTH2", "CERTIFICATE", "BASIC"]
ServiceStatus = Literal["active", "inactive", "syncing", "error"]
SyncType = Literal["FULL", "INCREMENTAL", "METADATA"]


class ExternalServiceCreate(CamelModel):
    name: str = Field(min_length=1)
    description: str | None = None
    service_type: ServiceType
    endpoint: str = Field(min_length=1)
    auth_type: AuthType = "NONE"
    credentials: dict[str, Any] | None = None
    status: ServiceStatus = "inactive"
    sync_interval: int | None = Field(default=None, ge=1)
    metadata: dict[str, Any] | None = None


class ExternalServiceUpdate(CamelModel):
    name: str | None = Field(default=None, min_length=1)
    description: str | None = None
    service_type: ServiceType | None = None
    endpoint: str | None = None
    auth_type: AuthType | None = None
    credentials: dict[str, Any] | None = None
    status: ServiceStatus | None = None
    sync_interval: int | None = Field(default=None, ge=1)
    metadata: dict[str, Any] | None = None


class ExternalServiceOut(CamelModel):
    """Credentials are write-only and never serialized."""

    id: str
    client_id: str
    name: str
    description: str | None = None
    service_type: str
    endpoint: str
    auth_type: str
    status: str
    last_sync: datetime | None = None
    sync_interval: int | None = None
    metadata: Any = metadata_field()
    created_at: datetime
    updated_at: datetime


class ServiceTypeSummary(CamelModel):
    service_type: str
    total: int
    by_status: dict[str, int]


# ---------------------------------------------------------------------------
# Sync jobs
# ---------------------------------------------------------------------------

class SyncStart(CamelModel):
    sync_type: SyncType = "FULL"
    metadata: dict[str, Any] | None = None


class SyncComplete(CamelModel):
    records_processed: int = Field(default=0, ge=0)
    metadata: dict[str, Any] | None = None


class SyncFail(CamelModel):
    errors: list[Any] | dict[str, Any] | str


class SyncLogOut(CamelModel):
    id: str
    external_service_id: str
    sync_type: str
    status: str
    records_processed: int
    errors: Any = None
    metadata: Any = metadata_field()
    started_at: datetime
    completed_at: datetime | None = None


# ---------------------------------------------------------------------------
# Adaptor audit log
# ---------------------------------------------------------------------------

class AdaptorAuditCreate(CamelModel):
    action: str = Field(min_length=1)
    endpoint: str | None = None
    request_method: str | None = None
    request_params: dict[str, Any] | None = None
    response_status: int | None = None
    response_time: float | None = Field(default=None, ge=0)
    user_id: str | None = None
    user_agent: str | None = None
    ip_address: str | None = None


class AdaptorAuditOut(CamelModel):
    id: str
    external_service_id: str
    user_id: str | None = None
    action: str
    endpoint: str | None = None
    request_method: str | None = None
    request_params: Any = None
    response_status: int | None = None
    response_time: float | None = None
    user_agent: str | None = None
    ip_address: str | None = None
    timestamp: datetime


# ---------------------------------------------------------------------------
# Stats
# ---------------------------------------------------------------------------

class AuditStats(CamelModel):
    total_requests: int
    successful_requests: int
    failed_requests: int
    average_response_time: float
    success_rate: float


class SyncStats(CamelModel):
    total_syncs: int
    completed_syncs: int
    failed_syncs: int
    total_records_processed: int
    success_rate: float
    last_sync: datetime | None = None
    currently_syncing: bool


class AdaptorStats(CamelModel):
    period_days: int
    audit: AuditStats
    sync: SyncStats
