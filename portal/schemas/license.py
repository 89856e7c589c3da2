"""License schemas."""

from datetime import datetime
from typing import Any, Literal

from pydantic import Field

from portal.schemas.common import CamelModel, metadata_field

LicenseType = Literal["TRIAL", "STANDARD", "ENTERPRISE", "GOVERNMENT"]
LicenseLevel = Literal["BASIC", "PROFESSIONAL", "PREMIUM"]
UsageType = Literal["FEATURE_ACCESS", "API_CALL", "DATA_TRANSFER", "EXPORT"]


class LicenseCreate(CamelModel):
    license_name: str = Field(min_length=1)
    license_type: LicenseType
    license_level: LicenseLevel = "BASIC"
    expiration_date: datetime
    organization_id: str = Field(min_length=1)
    organization_name: str = Field(min_length=1)
    organization_type: str | None = None
    contact_email: str = Field(min_length=3)
    contact_person: str | None = None
    max_users: int | None = Field(default=None, ge=0)
    max_connectors: int | None = Field(default=None, ge=0)
    max_data_volume: int | None = Field(default=None, ge=0)
    max_api_requests: int | None = Field(default=None, ge=0)
    enabled_features: list[str] = []
    restricted_features: list[str] = []
    metadata: dict[str, Any] | None = None


class LicenseOut(CamelModel):
    """``activation_key`` is only disclosed at creation time (see LicenseIssued)."""

    id: str
    license_token: str
    license_name: str
    license_type: str
    license_level: str
    status: str
    is_active: bool
    issued_date: datetime
    activation_date: datetime | None = None
    expiration_date: datetime
    organization_id: str
    organization_name: str
    organization_type: str | None = None
    contact_email: str
    contact_person: str | None = None
    max_users: int | None = None
    max_connectors: int | None = None
    max_data_volume: int | None = None
    max_api_requests: int | None = None
    enabled_features: list[str] | None = None
    restricted_features: list[str] | None = None
    last_used: datetime | None = None
    usage_count: int
    metadata: Any = metadata_field()
    created_at: datetime
    updated_at: datetime


class LicenseIssued(LicenseOut):
    activation_key: str


class LicenseActivate(CamelModel):
    license_token: str
    activation_key: str


class LimitStatus(CamelModel):
    current: int
    limit: int | None = None
    exceeded: bool


class UsageStat(CamelModel):
    usage_type: str
    entries: int
    requests: int


class LicenseStatus(CamelModel):
    has_active_license: bool
    license: LicenseOut | None = None
    days_until_expiration: int | None = None
    is_expiring_soon: bool = False
    is_expired: bool = False
    limits: dict[str, LimitStatus] = {}
    limits_exceeded: bool = False
    usage_stats: list[UsageStat] = []


class LicenseValidateRequest(CamelModel):
    feature_name: str | None = None
    license_token: str | None = None


class LicenseValidation(CamelModel):
    valid: bool
    reason: str | None = None
    license_id: str | None = None
    license_type: str | None = None
    license_level: str | None = None
    expiration_date: datetime | None = None
    feature_name: str | None = None
    feature_allowed: bool | None = None
    limits: dict[str, LimitStatus] = {}
    limits_exceeded: bool = False


class UsageCreate(CamelModel):
    usage_type: UsageType
    feature_name: str | None = None
    license_token: str | None = None
    user_id: str | None = None
    api_endpoint: str | None = None
    data_processed: int | None = Field(default=None, ge=0)
    request_count: int = Field(default=1, ge=1)
    metadata: dict[str, Any] | None = None


class UsageLogOut(CamelModel):
    id: str
    license_id: str
    usage_type: str
    feature_name: str | None = None
    user_id: str | None = None
    api_endpoint: str | None = None
    data_processed: int | None = None
    request_count: int
    ip_address: str | None = None
    user_agent: str | None = None
    metadata: Any = metadata_field()
    timestamp: datetime
