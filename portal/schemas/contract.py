"""Schemas for service applications and contracts."""

from datetime import datetime
from typing import Any, Literal

from pydantic import Field

from portal.schemas.common import CamelModel

ContractType = Literal["data_sharing", "service_agreement", "subscription", "nda"]
ContractStatus = Literal["draft", "pending", "active", "expired", "terminated"]
AppStatus = Literal["active", "inactive", "maintenance"]


class ServiceApplicationCreate(CamelModel):
    name: str = Field(min_length=1)
    description: str | None = None
    version: str | None = None
    endpoint: str | None = None
    provider_id: str | None = None
    status: AppStatus = "active"


class ServiceApplicationUpdate(CamelModel):
    name: str | None = Field(default=None, min_length=1)
    description: str | None = None
    version: str | None = None
    endpoint: str | None = None
    provider_id: str | None = None
    status: AppStatus | None = None


class ServiceApplicationOut(CamelModel):
    id: str
    client_id: str
    name: str
    description: str | None = None
    version: str | None = None
    endpoint: str | None = None
    provider_id: str | None = None
    status: str
    health_status: str
    last_health_check: datetime | None = None
    created_at: datetime
    updated_at: datetime


class ContractCreate(CamelModel):
    title: str = Field(min_length=1)
    description: str | None = None
    provider_id: str
    consumer_id: str
    service_application_id: str | None = None
    resource_id: str | None = None
    contract_type: ContractType
    status: ContractStatus = "draft"
    terms: dict[str, Any] | None = None
    valid_from: datetime
    valid_until: datetime


class ContractUpdate(CamelModel):
    title: str | None = Field(default=None, min_length=1)
    description: str | None = None
    service_application_id: str | None = None
    resource_id: str | None = None
    contract_type: ContractType | None = None
    status: ContractStatus | None = None
    terms: dict[str, Any] | None = None
    valid_from: datetime | None = None
    valid_until: datetime | None = None


class ContractOut(CamelModel):
    id: str
    client_id: str
    title: str
    description: str | None = None
    provider_id: str
    consumer_id: str
    service_application_id: str | None = None
    resource_id: str | None = None
    contract_type: str
    status: str
    terms: Any = None
    valid_from: datetime
    valid_until: datetime
    signed_at: datetime | None = None
    created_at: datetime
    updated_at: datetime
