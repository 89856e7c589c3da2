"""Schemas for resources, data requests, brokers, routes and containers."""

from datetime import datetime
from typing import Any, Literal

from pydantic import Field

from portal.schemas.common import CamelModel, metadata_field

ResourceType = Literal["GeoJSON", "CSV", "Seismic", "WellLog", "Production", "Other"]
AccessPolicy = Literal["restricted", "public", "contract_only"]
RequestType = Literal["GeoJSON", "Seismic", "Production", "Other"]
RequestStatus = Literal["pending", "approved", "delivered", "rejected"]


# ---------------------------------------------------------------------------
# Resources
# ---------------------------------------------------------------------------

class ResourceCreate(CamelModel):
    provider_id: str
    name: str = Field(min_length=1)
    description: str | None = None
    type: ResourceType
    storage_path: str | None = None
    access_policy: AccessPolicy = "restricted"
    metadata: dict[str, Any] | None = None
    status: Literal["available", "unused"] = "available"


class ResourceUpdate(CamelModel):
    provider_id: str | None = None
    name: str | None = Field(default=None, min_length=1)
    description: str | None = None
    type: ResourceType | None = None
    storage_path: str | None = None
    access_policy: AccessPolicy | None = None
    metadata: dict[str, Any] | None = None
    status: Literal["available", "unused"] | None = None


class ResourceOut(CamelModel):
    id: str
    client_id: str
    provider_id: str
    name: str
    description: str | None = None
    type: str
    storage_path: str | None = None
    access_policy: str
    metadata: Any = metadata_field()
    status: str
    created_at: datetime
    updated_at: datetime


# ---------------------------------------------------------------------------
# Data requests
# ---------------------------------------------------------------------------

class DataRequestCreate(CamelModel):
    requester_id: str
    provider_id: str
    resource_id: str
    request_type: RequestType
    purpose: str | None = None
    destination: str | None = None


class DataRequestUpdate(CamelModel):
    request_type: RequestType | None = None
    status: RequestStatus | None = None
    purpose: str | None = None
    destination: str | None = None


class DataRequestStatusUpdate(CamelModel):
    status: RequestStatus


class DataRequestOut(CamelModel):
    id: str
    client_id: str
    requester_id: str
    provider_id: str
    resource_id: str
    request_type: str
    status: str
    purpose: str | None = None
    destination: str | None = None
    created_at: datetime
    updated_at: datetime


# ---------------------------------------------------------------------------
# Brokers
# ---------------------------------------------------------------------------

class BrokerCreate(CamelModel):
    name: str = Field(min_length=1)
    url: str = Field(min_length=1)
    status: Literal["registered", "unregistered"] = "registered"
    request_id: str | None = None
    transaction_id: str | None = None
    validation_status: Literal["pending", "approved", "rejected"] = "pending"
    notes: str | None = None


class BrokerUpdate(CamelModel):
    name: str | None = None
    url: str | None = None
    status: Literal["registered", "unregistered"] | None = None
    transaction_id: str | None = None
    validation_status: Literal["pending", "approved", "rejected"] | None = None
    notes: str | None = None


class BrokerOut(CamelModel):
    id: str
    client_id: str
    name: str
    url: str
    status: str
    request_id: str | None = None
    transaction_id: str | None = None
    validation_status: str
    notes: str | None = None
    created_at: datetime
    updated_at: datetime


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------

class DataRouteCreate(CamelModel):
    name: str = Field(min_length=1)
    endpoint: str | None = None
    provider_id: str
    consumer_id: str
    resource_id: str | None = None
    status: Literal["active", "inactive"] = "active"
    valid_until: datetime | None = None


class DataRouteUpdate(CamelModel):
    name: str | None = None
    endpoint: str | None = None
    resource_id: str | None = None
    status: Literal["active", "inactive"] | None = None
    valid_until: datetime | None = None


class DataRouteOut(CamelModel):
    id: str
    client_id: str
    name: str
    endpoint: str | None = None
    provider_id: str
    consumer_id: str
    resource_id: str | None = None
    status: str
    valid_until: datetime | None = None
    created_at: datetime
    updated_at: datetime


# ---------------------------------------------------------------------------
# Containers
# ---------------------------------------------------------------------------

class ContainerCreate(CamelModel):
    name: str = Field(min_length=1)
    service_name: str = Field(min_length=1)
    image: str | None = None
    provider_id: str | None = None
    status: Literal["running", "stopped", "error"] = "stopped"
    ports: list[Any] | dict[str, Any] | None = None
    volumes: list[Any] | dict[str, Any] | None = None
    environment: dict[str, Any] | None = None


class ContainerUpdate(CamelModel):
    name: str | None = None
    service_name: str | None = None
    image: str | None = None
    status: Literal["running", "stopped", "error"] | None = None
    ports: list[Any] | dict[str, Any] | None = None
    volumes: list[Any] | dict[str, Any] | None = None
    environment: dict[str, Any] | None = None


class ContainerActionRequest(CamelModel):
    action: str


class ContainerMetrics(CamelModel):
    cpu_usage: float | None = Field(default=None, ge=0)
    memory_usage: float | None = Field(default=None, ge=0)


class ContainerOut(CamelModel):
    id: str
    client_id: str
    name: str
    service_name: str
    image: str | None = None
    provider_id: str | None = None
    status: str
    ports: Any = None
    volumes: Any = None
    environment: Any = None
    cpu_usage: float | None = None
    memory_usage: float | None = None
    logs: str | None = None
    last_restarted: datetime | None = None
    created_at: datetime
    updated_at: datetime
