"""SQLAlchemy ORM models for the connector catalogue.

resources      — data assets published by providers
data_requests  — consumer requests for a resource
brokers        — IDS metadata brokers / per-request broker validation
routes         — provider -> consumer delivery routes
containers     — connector service containers
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import JSON, DateTime, Float, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from portal.db.base import Base
from portal.domain.mixins import TenantMixin, TimestampMixin, new_id


class Resource(Base, TenantMixin, TimestampMixin):
    __tablename__ = "resources"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    provider_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("participants.id"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    # "GeoJSON" | "CSV" | "Seismic" | "WellLog" | "Production" | "Other"
    type: Mapped[str] = mapped_column(String(30), nullable=False, index=True)
    storage_path: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    # "restricted" | "public" | "contract_only"
    access_policy: Mapped[str] = mapped_column(String(20), default="restricted", nullable=False)
    metadata_: Mapped[Optional[Any]] = mapped_column("metadata", JSON, nullable=True)
    # "available" | "unused"
    status: Mapped[str] = mapped_column(String(20), default="available", nullable=False)


class DataRequest(Base, TenantMixin, TimestampMixin):
    __tablename__ = "data_requests"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    requester_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("participants.id"), nullable=False, index=True
    )
    provider_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("participants.id"), nullable=False, index=True
    )
    resource_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("resources.id"), nullable=False, index=True
    )
    # "GeoJSON" | "Seismic" | "Production" | "Other"
    request_type: Mapped[str] = mapped_column(String(30), nullable=False)
    # "pending" | "approved" | "delivered" | "rejected"
    status: Mapped[str] = mapped_column(String(20), default="pending", nullable=False, index=True)
    purpose: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    destination: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)


class Broker(Base, TenantMixin, TimestampMixin):
    __tablename__ = "brokers"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    url: Mapped[str] = mapped_column(String(500), nullable=False)
    # "registered" | "unregistered"
    status: Mapped[str] = mapped_column(String(20), default="registered", nullable=False)
    request_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("data_requests.id"), nullable=True, index=True
    )
    transaction_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    # "pending" | "approved" | "rejected"
    validation_status: Mapped[str] = mapped_column(
        String(20), default="pending", nullable=False, index=True
    )
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)


class DataRoute(Base, TenantMixin, TimestampMixin):
    __tablename__ = "routes"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    endpoint: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    provider_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("participants.id"), nullable=False, index=True
    )
    consumer_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("participants.id"), nullable=False, index=True
    )
    resource_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("resources.id"), nullable=True
    )
    # "active" | "inactive"
    status: Mapped[str] = mapped_column(String(20), default="active", nullable=False, index=True)
    valid_until: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)


class Container(Base, TenantMixin, TimestampMixin):
    __tablename__ = "containers"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    service_name: Mapped[str] = mapped_column(String(255), nullable=False)
    image: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    provider_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("participants.id"), nullable=True, index=True
    )
    # "running" | "stopped" | "error"
    status: Mapped[str] = mapped_column(String(20), default="stopped", nullable=False, index=True)
    ports: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)
    volumes: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)
    environment: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)
    cpu_usage: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    memory_usage: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    logs: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    last_restarted: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
