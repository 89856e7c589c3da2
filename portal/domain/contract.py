"""SQLAlchemy ORM models for service applications and data-usage contracts."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import JSON, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from portal.db.base import Base
from portal.domain.mixins import TenantMixin, TimestampMixin, new_id


class ServiceApplication(Base, TenantMixin, TimestampMixin):
    __tablename__ = "service_applications"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    version: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    endpoint: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    provider_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("participants.id"), nullable=True, index=True
    )
    # "active" | "inactive" | "maintenance"
    status: Mapped[str] = mapped_column(String(20), default="active", nullable=False, index=True)
    # "healthy" | "unhealthy" | "unknown"
    health_status: Mapped[str] = mapped_column(String(20), default="unknown", nullable=False)
    last_health_check: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )


class Contract(Base, TenantMixin, TimestampMixin):
    __tablename__ = "contracts"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    title: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    provider_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("participants.id"), nullable=False, index=True
    )
    consumer_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("participants.id"), nullable=False, index=True
    )
    service_application_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("service_applications.id"), nullable=True
    )
    resource_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("resources.id"), nullable=True
    )
    # "data_sharing" | "service_agreement" | "subscription" | "nda"
    contract_type: Mapped[str] = mapped_column(String(30), nullable=False, index=True)
    # "draft" | "pending" | "active" | "expired" | "terminated"
    status: Mapped[str] = mapped_column(String(20), default="draft", nullable=False, index=True)
    terms: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)
    valid_from: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    valid_until: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    signed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
