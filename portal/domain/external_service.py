"""SQLAlchemy ORM models for external services and OGC/OSDU adaptors.

Sync logs and adaptor audit logs are append-only: no updated_at/deleted_at.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import JSON, DateTime, Float, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from portal.core.clock import utcnow
from portal.db.base import Base
from portal.domain.mixins import TenantMixin, TimestampMixin, new_id


class ExternalService(Base, TenantMixin, TimestampMixin):
    __tablename__ = "external_services"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    # "IDS_BROKER" | "DATA_CATALOG" | "AUTHENTICATION" | "OGC_OSDU_ADAPTOR" | "OTHER"
    service_type: Mapped[str] = mapped_column(String(30), nullable=False, index=True)
    endpoint: Mapped[str] = mapped_column(String(500), nullable=False)
    # "NONE" | "API_KEY" | "OAUTH2" | "CERTIFICATE" | "BASIC"
    auth_type: Mapped[str] = mapped_column(String(20), default="NONE", nullable=False)
    credentials: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)
    # "active" | "inactive" | "syncing" | "error"
    status: Mapped[str] = mapped_column(String(20), default="inactive", nullable=False, index=True)
    last_sync: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    sync_interval: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)  # minutes
    metadata_: Mapped[Optional[Any]] = mapped_column("metadata", JSON, nullable=True)


class AdaptorSyncLog(Base, TenantMixin):
    __tablename__ = "adaptor_sync_logs"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    external_service_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("external_services.id"), nullable=False, index=True
    )
    # "FULL" | "INCREMENTAL" | "METADATA"
    sync_type: Mapped[str] = mapped_column(String(20), nullable=False)
    # "in_progress" | "completed" | "failed"
    status: Mapped[str] = mapped_column(String(20), default="in_progress", nullable=False, index=True)
    records_processed: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    errors: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)
    metadata_: Mapped[Optional[Any]] = mapped_column("metadata", JSON, nullable=True)
    started_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False, index=True
    )
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)


class AdaptorAuditLog(Base, TenantMixin):
    __tablename__ = "adaptor_audit_logs"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    external_service_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("external_services.id"), nullable=False, index=True
    )
    user_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True, index=True)
    action: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    endpoint: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    request_method: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    request_params: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)
    response_status: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    response_time: Mapped[Optional[float]] = mapped_column(Float, nullable=True)  # ms
    user_agent: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    ip_address: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False, index=True
    )
