"""SQLAlchemy ORM models for connector licensing."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import JSON, BigInteger, Boolean, DateTime, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from portal.core.clock import utcnow
from portal.db.base import Base
from portal.domain.mixins import TenantMixin, TimestampMixin, new_id


class License(Base, TenantMixin, TimestampMixin):
    __tablename__ = "licenses"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    license_token: Mapped[str] = mapped_column(String(30), nullable=False, unique=True, index=True)
    license_hash: Mapped[str] = mapped_column(String(64), nullable=False)
    license_name: Mapped[str] = mapped_column(String(255), nullable=False)
    # "TRIAL" | "STANDARD" | "ENTERPRISE" | "GOVERNMENT"
    license_type: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    # "BASIC" | "PROFESSIONAL" | "PREMIUM"
    license_level: Mapped[str] = mapped_column(String(20), default="BASIC", nullable=False)
    # "INACTIVE" | "PENDING_ACTIVATION" | "ACTIVE" | "EXPIRED" | "SUSPENDED" | "REVOKED"
    status: Mapped[str] = mapped_column(String(30), default="INACTIVE", nullable=False, index=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    issued_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )
    activation_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    expiration_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)

    # Licensee
    organization_id: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    organization_name: Mapped[str] = mapped_column(String(255), nullable=False)
    organization_type: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    contact_email: Mapped[str] = mapped_column(String(255), nullable=False)
    contact_person: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    # Limits (None = unlimited)
    max_users: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    max_connectors: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    max_data_volume: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)  # bytes / 30 days
    max_api_requests: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)  # per day

    enabled_features: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)
    restricted_features: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)

    activation_key: Mapped[str] = mapped_column(String(32), nullable=False)
    client_fingerprint: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    last_used: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    usage_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    metadata_: Mapped[Optional[Any]] = mapped_column("metadata", JSON, nullable=True)


class LicenseUsageLog(Base, TenantMixin):
    __tablename__ = "license_usage_logs"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    license_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("licenses.id"), nullable=False, index=True
    )
    # "FEATURE_ACCESS" | "API_CALL" | "DATA_TRANSFER" | "EXPORT" | "FEATURE_RESTRICTED"
    usage_type: Mapped[str] = mapped_column(String(30), nullable=False, index=True)
    feature_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    user_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    api_endpoint: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    data_processed: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)  # bytes
    request_count: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    ip_address: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    user_agent: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    metadata_: Mapped[Optional[Any]] = mapped_column("metadata", JSON, nullable=True)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False, index=True
    )
