"""SQLAlchemy ORM model for the compliance audit log.

Rows are append-only and carry a SHA-256 integrity hash over their
content, so tampering is detectable at report time.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import JSON, DateTime, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from portal.core.clock import utcnow
from portal.db.base import Base
from portal.domain.mixins import TenantMixin, new_id


class ComplianceAuditLog(Base, TenantMixin):
    __tablename__ = "compliance_audit_logs"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    event_type: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    action: Mapped[str] = mapped_column(String(100), nullable=False)
    entity_type: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    entity_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True, index=True)

    # Who
    user_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True, index=True)
    session_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    ip_address: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    user_agent: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)

    # Related records
    resource_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True, index=True)
    contract_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True, index=True)

    # "PUBLIC" | "INTERNAL" | "CONFIDENTIAL" | "SECRET"
    security_level: Mapped[str] = mapped_column(String(20), default="INTERNAL", nullable=False, index=True)
    # "PUBLIC" | "INTERNAL" | "CONFIDENTIAL" | "RESTRICTED"
    data_classification: Mapped[str] = mapped_column(String(20), default="INTERNAL", nullable=False)
    risk_score: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)  # 0-100
    compliance_flags: Mapped[Any] = mapped_column(JSON, nullable=False, default=list)

    previous_state: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)
    current_state: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)
    change_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    error_details: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)
    metadata_: Mapped[Optional[Any]] = mapped_column("metadata", JSON, nullable=True)

    integrity_hash: Mapped[str] = mapped_column(String(64), nullable=False)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False, index=True
    )
