"""SQLAlchemy ORM model for the request audit trail."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Float, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from portal.core.clock import utcnow
from portal.db.base import Base
from portal.domain.mixins import TenantMixin, new_id


class AuditTrail(Base, TenantMixin):
    __tablename__ = "audit_trail"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    # Who
    user_id: Mapped[Optional[str]] = mapped_column(String(36), index=True, nullable=True)
    ip_address: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    user_agent: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)

    # What
    action: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    entity_type: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    entity_id: Mapped[Optional[str]] = mapped_column(String(100), index=True, nullable=True)
    path: Mapped[str] = mapped_column(String(500), nullable=False)
    status_code: Mapped[int] = mapped_column(Integer, nullable=False)
    duration_ms: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # When (no updated_at / deleted_at: audit rows are immutable)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
        index=True,
    )
