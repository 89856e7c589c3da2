"""Reusable SQLAlchemy column mixins."""

from __future__ import annotations

import uuid
from datetime import datetime

from typing import Optional

from sqlalchemy import DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column

from portal.core.clock import utcnow


def new_id() -> str:
    return str(uuid.uuid4())


class TimestampMixin:
    """Adds created_at, updated_at, deleted_at columns."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        server_default=func.now(),
        nullable=False,
    )
    deleted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True, default=None
    )


class TenantMixin:
    """Adds client_id column for multi-tenancy."""

    client_id: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
