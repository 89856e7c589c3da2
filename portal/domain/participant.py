"""SQLAlchemy ORM model for data-space participants.

A participant is any party that provides or consumes data through the
connector: KKKS contractors (providers), SKK Migas units (consumers) and
portal administrators. Every other connector entity references participants
by id.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from portal.db.base import Base
from portal.domain.mixins import TenantMixin, TimestampMixin, new_id


class Participant(Base, TenantMixin, TimestampMixin):
    __tablename__ = "participants"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    # "provider" | "consumer" | "admin"
    role: Mapped[str] = mapped_column(String(20), default="consumer", nullable=False, index=True)
    organization: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    last_login: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
