"""SQLAlchemy ORM models for connector system settings: data sources,
key/value configuration and participant network endpoints.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from portal.db.base import Base
from portal.domain.mixins import TenantMixin, TimestampMixin, new_id


class DataSource(Base, TenantMixin, TimestampMixin):
    __tablename__ = "data_sources"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    # "postgresql" | "mysql" | "oracle" | "mongodb" | "api" | "file"
    type: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    host: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    port: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    database: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    username: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    password: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    schema_name: Mapped[Optional[str]] = mapped_column("schema", String(255), nullable=True)
    table_name: Mapped[Optional[str]] = mapped_column("table", String(255), nullable=True)
    query: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    connection_string: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)
    # "active" | "inactive" | "error"
    status: Mapped[str] = mapped_column(String(20), default="inactive", nullable=False, index=True)
    last_tested: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    metadata_: Mapped[Optional[Any]] = mapped_column("metadata", JSON, nullable=True)


class ConfigEntry(Base, TenantMixin, TimestampMixin):
    __tablename__ = "configs"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    key: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    category: Mapped[Optional[str]] = mapped_column(String(100), nullable=True, index=True)
    # "string" | "number" | "boolean" | "json"
    type: Mapped[str] = mapped_column(String(20), default="string", nullable=False)
    is_secret: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False, index=True)


class NetworkSetting(Base, TenantMixin, TimestampMixin):
    __tablename__ = "network_settings"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    provider_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("participants.id"), nullable=False, index=True
    )
    api_endpoint: Mapped[str] = mapped_column(String(500), nullable=False)
    # "HTTP" | "HTTPS" | "IDSCP2" | "MQTT"
    protocol: Mapped[str] = mapped_column(String(20), default="HTTPS", nullable=False, index=True)
    # "active" | "inactive" | "error"
    status: Mapped[str] = mapped_column(String(20), default="active", nullable=False, index=True)
    last_checked: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
