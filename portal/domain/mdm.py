"""SQLAlchemy ORM models for upstream master data (MDM Hulu Migas).

Rows are keyed by a surrogate UUID, but cross-references use the business
keys: children point at ``mdm_working_areas.wk_id`` and
``mdm_fields.field_id``. Business keys stay unique across soft-deleted rows.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Optional

from sqlalchemy import JSON, Boolean, Date, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from portal.db.base import Base
from portal.domain.mixins import TenantMixin, TimestampMixin, new_id


class WorkingArea(Base, TenantMixin, TimestampMixin):
    """Wilayah Kerja (WK): a contract block."""

    __tablename__ = "mdm_working_areas"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    wk_id: Mapped[str] = mapped_column(String(50), nullable=False, unique=True, index=True)
    nama_wk: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    status_wk: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    provinsi1: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    provinsi2: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    # "ONSHORE" | "OFFSHORE" | "ONSHORE_OFFSHORE"
    lokasi: Mapped[str] = mapped_column(String(30), nullable=False, index=True)
    jenis_kontrak: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    effective_date: Mapped[date] = mapped_column(Date, nullable=False)
    expire_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    holding: Mapped[str] = mapped_column(String(255), nullable=False)
    fase_wk: Mapped[str] = mapped_column(String(50), nullable=False)
    luas_wk_awal: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    luas_wk: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    nama_cekungan: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    status_cekungan: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    participating_interest: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    kewenangan: Mapped[str] = mapped_column(String(100), nullable=False)
    attachment: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    shape: Mapped[Any] = mapped_column(JSON, nullable=False)
    crs_epsg: Mapped[int] = mapped_column(Integer, default=4326, nullable=False)


class Field(Base, TenantMixin, TimestampMixin):
    __tablename__ = "mdm_fields"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    field_id: Mapped[str] = mapped_column(String(50), nullable=False, unique=True, index=True)
    field_name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    wk_id: Mapped[str] = mapped_column(
        String(50), ForeignKey("mdm_working_areas.wk_id"), nullable=False, index=True
    )
    # "OIL" | "GAS" | "OIL_GAS" | "CONDENSATE"
    field_type: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    basin: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    formation_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    discovery_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    # "DISCOVERY" | "APPRAISAL" | "DEVELOPMENT" | "PRODUCTION" | "ABANDONED"
    status: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    operator: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    is_offshore: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    reservoir_type: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    estimated_reserves: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    current_production: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    shape: Mapped[Any] = mapped_column(JSON, nullable=False)


class Well(Base, TenantMixin, TimestampMixin):
    __tablename__ = "mdm_wells"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    uwi: Mapped[str] = mapped_column(String(50), nullable=False, unique=True, index=True)
    wk_id: Mapped[str] = mapped_column(
        String(50), ForeignKey("mdm_working_areas.wk_id"), nullable=False, index=True
    )
    field_id: Mapped[Optional[str]] = mapped_column(
        String(50), ForeignKey("mdm_fields.field_id"), nullable=True, index=True
    )
    well_name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    operator: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    current_class: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    status_type: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    environment_type: Mapped[str] = mapped_column(String(30), nullable=False)
    profile_type: Mapped[str] = mapped_column(String(30), nullable=False)
    spud_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    final_drill_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    surface_longitude: Mapped[float] = mapped_column(Float, nullable=False)
    surface_latitude: Mapped[float] = mapped_column(Float, nullable=False)
    ns_utm: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    ew_utm: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    utm_epsg: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    shape: Mapped[Any] = mapped_column(JSON, nullable=False)
    total_depth: Mapped[Optional[float]] = mapped_column(Float, nullable=True)  # m
    water_depth: Mapped[Optional[float]] = mapped_column(Float, nullable=True)  # m
    kelly_bushing_elevation: Mapped[Optional[float]] = mapped_column(Float, nullable=True)


class SeismicSurvey(Base, TenantMixin, TimestampMixin):
    __tablename__ = "mdm_seismic_surveys"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    seis_acqtn_survey_id: Mapped[str] = mapped_column(
        String(50), nullable=False, unique=True, index=True
    )
    acqtn_survey_name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    ba_long_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    wk_id: Mapped[str] = mapped_column(
        String(50), ForeignKey("mdm_working_areas.wk_id"), nullable=False, index=True
    )
    project_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    project_level: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    start_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    completed_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    shot_by: Mapped[str] = mapped_column(String(255), nullable=False)
    # "2D" | "3D"
    seis_dimension: Mapped[str] = mapped_column(String(5), nullable=False, index=True)
    # "ONSHORE" | "OFFSHORE" | "TRANSITION_ZONE"
    environment: Mapped[str] = mapped_column(String(30), nullable=False, index=True)
    seis_line_type: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    crs_remark: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    crs_epsg: Mapped[int] = mapped_column(Integer, default=4326, nullable=False)
    shape: Mapped[Any] = mapped_column(JSON, nullable=False)
    shape_length: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    shape_area: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    processing_status: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    data_quality: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)


class Facility(Base, TenantMixin, TimestampMixin):
    __tablename__ = "mdm_facilities"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    facility_id: Mapped[str] = mapped_column(String(50), nullable=False, unique=True, index=True)
    facility_name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    facility_type: Mapped[str] = mapped_column(String(30), nullable=False, index=True)
    sub_type: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    wk_id: Mapped[str] = mapped_column(
        String(50), ForeignKey("mdm_working_areas.wk_id"), nullable=False, index=True
    )
    field_id: Mapped[Optional[str]] = mapped_column(
        String(50), ForeignKey("mdm_fields.field_id"), nullable=True, index=True
    )
    operator: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    status: Mapped[str] = mapped_column(String(30), nullable=False, index=True)
    installation_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    commissioning_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    longitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    latitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    # Pipelines
    diameter: Mapped[Optional[float]] = mapped_column(Float, nullable=True)  # inch
    length: Mapped[Optional[float]] = mapped_column(Float, nullable=True)  # km
    fluid_type: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    # Platforms
    water_depth: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    no_of_well: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # Capacities
    capacity_prod: Mapped[Optional[float]] = mapped_column(Float, nullable=True)  # BOPD
    vessel_capacity: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    storage_capacity: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    plant_capacity: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    power: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    shape: Mapped[Any] = mapped_column(JSON, nullable=False)
