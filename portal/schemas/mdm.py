"""Master data schemas.

Create/update bodies keep every column optional and loosely typed: the
mandatory-field and enumeration rules live in ``portal.services.mdm.validators``
so all problems are reported together with their SKK Migas labels.
"""

from datetime import date, datetime
from typing import Any, Literal

from pydantic import Field

from portal.schemas.common import CamelModel

MdmDomain = Literal["workingArea", "seismicSurvey", "well", "field", "facility"]


# ---------------------------------------------------------------------------
# Working areas
# ---------------------------------------------------------------------------

class WorkingAreaIn(CamelModel):
    wk_id: str | None = None
    nama_wk: str | None = None
    status_wk: str | None = None
    provinsi1: str | None = None
    provinsi2: str | None = None
    lokasi: str | None = None
    jenis_kontrak: str | None = None
    effective_date: date | None = None
    expire_date: date | None = None
    holding: str | None = None
    fase_wk: str | None = None
    luas_wk_awal: float | None = None
    luas_wk: float | None = None
    nama_cekungan: str | None = None
    status_cekungan: str | None = None
    participating_interest: float | None = None
    kewenangan: str | None = None
    attachment: str | None = None
    shape: Any = None
    crs_epsg: int | None = None


class WorkingAreaOut(CamelModel):
    id: str
    wk_id: str
    nama_wk: str
    status_wk: str
    provinsi1: str | None = None
    provinsi2: str | None = None
    lokasi: str
    jenis_kontrak: str
    effective_date: date
    expire_date: date | None = None
    holding: str
    fase_wk: str
    luas_wk_awal: float | None = None
    luas_wk: float | None = None
    nama_cekungan: str | None = None
    status_cekungan: str | None = None
    participating_interest: float | None = None
    kewenangan: str
    attachment: str | None = None
    shape: Any = None
    crs_epsg: int
    created_at: datetime
    updated_at: datetime


class ChildCounts(CamelModel):
    fields: int = 0
    wells: int = 0
    seismic_surveys: int = 0
    facilities: int = 0


class WorkingAreaListItem(WorkingAreaOut):
    counts: ChildCounts = ChildCounts()


# ---------------------------------------------------------------------------
# Fields
# ---------------------------------------------------------------------------

class FieldIn(CamelModel):
    field_id: str | None = None
    field_name: str | None = None
    wk_id: str | None = None
    field_type: str | None = None
    basin: str | None = None
    formation_name: str | None = None
    discovery_date: date | None = None
    status: str | None = None
    operator: str | None = None
    is_offshore: bool | None = None
    reservoir_type: str | None = None
    estimated_reserves: float | None = None
    current_production: float | None = None
    shape: Any = None


class FieldOut(CamelModel):
    id: str
    field_id: str
    field_name: str
    wk_id: str
    field_type: str
    basin: str | None = None
    formation_name: str | None = None
    discovery_date: date | None = None
    status: str
    operator: str
    is_offshore: bool
    reservoir_type: str | None = None
    estimated_reserves: float | None = None
    current_production: float | None = None
    shape: Any = None
    created_at: datetime
    updated_at: datetime


# ---------------------------------------------------------------------------
# Wells
# ---------------------------------------------------------------------------

class WellIn(CamelModel):
    uwi: str | None = None
    wk_id: str | None = None
    field_id: str | None = None
    well_name: str | None = None
    operator: str | None = None
    current_class: str | None = None
    status_type: str | None = None
    environment_type: str | None = None
    profile_type: str | None = None
    spud_date: date | None = None
    final_drill_date: date | None = None
    surface_longitude: float | None = None
    surface_latitude: float | None = None
    ns_utm: float | None = None
    ew_utm: float | None = None
    utm_epsg: int | None = None
    shape: Any = None
    total_depth: float | None = None
    water_depth: float | None = None
    kelly_bushing_elevation: float | None = None


class WellOut(CamelModel):
    id: str
    uwi: str
    wk_id: str
    field_id: str | None = None
    well_name: str
    operator: str
    current_class: str
    status_type: str
    environment_type: str
    profile_type: str
    spud_date: date | None = None
    final_drill_date: date | None = None
    surface_longitude: float
    surface_latitude: float
    ns_utm: float | None = None
    ew_utm: float | None = None
    utm_epsg: int | None = None
    shape: Any = None
    total_depth: float | None = None
    water_depth: float | None = None
    kelly_bushing_elevation: float | None = None
    created_at: datetime
    updated_at: datetime


# ---------------------------------------------------------------------------
# Seismic surveys
# ---------------------------------------------------------------------------

class SeismicSurveyIn(CamelModel):
    seis_acqtn_survey_id: str | None = None
    acqtn_survey_name: str | None = None
    ba_long_name: str | None = None
    wk_id: str | None = None
    project_id: str | None = None
    project_level: str | None = None
    start_date: date | None = None
    completed_date: date | None = None
    shot_by: str | None = None
    seis_dimension: str | None = None
    environment: str | None = None
    seis_line_type: str | None = None
    crs_remark: str | None = None
    crs_epsg: int | None = None
    shape: Any = None
    shape_length: float | None = None
    shape_area: float | None = None
    processing_status: str | None = None
    data_quality: str | None = None


class SeismicSurveyOut(CamelModel):
    id: str
    seis_acqtn_survey_id: str
    acqtn_survey_name: str
    ba_long_name: str | None = None
    wk_id: str
    project_id: str | None = None
    project_level: str | None = None
    start_date: date | None = None
    completed_date: date | None = None
    shot_by: str
    seis_dimension: str
    environment: str
    seis_line_type: str | None = None
    crs_remark: str | None = None
    crs_epsg: int
    shape: Any = None
    shape_length: float | None = None
    shape_area: float | None = None
    processing_status: str | None = None
    data_quality: str | None = None
    created_at: datetime
    updated_at: datetime


# ---------------------------------------------------------------------------
# Facilities
# ---------------------------------------------------------------------------

class FacilityIn(CamelModel):
    facility_id: str | None = None
    facility_name: str | None = None
    facility_type: str | None = None
    sub_type: str | None = None
    wk_id: str | None = None
    field_id: str | None = None
    operator: str | None = None
    status: str | None = None
    installation_date: date | None = None
    commissioning_date: date | None = None
    longitude: float | None = None
    latitude: float | None = None
    diameter: float | None = None
    length: float | None = None
    fluid_type: str | None = None
    water_depth: float | None = None
    no_of_well: int | None = None
    capacity_prod: float | None = None
    vessel_capacity: float | None = None
    storage_capacity: float | None = None
    plant_capacity: float | None = None
    power: float | None = None
    shape: Any = None


class FacilityOut(CamelModel):
    id: str
    facility_id: str
    facility_name: str
    facility_type: str
    sub_type: str | None = None
    wk_id: str
    field_id: str | None = None
    operator: str
    status: str
    installation_date: date | None = None
    commissioning_date: date | None = None
    longitude: float | None = None
    latitude: float | None = None
    diameter: float | None = None
    length: float | None = None
    fluid_type: str | None = None
    water_depth: float | None = None
    no_of_well: int | None = None
    capacity_prod: float | None = None
    vessel_capacity: float | None = None
    storage_capacity: float | None = None
    plant_capacity: float | None = None
    power: float | None = None
    shape: Any = None
    created_at: datetime
    updated_at: datetime


# ---------------------------------------------------------------------------
# Validation / import / export
# ---------------------------------------------------------------------------

class KeyCheckResult(CamelModel):
    valid: bool
    error: str | None = None
    message: str | None = None


class MdmValidateRequest(CamelModel):
    domain: MdmDomain
    data: dict[str, Any]
    operation: Literal["create", "update"] = "create"


class ValidationSummary(CamelModel):
    domain: str
    operation: str
    status: Literal["VALID", "INVALID"]
    error_count: int


class MdmValidateResponse(CamelModel):
    is_valid: bool
    errors: list[str]
    warnings: list[str]
    summary: ValidationSummary


class ImportRowError(CamelModel):
    row: int
    errors: list[str]


class ImportResult(CamelModel):
    domain: str
    filename: str
    processed_records: int
    failed_records: int
    errors: list[ImportRowError]


class MdmExportRequest(CamelModel):
    domains: list[MdmDomain] = Field(
        default_factory=lambda: ["workingArea", "seismicSurvey", "well", "field", "facility"],
        min_length=1,
    )
    format: Literal["csv", "json"] = "json"
    report_type: str = "Compliance"


class DomainReport(CamelModel):
    domain: str
    total_records: int
    compliant_records: int
    issue_records: int
    compliance_rate: float
    top_issues: list[str] = []


class ExportReport(CamelModel):
    generated_at: datetime
    report_type: str
    domains: list[DomainReport]
