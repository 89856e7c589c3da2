"""Master Data Management router (``/mdm``).

The five domains share one CRUD shape built by ``_domain_router``; each
domain adds its own list endpoint with its filters. ``/stats`` and
``/validate`` are registered before ``/{record_id}``.
"""

from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, File, Form, Query, UploadFile, status
from fastapi.responses import StreamingResponse
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from portal.core.config import settings
from portal.core.pagination import PaginationParams
from portal.core.response import DataResponse, ListResponse, page_of
from portal.db.base import get_db
from portal.schemas.mdm import (
    ExportReport,
    FacilityIn,
    FacilityOut,
    FieldIn,
    FieldOut,
    ImportResult,
    KeyCheckResult,
    MdmExportRequest,
    MdmValidateRequest,
    MdmValidateResponse,
    SeismicSurveyIn,
    SeismicSurveyOut,
    WellIn,
    WellOut,
    WorkingAreaIn,
    WorkingAreaListItem,
    WorkingAreaOut,
)
from portal.services.mdm import transfer
from portal.services.mdm.service import (
    FacilityService,
    FieldService,
    MdmService,
    SeismicSurveyService,
    WellService,
    WorkingAreaService,
)

router = APIRouter(prefix="/mdm", tags=["MDM"])


def _domain_router(
    prefix: str,
    service_cls: type[MdmService],
    in_schema: type[BaseModel],
    out_schema: type[BaseModel],
) -> APIRouter:
    domain = APIRouter(prefix=prefix)

    def svc(session: AsyncSession) -> MdmService:
        return service_cls(session, settings.default_client_id)

    @domain.get("/stats", response_model=DataResponse[dict[str, Any]])
    async def domain_stats(session: AsyncSession = Depends(get_db)):
        return {"data": await svc(session).stats()}

    @domain.post("/validate", response_model=DataResponse[KeyCheckResult])
    async def check_business_key(
        body: dict[str, Any] = Body(...),
        session: AsyncSession = Depends(get_db),
    ):
        """Is the business ID well-formed and still free? ``excludeId`` skips one record."""
        return {"data": await svc(session).check_key(body)}

    @domain.post("", response_model=DataResponse[out_schema], status_code=status.HTTP_201_CREATED)
    async def create_record(body: in_schema, session: AsyncSession = Depends(get_db)):
        record = await svc(session).create_record(body)
        return {"data": out_schema.model_validate(record)}

    @domain.get("/{record_id}", response_model=DataResponse[out_schema])
    async def get_record(record_id: str, session: AsyncSession = Depends(get_db)):
        record = await svc(session).get_record(record_id)
        return {"data": out_schema.model_validate(record)}

    @domain.put("/{record_id}", response_model=DataResponse[out_schema])
    async def update_record(record_id: str, body: in_schema, session: AsyncSession = Depends(get_db)):
        record = await svc(session).update_record(record_id, body)
        return {"data": out_schema.model_validate(record)}

    @domain.delete("/{record_id}", status_code=status.HTTP_204_NO_CONTENT)
    async def delete_record(record_id: str, session: AsyncSession = Depends(get_db)):
        await svc(session).delete_record(record_id)

    return domain


# ---------------------------------------------------------------------------
# Domain list endpoints
# ---------------------------------------------------------------------------

working_areas = APIRouter(prefix="/working-areas")
fields = APIRouter(prefix="/fields")
wells = APIRouter(prefix="/wells")
seismic_surveys = APIRouter(prefix="/seismic-surveys")
facilities = APIRouter(prefix="/facilities")


@working_areas.get("", response_model=ListResponse[WorkingAreaListItem])
async def list_working_areas(
    search: Optional[str] = Query(default=None),
    status_wk: Optional[str] = Query(default=None, alias="status"),
    jenis_kontrak: Optional[str] = Query(default=None, alias="jenisKontrak"),
    lokasi: Optional[str] = Query(default=None),
    pagination: PaginationParams = Depends(),
    session: AsyncSession = Depends(get_db),
):
    """Working areas with the number of fields, wells, surveys and facilities in each."""
    items, total = await WorkingAreaService(session, settings.default_client_id).list_with_counts(
        pagination, search, status_wk=status_wk, jenis_kontrak=jenis_kontrak, lokasi=lokasi
    )
    return page_of(items, total, pagination)


@fields.get("", response_model=ListResponse[FieldOut])
async def list_fields(
    search: Optional[str] = Query(default=None),
    wk_id: Optional[str] = Query(default=None, alias="wkId"),
    field_type: Optional[str] = Query(default=None, alias="fieldType"),
    field_status: Optional[str] = Query(default=None, alias="status"),
    operator: Optional[str] = Query(default=None),
    is_offshore: Optional[bool] = Query(default=None, alias="isOffshore"),
    pagination: PaginationParams = Depends(),
    session: AsyncSession = Depends(get_db),
):
    items, total = await FieldService(session, settings.default_client_id).list_records(
        pagination,
        search,
        wk_id=wk_id,
        field_type=field_type,
        status=field_status,
        operator=operator,
        is_offshore=is_offshore,
    )
    return page_of([FieldOut.model_validate(r) for r in items], total, pagination)


@wells.get("", response_model=ListResponse[WellOut])
async def list_wells(
    search: Optional[str] = Query(default=None),
    wk_id: Optional[str] = Query(default=None, alias="wkId"),
    field_id: Optional[str] = Query(default=None, alias="fieldId"),
    current_class: Optional[str] = Query(default=None, alias="currentClass"),
    status_type: Optional[str] = Query(default=None, alias="statusType"),
    environment_type: Optional[str] = Query(default=None, alias="environmentType"),
    operator: Optional[str] = Query(default=None),
    pagination: PaginationParams = Depends(),
    session: AsyncSession = Depends(get_db),
):
    items, total = await WellService(session, settings.default_client_id).list_records(
        pagination,
        search,
        wk_id=wk_id,
        field_id=field_id,
        current_class=current_class,
        status_type=status_type,
        environment_type=environment_type,
        operator=operator,
    )
    return page_of([WellOut.model_validate(r) for r in items], total, pagination)


@seismic_surveys.get("", response_model=ListResponse[SeismicSurveyOut])
async def list_seismic_surveys(
    search: Optional[str] = Query(default=None),
    wk_id: Optional[str] = Query(default=None, alias="wkId"),
    seis_dimension: Optional[str] = Query(default=None, alias="seisDimension"),
    environment: Optional[str] = Query(default=None),
    shot_by: Optional[str] = Query(default=None, alias="shotBy"),
    pagination: PaginationParams = Depends(),
    session: AsyncSession = Depends(get_db),
):
    items, total = await SeismicSurveyService(session, settings.default_client_id).list_records(
        pagination,
        search,
        wk_id=wk_id,
        seis_dimension=seis_dimension,
        environment=environment,
        shot_by=shot_by,
    )
    return page_of([SeismicSurveyOut.model_validate(r) for r in items], total, pagination)


@facilities.get("", response_model=ListResponse[FacilityOut])
async def list_facilities(
    search: Optional[str] = Query(default=None),
    wk_id: Optional[str] = Query(default=None, alias="wkId"),
    field_id: Optional[str] = Query(default=None, alias="fieldId"),
    facility_type: Optional[str] = Query(default=None, alias="facilityType"),
    facility_status: Optional[str] = Query(default=None, alias="status"),
    operator: Optional[str] = Query(default=None),
    pagination: PaginationParams = Depends(),
    session: AsyncSession = Depends(get_db),
):
    items, total = await FacilityService(session, settings.default_client_id).list_records(
        pagination,
        search,
        wk_id=wk_id,
        field_id=field_id,
        facility_type=facility_type,
        status=facility_status,
        operator=operator,
    )
    return page_of([FacilityOut.model_validate(r) for r in items], total, pagination)


for _list_router, _prefix, _service, _in, _out in (
    (working_areas, "/working-areas", WorkingAreaService, WorkingAreaIn, WorkingAreaOut),
    (fields, "/fields", FieldService, FieldIn, FieldOut),
    (wells, "/wells", WellService, WellIn, WellOut),
    (seismic_surveys, "/seismic-surveys", SeismicSurveyService, SeismicSurveyIn, SeismicSurveyOut),
    (facilities, "/facilities", FacilityService, FacilityIn, FacilityOut),
):
    router.include_router(_list_router)
    router.include_router(_domain_router(_prefix, _service, _in, _out))


# ---------------------------------------------------------------------------
# Cross-domain operations
# ---------------------------------------------------------------------------

@router.post("/validate", response_model=DataResponse[MdmValidateResponse])
async def validate_mdm_record(body: MdmValidateRequest, session: AsyncSession = Depends(get_db)):
    """Run every rule for ``domain`` against ``data`` without saving anything."""
    result = await transfer.validate_payload(session, settings.default_client_id, body)
    return {"data": result}


@router.post("/import", response_model=DataResponse[ImportResult])
async def import_mdm_csv(
    file: UploadFile = File(...),
    domain: str = Form(...),
    session: AsyncSession = Depends(get_db),
):
    """Insert valid CSV rows; invalid rows are reported with their row number."""
    # One byte past the limit is enough to tell an oversize upload
    content = await file.read(settings.max_upload_size_bytes + 1)
    result = await transfer.import_csv(
        session,
        settings.default_client_id,
        domain,
        file.filename or "upload.csv",
        file.content_type,
        content,
    )
    return {"data": result}


@router.post("/export", response_model=DataResponse[ExportReport])
async def export_mdm_report(body: MdmExportRequest, session: AsyncSession = Depends(get_db)):
    report = await transfer.compliance_report(session, settings.default_client_id, body)
    if body.format == "csv":
        filename = transfer.report_filename(body.report_type, report.generated_at)
        return StreamingResponse(
            iter([transfer.report_csv(report)]),
            media_type="text/csv",
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )
    return {"data": report}
