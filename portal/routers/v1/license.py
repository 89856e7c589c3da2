"""License router: issuance, activation, status, validation and usage logging."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Header, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from portal.core.config import settings
from portal.core.http import client_ip, user_agent
from portal.core.pagination import PaginationParams
from portal.core.response import DataResponse, ListResponse, page_of
from portal.db.base import get_db
from portal.schemas.license import (
    LicenseActivate,
    LicenseCreate,
    LicenseIssued,
    LicenseOut,
    LicenseStatus,
    LicenseValidateRequest,
    LicenseValidation,
    UsageCreate,
    UsageLogOut,
)
from portal.services.license import LicenseService

router = APIRouter(prefix="/license", tags=["License"])


def _svc(session: AsyncSession) -> LicenseService:
    return LicenseService(session, settings.default_client_id)


@router.get("", response_model=ListResponse[LicenseOut])
async def list_licenses(
    include_inactive: bool = Query(default=False, alias="includeInactive"),
    pagination: PaginationParams = Depends(),
    session: AsyncSession = Depends(get_db),
):
    """ACTIVE and PENDING_ACTIVATION licenses unless ``includeInactive=true``."""
    items, total = await _svc(session).list_licenses(pagination, include_inactive=include_inactive)
    return page_of([LicenseOut.model_validate(lic) for lic in items], total, pagination)


@router.post("", response_model=DataResponse[LicenseIssued], status_code=status.HTTP_201_CREATED)
async def create_license(body: LicenseCreate, session: AsyncSession = Depends(get_db)):
    """Issue a license. The activation key is only returned here."""
    license = await _svc(session).create_license(body)
    return {"data": LicenseIssued.model_validate(license)}


@router.post("/activate", response_model=DataResponse[LicenseOut])
async def activate_license(
    body: LicenseActivate,
    request: Request,
    session: AsyncSession = Depends(get_db),
):
    license = await _svc(session).activate_license(
        body, ip_address=client_ip(request), user_agent=user_agent(request)
    )
    return {"data": LicenseOut.model_validate(license)}


@router.get("/status", response_model=DataResponse[LicenseStatus])
async def license_status(session: AsyncSession = Depends(get_db)):
    return {"data": await _svc(session).status()}


@router.get("/validate", response_model=DataResponse[LicenseValidation])
async def validate_license(
    feature_name: Optional[str] = Query(default=None, alias="featureName"),
    license_token: Optional[str] = Header(default=None, alias="X-License-Token"),
    session: AsyncSession = Depends(get_db),
):
    result = await _svc(session).validate(feature_name=feature_name, token=license_token)
    return {"data": result}


@router.post("/validate", response_model=DataResponse[LicenseValidation])
async def validate_license_and_record(
    body: LicenseValidateRequest,
    request: Request,
    license_token: Optional[str] = Header(default=None, alias="X-License-Token"),
    session: AsyncSession = Depends(get_db),
):
    """Same checks as GET, and the access is logged against the license."""
    result = await _svc(session).validate(
        feature_name=body.feature_name,
        token=body.license_token or license_token,
        record_usage=True,
        ip_address=client_ip(request),
        user_agent=user_agent(request),
    )
    return {"data": result}


@router.post("/usage", response_model=DataResponse[UsageLogOut], status_code=status.HTTP_201_CREATED)
async def log_license_usage(
    body: UsageCreate,
    request: Request,
    license_token: Optional[str] = Header(default=None, alias="X-License-Token"),
    session: AsyncSession = Depends(get_db),
):
    entry = await _svc(session).log_usage(
        body,
        token=license_token,
        ip_address=client_ip(request),
        user_agent=user_agent(request),
    )
    return {"data": UsageLogOut.model_validate(entry)}
