"""Compliance audit log router: record and query events, verify entry
integrity and produce ISO 27001 / PP No. 5/2021 reports.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from portal.core.config import settings
from portal.core.http import client_ip, user_agent
from portal.core.pagination import PaginationParams
from portal.core.response import DataResponse, ListResponse, page_of
from portal.db.base import get_db
from portal.schemas.compliance import (
    ComplianceLogCreate,
    ComplianceLogOut,
    ComplianceReport,
    IntegrityCheck,
    ReportFormat,
)
from portal.services.compliance import ComplianceService

router = APIRouter(prefix="/audit/compliance", tags=["Compliance Audit"])


def _svc(session: AsyncSession) -> ComplianceService:
    return ComplianceService(session, settings.default_client_id)


@router.get("", response_model=ListResponse[ComplianceLogOut])
async def list_compliance_logs(
    event_type: Optional[str] = Query(default=None, alias="eventType"),
    user_id: Optional[str] = Query(default=None, alias="userId"),
    entity_type: Optional[str] = Query(default=None, alias="entityType"),
    security_level: Optional[str] = Query(default=None, alias="securityLevel"),
    start_date: Optional[datetime] = Query(default=None, alias="startDate"),
    end_date: Optional[datetime] = Query(default=None, alias="endDate"),
    compliance_flag: Optional[str] = Query(default=None, alias="complianceFlag"),
    pagination: PaginationParams = Depends(),
    session: AsyncSession = Depends(get_db),
):
    """Newest first."""
    items, total = await _svc(session).list_logs(
        pagination,
        event_type=event_type,
        user_id=user_id,
        entity_type=entity_type,
        security_level=security_level,
        start_date=start_date,
        end_date=end_date,
        compliance_flag=compliance_flag,
    )
    return page_of([ComplianceLogOut.model_validate(e) for e in items], total, pagination)


@router.post("", response_model=DataResponse[ComplianceLogOut], status_code=status.HTTP_201_CREATED)
async def create_compliance_log(
    body: ComplianceLogCreate,
    request: Request,
    session: AsyncSession = Depends(get_db),
):
    entry = await _svc(session).create_log(
        body, ip_address=client_ip(request), user_agent=user_agent(request)
    )
    return {"data": ComplianceLogOut.model_validate(entry)}


@router.get("/report", response_model=DataResponse[ComplianceReport])
async def compliance_report(
    start_date: datetime = Query(alias="startDate"),
    end_date: datetime = Query(alias="endDate"),
    report_format: ReportFormat = Query(default="ISO_27001", alias="format"),
    session: AsyncSession = Depends(get_db),
):
    return {"data": await _svc(session).report(start_date, end_date, report_format)}


@router.get("/{log_id}", response_model=DataResponse[ComplianceLogOut])
async def get_compliance_log(log_id: str, session: AsyncSession = Depends(get_db)):
    entry = await _svc(session).get_log(log_id)
    return {"data": ComplianceLogOut.model_validate(entry)}


@router.get("/{log_id}/verify", response_model=DataResponse[IntegrityCheck])
async def verify_compliance_log(log_id: str, session: AsyncSession = Depends(get_db)):
    verified = await _svc(session).verify(log_id)
    return {"data": IntegrityCheck(id=log_id, integrity_verified=verified)}
