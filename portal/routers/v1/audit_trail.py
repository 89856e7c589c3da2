"""Read-only request audit trail."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from portal.core.config import settings
from portal.core.pagination import PaginationParams
from portal.core.response import ListResponse, page_of
from portal.db.base import get_db
from portal.schemas.audit import AuditTrailOut
from portal.services.audit import AuditTrailService

router = APIRouter(prefix="/audit-trail", tags=["Audit Trail"])


@router.get("", response_model=ListResponse[AuditTrailOut])
async def list_audit_trail(
    entity_type: Optional[str] = Query(default=None, alias="entityType"),
    action: Optional[str] = Query(default=None, description="CREATE | UPDATE | DELETE"),
    pagination: PaginationParams = Depends(),
    session: AsyncSession = Depends(get_db),
):
    items, total = await AuditTrailService(session, settings.default_client_id).list_entries(
        pagination, entity_type=entity_type, action=action
    )
    return page_of([AuditTrailOut.model_validate(e) for e in items], total, pagination)
