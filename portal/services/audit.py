"""Read side of the request audit trail."""

from sqlalchemy.ext.asyncio import AsyncSession

from portal.core.pagination import PaginationParams
from portal.repositories.audit import AuditTrailRepository


class AuditTrailService:
    def __init__(self, session: AsyncSession, client_id: str):
        self._repo = AuditTrailRepository(session, client_id)

    async def list_entries(
        self,
        pagination: PaginationParams,
        *,
        entity_type: str | None = None,
        action: str | None = None,
    ):
        return await self._repo.list(
            offset=pagination.offset,
            limit=pagination.limit,
            order_by=pagination.sort_column,
            order=pagination.order,
            filters={"entity_type": entity_type, "action": action},
        )
