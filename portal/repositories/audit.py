"""Request audit trail repository (read side; rows are written by the middleware)."""

from portal.domain.audit import AuditTrail
from portal.repositories.base import BaseRepository


class AuditTrailRepository(BaseRepository[AuditTrail]):
    model = AuditTrail
