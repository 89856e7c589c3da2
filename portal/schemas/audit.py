"""Request audit trail response schema."""

from datetime import datetime

from portal.schemas.common import CamelModel


class AuditTrailOut(CamelModel):
    id: str
    user_id: str | None = None
    ip_address: str | None = None
    user_agent: str | None = None
    action: str
    entity_type: str
    entity_id: str | None = None
    path: str
    status_code: int
    duration_ms: float | None = None
    description: str | None = None
    created_at: datetime
