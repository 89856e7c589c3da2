"""License repositories."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import func, select

from portal.domain.license import License, LicenseUsageLog
from portal.repositories.base import BaseRepository


class LicenseRepository(BaseRepository[License]):
    model = License

    async def current(self, now: datetime) -> License | None:
        """The active, unexpired license with the latest expiry."""
        found = await self.find_all(
            License.status == "ACTIVE",
            License.is_active.is_(True),
            License.expiration_date > now,
            order_by="expiration_date",
            limit=1,
        )
        return found[0] if found else None


class LicenseUsageLogRepository(BaseRepository[LicenseUsageLog]):
    model = LicenseUsageLog

    async def usage_summary(self, license_id: str, since: datetime) -> list[tuple[str, int, int]]:
        """Rows of (usage_type, entries, requests) since ``since``."""
        q = (
            select(
                LicenseUsageLog.usage_type,
                func.count(),
                func.coalesce(func.sum(LicenseUsageLog.request_count), 0),
            )
            .where(
                *self._scope(),
                LicenseUsageLog.license_id == license_id,
                LicenseUsageLog.timestamp >= since,
            )
            .group_by(LicenseUsageLog.usage_type)
        )
        return [(t, int(c), int(r)) for t, c, r in (await self._session.execute(q)).all()]
