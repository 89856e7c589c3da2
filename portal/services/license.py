"""Licensing: token issuance, activation, status, feature access and usage.

Tokens look like ``IDS-XXXX-XXXX-XXXX-XXXX``. Each license stores an
HMAC-SHA256 of its token (keyed by ``LICENSE_SECRET``) and an activation
key derived from the token and the organization id, which is disclosed
once, at creation.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
import math
import re
import secrets
import string
import time
from datetime import datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from portal.core.clock import as_utc, utcnow
from portal.core.config import settings
from portal.core.exceptions import ForbiddenError, NotFoundError, ValidationError
from portal.core.pagination import PaginationParams
from portal.domain.license import License, LicenseUsageLog
from portal.repositories.external_service import ExternalServiceRepository
from portal.repositories.license import LicenseRepository, LicenseUsageLogRepository
from portal.repositories.participant import ParticipantRepository
from portal.schemas.license import (
    LicenseActivate,
    LicenseCreate,
    LicenseStatus,
    LicenseValidation,
    LimitStatus,
    UsageCreate,
    UsageStat,
)

logger = logging.getLogger(__name__)

TOKEN_PATTERN = re.compile(r"^IDS-[A-Z0-9]{4}-[A-Z0-9]{4}-[A-Z0-9]{4}-[A-Z0-9]{4}$")
LISTED_STATUSES = ("ACTIVE", "PENDING_ACTIVATION")
USAGE_WINDOW = timedelta(days=30)

_ALPHABET = string.ascii_uppercase + string.digits
_BASE36 = string.digits + string.ascii_uppercase


# ---------------------------------------------------------------------------
# Token helpers
# ---------------------------------------------------------------------------

def _base36(number: int) -> str:
    digits = []
    while number:
        number, rem = divmod(number, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits)) or "0"


def generate_license_token(organization_name: str, license_type: str, *, now_ms: int | None = None) -> str:
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    stamp = _base36(now_ms)[:4].rjust(4, "0")
    rand = "".join(secrets.choice(_ALPHABET) for _ in range(4))
    org = hashlib.md5(organization_name.encode("utf-8")).hexdigest()[:4]
    kind = hashlib.md5(license_type.encode("utf-8")).hexdigest()[:4]
    return f"IDS-{stamp}-{rand}-{org}-{kind}".upper()


def is_valid_token(token: str | None) -> bool:
    return bool(token) and TOKEN_PATTERN.match(token) is not None


def hash_license_token(token: str, secret: str | None = None) -> str:
    key = (secret or settings.license_secret).encode("utf-8")
    return hmac.new(key, token.encode("utf-8"), hashlib.sha256).hexdigest()


def activation_key_for(token: str, organization_id: str) -> str:
    return hashlib.sha256(f"{token}-{organization_id}".encode("utf-8")).hexdigest()[:32].upper()


def feature_allowed(license: License, feature_name: str | None) -> bool:
    """Restricted wins; an empty enabled list allows everything; ``*`` is a wildcard."""
    if not feature_name:
        return True
    if feature_name in (license.restricted_features or []):
        return False
    enabled = license.enabled_features or []
    if not enabled:
        return True
    return feature_name in enabled or "*" in enabled


def days_until(expiration: datetime, now: datetime) -> int:
    return math.ceil((as_utc(expiration) - now).total_seconds() / 86400)


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------

class LicenseService:
    def __init__(self, session: AsyncSession, client_id: str):
        self.repo = LicenseRepository(session, client_id)
        self.usage = LicenseUsageLogRepository(session, client_id)
        self._participants = ParticipantRepository(session, client_id)
        self._services = ExternalServiceRepository(session, client_id)

    async def list_licenses(self, pagination: PaginationParams, *, include_inactive: bool = False):
        where = None if include_inactive else [License.status.in_(LISTED_STATUSES)]
        return await self.repo.list(
            offset=pagination.offset,
            limit=pagination.limit,
            order_by=pagination.sort_column,
            order=pagination.order,
            where=where,
        )

    async def create_license(self, data: LicenseCreate) -> License:
        expiration = as_utc(data.expiration_date)
        if expiration <= utcnow():
            raise ValidationError("Expiration date must be in the future")

        token = generate_license_token(data.organization_name, data.license_type)
        while await self.repo.find_one_by(include_deleted=True, license_token=token):
            token = generate_license_token(data.organization_name, data.license_type)

        values = data.model_dump()
        values["expiration_date"] = expiration
        license = await self.repo.create(
            **values,
            license_token=token,
            license_hash=hash_license_token(token),
            activation_key=activation_key_for(token, data.organization_id),
            status="INACTIVE",
            is_active=False,
            issued_date=utcnow(),
            usage_count=0,
        )
        logger.info("License %s issued to %s", token, data.organization_name)
        return license

    async def _expire_if_due(self, license: License, now: datetime) -> bool:
        if as_utc(license.expiration_date) > now:
            return False
        if license.status != "EXPIRED" or license.is_active:
            await self.repo.update(license.id, status="EXPIRED", is_active=False)
            logger.info("License %s expired", license.license_token)
        return True

    async def activate_license(
        self,
        data: LicenseActivate,
        *,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> License:
        if not is_valid_token(data.license_token):
            raise ValidationError("Invalid license token format")
        license = await self.repo.find_one_by(license_token=data.license_token)
        if not license:
            raise NotFoundError("License", data.license_token)
        if license.status == "ACTIVE" and license.is_active:
            return license

        now = utcnow()
        if await self._expire_if_due(license, now):
            # The EXPIRED status must survive the rollback of this request
            await self.repo.commit()
            raise ValidationError("License has expired")
        if license.status in ("SUSPENDED", "REVOKED"):
            raise ValidationError(f"License is {license.status} and cannot be activated")
        if not hmac.compare_digest(data.activation_key.strip().upper(), license.activation_key):
            raise ValidationError("Invalid activation key")

        activated = await self.repo.update(
            license.id,
            status="ACTIVE",
            is_active=True,
            activation_date=now,
            client_fingerprint=f"{user_agent or 'unknown'}|{ip_address or 'unknown'}",
            last_used=now,
            usage_count=license.usage_count + 1,
        )
        logger.info("License %s activated", license.license_token)
        return activated  # type: ignore[return-value]

    async def limits(self, license: License, now: datetime) -> dict[str, LimitStatus]:
        day_start = now.replace(hour=0, minute=0, second=0, microsecond=0)
        L = LicenseUsageLog
        current = {
            "users": (await self._participants.count(), license.max_users),
            "connectors": (await self._services.count(), license.max_connectors),
            "dataVolume": (
                int(await self.usage.sum(
                    "data_processed", L.license_id == license.id, L.timestamp >= now - USAGE_WINDOW
                )),
                license.max_data_volume,
            ),
            "apiRequests": (
                int(await self.usage.sum(
                    "request_count",
                    L.license_id == license.id,
                    L.usage_type == "API_CALL",
                    L.timestamp >= day_start,
                )),
                license.max_api_requests,
            ),
        }
        return {
            name: LimitStatus(current=value, limit=limit, exceeded=limit is not None and value > limit)
            for name, (value, limit) in current.items()
        }

    async def status(self) -> LicenseStatus:
        now = utcnow()
        license = await self.repo.current(now)
        if not license:
            return LicenseStatus(has_active_license=False)

        days = days_until(license.expiration_date, now)
        limits = await self.limits(license, now)
        usage = await self.usage.usage_summary(license.id, now - USAGE_WINDOW)
        return LicenseStatus(
            has_active_license=True,
            license=license,
            days_until_expiration=days,
            is_expiring_soon=0 < days <= settings.license_expiry_warning_days,
            is_expired=days <= 0,
            limits=limits,
            limits_exceeded=any(s.exceeded for s in limits.values()),
            usage_stats=[UsageStat(usage_type=t, entries=c, requests=r) for t, c, r in usage],
        )

    async def _resolve(self, token: str | None, now: datetime) -> License | None:
        if token:
            return await self.repo.find_one_by(license_token=token)
        return await self.repo.current(now)

    async def validate(
        self,
        *,
        feature_name: str | None = None,
        token: str | None = None,
        record_usage: bool = False,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> LicenseValidation:
        now = utcnow()
        license = await self._resolve(token, now)
        if not license:
            return LicenseValidation(
                valid=False,
                reason="License not found" if token else "No active license",
                feature_name=feature_name,
            )

        base = dict(
            license_id=license.id,
            license_type=license.license_type,
            license_level=license.license_level,
            expiration_date=license.expiration_date,
            feature_name=feature_name,
        )
        if await self._expire_if_due(license, now):
            return LicenseValidation(valid=False, reason="License has expired", **base)
        if license.status != "ACTIVE" or not license.is_active:
            return LicenseValidation(valid=False, reason=f"License is {license.status}", **base)

        allowed = feature_allowed(license, feature_name)
        limits = await self.limits(license, now)
        exceeded = any(s.exceeded for s in limits.values())
        reason = None
        if not allowed:
            reason = f"Feature '{feature_name}' is not available under this license"
        elif exceeded:
            reason = "License limits exceeded"

        if record_usage:
            await self.usage.create(
                license_id=license.id,
                usage_type="FEATURE_ACCESS" if allowed else "FEATURE_RESTRICTED",
                feature_name=feature_name,
                request_count=1,
                ip_address=ip_address,
                user_agent=user_agent,
                timestamp=now,
            )
            await self.repo.update(license.id, last_used=now, usage_count=license.usage_count + 1)

        return LicenseValidation(
            valid=allowed and not exceeded,
            reason=reason,
            feature_allowed=allowed if feature_name else None,
            limits=limits,
            limits_exceeded=exceeded,
            **base,
        )

    async def log_usage(
        self,
        data: UsageCreate,
        *,
        token: str | None = None,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> LicenseUsageLog:
        now = utcnow()
        license = await self._resolve(data.license_token or token, now)
        if not license:
            raise NotFoundError("License", data.license_token or token)

        values = data.model_dump(exclude={"license_token"})
        if not feature_allowed(license, data.feature_name):
            values["usage_type"] = "FEATURE_RESTRICTED"
            await self.usage.create(
                license_id=license.id, **values, ip_address=ip_address, user_agent=user_agent, timestamp=now
            )
            # Keep the denied attempt on record before the request fails
            await self.repo.commit()
            logger.warning("Restricted feature %s requested on license %s", data.feature_name, license.id)
            raise ForbiddenError(f"Feature '{data.feature_name}' is restricted under this license")

        entry = await self.usage.create(
            license_id=license.id, **values, ip_address=ip_address, user_agent=user_agent, timestamp=now
        )
        await self.repo.update(license.id, last_used=now, usage_count=license.usage_count + 1)
        return entry
