"""Connector system settings: data sources, key/value configs and
participant network endpoints.

Config changes are mirrored in the compliance audit log as
``SYSTEM_CONFIGURATION`` events; secret values never leave the service
unmasked.
"""

from __future__ import annotations

import json
import logging
from typing import Any
from urllib.parse import urlsplit

from sqlalchemy.ext.asyncio import AsyncSession

from portal.core.clock import utcnow
from portal.core.exceptions import ConflictError, NotFoundError, ValidationError
from portal.core.pagination import PaginationParams
from portal.domain.participant import Participant
from portal.domain.system import ConfigEntry, DataSource, NetworkSetting
from portal.repositories.participant import ParticipantRepository
from portal.repositories.system import ConfigRepository, DataSourceRepository, NetworkSettingRepository
from portal.schemas.system import (
    SECRET_MASK,
    ConfigCreate,
    ConfigUpdate,
    ConfigUpsert,
    DataSourceCreate,
    DataSourceUpdate,
    NetworkSettingCreate,
    NetworkSettingOut,
    NetworkSettingUpdate,
)
from portal.services import probe
from portal.services.compliance import ComplianceService
from portal.services.probe import ProbeOutcome

logger = logging.getLogger(__name__)

DEFAULT_PORTS = {"postgresql": 5432, "mysql": 3306, "oracle": 1521, "mongodb": 27017}


# ---------------------------------------------------------------------------
# Data sources
# ---------------------------------------------------------------------------

def _api_url(source: DataSource) -> str | None:
    if source.connection_string:
        return source.connection_string
    if not source.host:
        return None
    if "://" in source.host:
        return source.host
    return f"http://{source.host}:{source.port}" if source.port else f"http://{source.host}"


def _socket_address(source: DataSource) -> tuple[str, int] | None:
    default_port = DEFAULT_PORTS[source.type]
    if source.host:
        return source.host, source.port or default_port
    if source.connection_string:
        parts = urlsplit(source.connection_string)
        try:
            port = parts.port
        except ValueError:
            raise ValidationError("Connection string has an invalid port") from None
        if parts.hostname:
            return parts.hostname, port or default_port
    return None


class DataSourceService:
    def __init__(self, session: AsyncSession, client_id: str):
        self._repo = DataSourceRepository(session, client_id)

    async def list_sources(
        self,
        pagination: PaginationParams,
        *,
        source_type: str | None = None,
        status: str | None = None,
    ):
        return await self._repo.list(
            offset=pagination.offset,
            limit=pagination.limit,
            order_by=pagination.sort_column,
            order=pagination.order,
            filters={"type": source_type, "status": status},
        )

    async def get_source(self, source_id: str) -> DataSource:
        source = await self._repo.get_by_id(source_id)
        if not source:
            raise NotFoundError("Data source", source_id)
        return source

    async def create_source(self, data: DataSourceCreate) -> DataSource:
        source = await self._repo.create(**data.model_dump(exclude_none=True))
        logger.info("Data source %s registered (%s)", source.id, source.type)
        return source

    async def update_source(self, source_id: str, data: DataSourceUpdate) -> DataSource:
        await self.get_source(source_id)
        updated = await self._repo.update(
            source_id, **data.model_dump(exclude_none=True, exclude_unset=True)
        )
        return updated  # type: ignore[return-value]

    async def delete_source(self, source_id: str) -> None:
        if not await self._repo.soft_delete(source_id):
            raise NotFoundError("Data source", source_id)

    async def test_connection(self, source_id: str) -> ProbeOutcome:
        """HTTP check for API sources, TCP connect for database sources."""
        source = await self.get_source(source_id)
        if source.type == "file":
            raise ValidationError("Connection tests are not supported for file data sources")

        if source.type == "api":
            url = _api_url(source)
            if not url:
                raise ValidationError("Data source has no endpoint to test")
            outcome = await probe.probe_endpoint(url)
        else:
            address = _socket_address(source)
            if not address:
                raise ValidationError("Data source has no host to test")
            outcome = await probe.probe_socket(*address)

        await self._repo.update(
            source_id, status="active" if outcome.success else "error", last_tested=utcnow()
        )
        logger.info("Connection test %s: %s", source.name, outcome.message)
        return outcome


# ---------------------------------------------------------------------------
# Configs
# ---------------------------------------------------------------------------

def check_config_value(config_type: str, value: str) -> None:
    """Raise unless ``value`` parses as ``config_type``."""
    if config_type == "number":
        try:
            float(value)
        except ValueError:
            raise ValidationError(f"Value '{value}' is not a number") from None
    elif config_type == "boolean":
        if value.strip().lower() not in ("true", "false"):
            raise ValidationError("Boolean values must be 'true' or 'false'")
    elif config_type == "json":
        try:
            json.loads(value)
        except ValueError:
            raise ValidationError("Value is not valid JSON") from None


def _config_state(entry: ConfigEntry) -> dict[str, Any]:
    return {
        "key": entry.key,
        "value": SECRET_MASK if entry.is_secret else entry.value,
        "category": entry.category,
        "type": entry.type,
        "isSecret": entry.is_secret,
    }


class ConfigService:
    def __init__(self, session: AsyncSession, client_id: str):
        self._repo = ConfigRepository(session, client_id)
        self._compliance = ComplianceService(session, client_id)

    async def _audit(
        self,
        action: str,
        entry: ConfigEntry,
        *,
        previous: dict[str, Any] | None = None,
        current: dict[str, Any] | None = None,
    ) -> None:
        await self._compliance.record(
            event_type="SYSTEM_CONFIGURATION",
            action=action,
            entity_type="Config",
            entity_id=entry.id,
            security_level="CONFIDENTIAL" if entry.is_secret else "INTERNAL",
            previous_state=previous,
            current_state=current,
        )

    async def list_configs(self, *, category: str | None = None, secrets: bool | None = None) -> list[ConfigEntry]:
        return await self._repo.find_all(
            order_by="key", order="asc", filters={"category": category, "is_secret": secrets}
        )

    async def get_config(self, config_id: str) -> ConfigEntry:
        entry = await self._repo.get_by_id(config_id)
        if not entry:
            raise NotFoundError("Config", config_id)
        return entry

    async def get_by_key(self, key: str) -> ConfigEntry:
        entry = await self._repo.by_key(key)
        if not entry:
            raise NotFoundError("Config", key)
        return entry

    async def create_config(self, data: ConfigCreate) -> ConfigEntry:
        if await self._repo.key_taken(data.key):
            raise ConflictError(f"Config with key '{data.key}' already exists")
        check_config_value(data.type, data.value)
        entry = await self._repo.create(**data.model_dump(exclude_none=True))
        await self._audit("CONFIG_CREATED", entry, current=_config_state(entry))
        logger.info("Config %s created", entry.key)
        return entry

    async def update_config(self, config_id: str, data: ConfigUpdate) -> ConfigEntry:
        entry = await self.get_config(config_id)
        values = data.model_dump(exclude_none=True, exclude_unset=True)
        if "key" in values and await self._repo.key_taken(values["key"], exclude_id=config_id):
            raise ConflictError(f"Config with key '{values['key']}' already exists")
        check_config_value(values.get("type", entry.type), values.get("value", entry.value))

        previous = _config_state(entry)
        updated = await self._repo.update(config_id, **values)
        await self._audit("CONFIG_UPDATED", updated, previous=previous, current=_config_state(updated))  # type: ignore[arg-type]
        return updated  # type: ignore[return-value]

    async def upsert_config(self, key: str, data: ConfigUpsert) -> tuple[ConfigEntry, bool]:
        """Set ``key``; returns (entry, created)."""
        existing = await self._repo.by_key(key)
        if existing is None:
            entry = await self.create_config(ConfigCreate(key=key, **data.model_dump()))
            return entry, True
        entry = await self.update_config(existing.id, ConfigUpdate(**data.model_dump()))
        return entry, False

    async def delete_config(self, config_id: str) -> None:
        entry = await self.get_config(config_id)
        await self._audit("CONFIG_DELETED", entry, previous=_config_state(entry))
        await self._repo.soft_delete(config_id)
        logger.info("Config %s deleted", entry.key)


# ---------------------------------------------------------------------------
# Network settings
# ---------------------------------------------------------------------------

class NetworkSettingService:
    def __init__(self, session: AsyncSession, client_id: str):
        self._repo = NetworkSettingRepository(session, client_id)
        self._participants = ParticipantRepository(session, client_id)

    async def _require_provider(self, provider_id: str) -> None:
        if not await self._participants.exists(provider_id):
            raise ValidationError(
                "Unknown participant reference", errors=[f"providerId '{provider_id}' does not exist"]
            )

    async def describe(self, items: list[NetworkSetting]) -> list[NetworkSettingOut]:
        """Attach provider names to settings for display."""
        ids = {s.provider_id for s in items}
        providers = await self._participants.find_all(Participant.id.in_(ids)) if ids else []
        names = {p.id: p.name for p in providers}
        return [
            NetworkSettingOut.model_validate(s).model_copy(update={"provider_name": names.get(s.provider_id)})
            for s in items
        ]

    async def list_settings(
        self,
        pagination: PaginationParams,
        *,
        provider_id: str | None = None,
        protocol: str | None = None,
        status: str | None = None,
    ):
        return await self._repo.list(
            offset=pagination.offset,
            limit=pagination.limit,
            order_by=pagination.sort_column,
            order=pagination.order,
            filters={"provider_id": provider_id, "protocol": protocol, "status": status},
        )

    async def get_setting(self, setting_id: str) -> NetworkSetting:
        setting = await self._repo.get_by_id(setting_id)
        if not setting:
            raise NotFoundError("Network setting", setting_id)
        return setting

    async def create_setting(self, data: NetworkSettingCreate) -> NetworkSetting:
        await self._require_provider(data.provider_id)
        return await self._repo.create(**data.model_dump(exclude_none=True))

    async def update_setting(self, setting_id: str, data: NetworkSettingUpdate) -> NetworkSetting:
        await self.get_setting(setting_id)
        values = data.model_dump(exclude_none=True, exclude_unset=True)
        if "provider_id" in values:
            await self._require_provider(values["provider_id"])
        updated = await self._repo.update(setting_id, **values)
        return updated  # type: ignore[return-value]

    async def delete_setting(self, setting_id: str) -> None:
        if not await self._repo.soft_delete(setting_id):
            raise NotFoundError("Network setting", setting_id)

    async def check(self, setting_id: str) -> tuple[NetworkSetting, ProbeOutcome]:
        """Probe the endpoint and record the result as the setting's status."""
        setting = await self.get_setting(setting_id)
        outcome = await probe.probe_endpoint(setting.api_endpoint)
        updated = await self._repo.update(
            setting_id, status="active" if outcome.success else "error", last_checked=utcnow()
        )
        logger.info("Network check %s: %s", setting.api_endpoint, outcome.message)
        return updated, outcome  # type: ignore[return-value]
