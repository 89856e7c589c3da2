"""Repositories for data sources, configs and network settings."""

from __future__ import annotations

from portal.domain.system import ConfigEntry, DataSource, NetworkSetting
from portal.repositories.base import BaseRepository


class DataSourceRepository(BaseRepository[DataSource]):
    model = DataSource


class ConfigRepository(BaseRepository[ConfigEntry]):
    model = ConfigEntry

    async def by_key(self, key: str) -> ConfigEntry | None:
        return await self.find_one_by(key=key)

    async def key_taken(self, key: str, exclude_id: str | None = None) -> bool:
        existing = await self.by_key(key)
        return existing is not None and existing.id != exclude_id


class NetworkSettingRepository(BaseRepository[NetworkSetting]):
    model = NetworkSetting
