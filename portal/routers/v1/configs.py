"""Key/value configuration router. Secret values are always returned masked."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from portal.core.config import settings
from portal.core.response import DataResponse, ItemsResponse
from portal.db.base import get_db
from portal.schemas.system import ConfigCreate, ConfigOut, ConfigUpdate, ConfigUpsert
from portal.services.system import ConfigService

router = APIRouter(prefix="/configs", tags=["Configs"])


def _svc(session: AsyncSession) -> ConfigService:
    return ConfigService(session, settings.default_client_id)


@router.get("", response_model=ItemsResponse[ConfigOut])
async def list_configs(
    category: Optional[str] = Query(default=None),
    secrets: Optional[bool] = Query(default=None),
    session: AsyncSession = Depends(get_db),
):
    entries = await _svc(session).list_configs(category=category, secrets=secrets)
    return {"data": [ConfigOut.masked(e) for e in entries]}


@router.post("", response_model=DataResponse[ConfigOut], status_code=status.HTTP_201_CREATED)
async def create_config(body: ConfigCreate, session: AsyncSession = Depends(get_db)):
    entry = await _svc(session).create_config(body)
    return {"data": ConfigOut.masked(entry)}


@router.get("/key/{key}", response_model=DataResponse[ConfigOut])
async def get_config_by_key(
    key: str = Path(min_length=2, max_length=255, pattern=r"^\S+$"),
    session: AsyncSession = Depends(get_db),
):
    entry = await _svc(session).get_by_key(key)
    return {"data": ConfigOut.masked(entry)}


@router.put("/key/{key}", response_model=DataResponse[ConfigOut])
async def upsert_config(
    body: ConfigUpsert,
    response: Response,
    key: str = Path(min_length=2, max_length=255, pattern=r"^\S+$"),
    session: AsyncSession = Depends(get_db),
):
    """Create or replace the entry for ``key`` (201 when created)."""
    entry, created = await _svc(session).upsert_config(key, body)
    if created:
        response.status_code = status.HTTP_201_CREATED
    return {"data": ConfigOut.masked(entry)}


@router.get("/{config_id}", response_model=DataResponse[ConfigOut])
async def get_config(config_id: str, session: AsyncSession = Depends(get_db)):
    entry = await _svc(session).get_config(config_id)
    return {"data": ConfigOut.masked(entry)}


@router.put("/{config_id}", response_model=DataResponse[ConfigOut])
async def update_config(
    config_id: str,
    body: ConfigUpdate,
    session: AsyncSession = Depends(get_db),
):
    entry = await _svc(session).update_config(config_id, body)
    return {"data": ConfigOut.masked(entry)}


@router.delete("/{config_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_config(config_id: str, session: AsyncSession = Depends(get_db)):
    await _svc(session).delete_config(config_id)
