"""Participant CRUD router.

Pattern shared by every v1 router:
  1. Declare a router with prefix and tags
  2. Inject the DB session via Depends
  3. Instantiate the service with (session, settings.default_client_id)
  4. Call service methods and wrap the result in the response envelope
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from portal.core.config import settings
from portal.core.pagination import PaginationParams
from portal.core.response import DataResponse, ListResponse, paginated
from portal.db.base import get_db
from portal.schemas.participant import ParticipantCreate, ParticipantOut, ParticipantUpdate
from portal.services.participant import ParticipantService

router = APIRouter(prefix="/participants", tags=["Participants"])


def _svc(session: AsyncSession) -> ParticipantService:
    return ParticipantService(session, settings.default_client_id)


@router.get("", response_model=ListResponse[ParticipantOut])
async def list_participants(
    role: Optional[str] = Query(default=None, description="provider | consumer | admin"),
    pagination: PaginationParams = Depends(),
    session: AsyncSession = Depends(get_db),
):
    items, total = await _svc(session).list_participants(pagination, role=role)
    return paginated(
        [ParticipantOut.model_validate(p) for p in items],
        total, pagination.page, pagination.limit,
    )


@router.post("", response_model=DataResponse[ParticipantOut], status_code=status.HTTP_201_CREATED)
async def create_participant(
    body: ParticipantCreate,
    session: AsyncSession = Depends(get_db),
):
    """Register a participant. Emails are unique (409 on duplicates)."""
    participant = await _svc(session).create_participant(body)
    return {"data": ParticipantOut.model_validate(participant)}


@router.get("/{participant_id}", response_model=DataResponse[ParticipantOut])
async def get_participant(
    participant_id: str,
    session: AsyncSession = Depends(get_db),
):
    participant = await _svc(session).get_participant(participant_id)
    return {"data": ParticipantOut.model_validate(participant)}


@router.put("/{participant_id}", response_model=DataResponse[ParticipantOut])
async def update_participant(
    participant_id: str,
    body: ParticipantUpdate,
    session: AsyncSession = Depends(get_db),
):
    participant = await _svc(session).update_participant(participant_id, body)
    return {"data": ParticipantOut.model_validate(participant)}


@router.delete("/{participant_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_participant(
    participant_id: str,
    session: AsyncSession = Depends(get_db),
):
    await _svc(session).delete_participant(participant_id)
