"""Participant service."""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from portal.core.exceptions import ConflictError, NotFoundError
from portal.core.pagination import PaginationParams
from portal.domain.participant import Participant
from portal.repositories.participant import ParticipantRepository
from portal.schemas.participant import ParticipantCreate, ParticipantUpdate

logger = logging.getLogger(__name__)


class ParticipantService:
    def __init__(self, session: AsyncSession, client_id: str):
        self._repo = ParticipantRepository(session, client_id)

    async def list_participants(self, pagination: PaginationParams, role: str | None = None):
        return await self._repo.list(
            offset=pagination.offset,
            limit=pagination.limit,
            order_by=pagination.sort_column,
            order=pagination.order,
            filters={"role": role},
        )

    async def get_participant(self, participant_id: str) -> Participant:
        participant = await self._repo.get_by_id(participant_id)
        if not participant:
            raise NotFoundError("Participant", participant_id)
        return participant

    async def create_participant(self, data: ParticipantCreate) -> Participant:
        if await self._repo.email_taken(data.email):
            raise ConflictError(f"Participant with email '{data.email}' already exists")
        participant = await self._repo.create(**data.model_dump())
        logger.info("Participant %s registered as %s", participant.id, participant.role)
        return participant

    async def update_participant(self, participant_id: str, data: ParticipantUpdate) -> Participant:
        await self.get_participant(participant_id)
        if data.email and await self._repo.email_taken(data.email, exclude_id=participant_id):
            raise ConflictError(f"Participant with email '{data.email}' already exists")
        updated = await self._repo.update(
            participant_id, **data.model_dump(exclude_none=True, exclude_unset=True)
        )
        return updated  # type: ignore[return-value]

    async def delete_participant(self, participant_id: str) -> None:
        deleted = await self._repo.soft_delete(participant_id)
        if not deleted:
            raise NotFoundError("Participant", participant_id)
