"""Participant repository."""

from portal.domain.participant import Participant
from portal.repositories.base import BaseRepository


class ParticipantRepository(BaseRepository[Participant]):
    model = Participant

    async def email_taken(self, email: str, exclude_id: str | None = None) -> bool:
        # Unique index spans soft-deleted rows too
        existing = await self.find_one_by(include_deleted=True, email=email)
        return existing is not None and existing.id != exclude_id
