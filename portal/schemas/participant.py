"""Participant Pydantic schemas (request DTOs and response models)."""

from datetime import datetime
from typing import Literal

from portal.schemas.common import CamelModel

ParticipantRole = Literal["provider", "consumer", "admin"]


class ParticipantCreate(CamelModel):
    email: str
    name: str
    role: ParticipantRole = "consumer"
    organization: str | None = None
    is_active: bool = True


class ParticipantUpdate(CamelModel):
    email: str | None = None
    name: str | None = None
    role: ParticipantRole | None = None
    organization: str | None = None
    is_active: bool | None = None


class ParticipantOut(CamelModel):
    id: str
    client_id: str
    email: str
    name: str
    role: str
    organization: str | None = None
    is_active: bool
    last_login: datetime | None = None
    created_at: datetime
    updated_at: datetime
