"""Repositories for master data.

Each repository knows its business key and the text columns that the
``search`` query parameter scans.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import func, or_, select

from portal.domain.mdm import Facility, Field, SeismicSurvey, Well, WorkingArea
from portal.repositories.base import BaseRepository, ModelT


class MdmRepository(BaseRepository[ModelT]):
    business_key: str
    search_columns: tuple[str, ...] = ()

    def search_clause(self, term: str | None):
        if not term:
            return None
        pattern = f"%{term.lower()}%"
        return or_(
            *(func.lower(getattr(self.model, col)).like(pattern) for col in self.search_columns)
        )

    async def get_by_key(self, value: str) -> ModelT | None:
        return await self.find_one_by(**{self.business_key: value})

    async def key_taken(self, value: str, exclude_id: str | None = None) -> bool:
        # Unique index spans soft-deleted rows too
        existing = await self.find_one_by(include_deleted=True, **{self.business_key: value})
        return existing is not None and existing.id != exclude_id

    async def values(self, *columns: str) -> list[tuple[Any, ...]]:
        """Raw column tuples for in-process statistics."""
        q = select(*(getattr(self.model, c) for c in columns)).where(*self._scope())
        return [tuple(row) for row in (await self._session.execute(q)).all()]


class WorkingAreaRepository(MdmRepository[WorkingArea]):
    model = WorkingArea
    business_key = "wk_id"
    search_columns = ("wk_id", "nama_wk", "holding", "nama_cekungan")


class FieldRepository(MdmRepository[Field]):
    model = Field
    business_key = "field_id"
    search_columns = ("field_id", "field_name", "operator", "basin", "formation_name")


class WellRepository(MdmRepository[Well]):
    model = Well
    business_key = "uwi"
    search_columns = ("uwi", "well_name", "operator", "field_id")


class SeismicSurveyRepository(MdmRepository[SeismicSurvey]):
    model = SeismicSurvey
    business_key = "seis_acqtn_survey_id"
    search_columns = ("seis_acqtn_survey_id", "acqtn_survey_name", "ba_long_name", "project_id", "shot_by")


class FacilityRepository(MdmRepository[Facility]):
    model = Facility
    business_key = "facility_id"
    search_columns = ("facility_id", "facility_name", "operator", "sub_type", "fluid_type")
