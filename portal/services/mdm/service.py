"""CRUD and statistics for the five master-data domains.

Each domain service pairs a repository with its input schema. Writes run
the rule validators first (400 with every message), then the business-key
uniqueness check (409), then the working-area / field references (400).
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Iterable
from typing import Any, ClassVar

import pydantic
from pydantic import BaseModel
from pydantic.alias_generators import to_camel
from sqlalchemy.ext.asyncio import AsyncSession

from portal.core.exceptions import ConflictError, NotFoundError, ValidationError
from portal.core.pagination import PaginationParams
from portal.domain.mdm import Facility, Field, Well, WorkingArea
from portal.repositories.mdm import (
    FacilityRepository,
    FieldRepository,
    MdmRepository,
    SeismicSurveyRepository,
    WellRepository,
    WorkingAreaRepository,
)
from portal.schemas.mdm import (
    ChildCounts,
    FacilityIn,
    FieldIn,
    KeyCheckResult,
    SeismicSurveyIn,
    WellIn,
    WorkingAreaIn,
    WorkingAreaListItem,
)
from portal.services.mdm.validators import (
    ID_PATTERN,
    is_empty,
    label,
    parse_geometry,
    validate_record,
)

logger = logging.getLogger(__name__)


def distribution(values: Iterable[Any], top: int | None = None) -> dict[str, int]:
    """``{value: count}`` ordered by count, ``None`` values dropped."""
    counts = Counter(v for v in values if v is not None)
    return {str(k): c for k, c in counts.most_common(top)}


def summarize(values: Iterable[float | None]) -> dict[str, float | None]:
    present = [float(v) for v in values if v is not None]
    if not present:
        return {"average": None, "min": None, "max": None}
    return {
        "average": round(sum(present) / len(present), 2),
        "min": min(present),
        "max": max(present),
    }


class MdmService:
    domain: ClassVar[str]
    entity: ClassVar[str]
    repository: ClassVar[type[MdmRepository]]
    schema: ClassVar[type[BaseModel]]

    def __init__(self, session: AsyncSession, client_id: str):
        self.repo = self.repository(session, client_id)
        self._working_areas = WorkingAreaRepository(session, client_id)
        self._fields = FieldRepository(session, client_id)

    @property
    def key(self) -> str:
        return self.repo.business_key

    # ------------------------------------------------------------------
    # Record helpers
    # ------------------------------------------------------------------

    def columns(self, record: Any) -> dict[str, Any]:
        """Current column values of ``record`` keyed like the input schema."""
        return {name: getattr(record, name) for name in self.schema.model_fields}

    def coerce(self, raw: dict[str, Any]) -> tuple[dict[str, Any], list[str]]:
        """Parse a loose camelCase/snake_case payload into column values."""
        try:
            parsed = self.schema.model_validate(raw)
        except pydantic.ValidationError as exc:
            names = {f.alias or name: name for name, f in self.schema.model_fields.items()}
            errors = []
            for err in exc.errors():
                column = names.get(str(err["loc"][0]), str(err["loc"][0])) if err["loc"] else ""
                errors.append(f"{label(column)}: {err['msg']}")
            return {}, errors
        return parsed.model_dump(exclude_none=True), []

    def _storable(self, values: dict[str, Any]) -> dict[str, Any]:
        table = self.repo.model.__table__
        out = {}
        for name, value in values.items():
            if value is None and not table.c[name].nullable:
                continue
            if name == "shape" and isinstance(value, str):
                value, _ = parse_geometry(value)
            out[name] = value
        return out

    async def check_references(self, data: dict[str, Any]) -> list[str]:
        errors = []
        wk_id = data.get("wk_id")
        if self.domain != "workingArea" and wk_id and not await self._working_areas.get_by_key(wk_id):
            errors.append(f'Working Area with WK_ID "{wk_id}" does not exist')
        field_id = data.get("field_id")
        if self.domain in ("well", "facility") and field_id and not await self._fields.get_by_key(field_id):
            errors.append(f'Field with FIELD_ID "{field_id}" does not exist')
        return errors

    async def _ensure_writable(self, values: dict[str, Any], exclude_id: str | None = None) -> None:
        errors = validate_record(self.domain, values)
        if errors:
            raise ValidationError(f"{self.entity} validation failed", errors=errors)
        key_value = values[self.key]
        if await self.repo.key_taken(key_value, exclude_id=exclude_id):
            raise ConflictError(f'{self.entity} with {label(self.key)} "{key_value}" already exists')
        ref_errors = await self.check_references(values)
        if ref_errors:
            raise ValidationError("Referenced master data does not exist", errors=ref_errors)

    async def dependents(self, record: Any) -> dict[str, int]:
        """Child rows that still reference ``record``; empty when none."""
        return {}

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    async def list_records(self, pagination: PaginationParams, search: str | None = None, **filters: Any):
        clause = self.repo.search_clause(search)
        return await self.repo.list(
            offset=pagination.offset,
            limit=pagination.limit,
            order_by=pagination.sort_column,
            order=pagination.order,
            filters=filters,
            where=[clause] if clause is not None else None,
        )

    async def get_record(self, record_id: str):
        record = await self.repo.get_by_id(record_id)
        if not record:
            raise NotFoundError(self.entity, record_id)
        return record

    async def create_record(self, data: BaseModel):
        return await self.create_from(data.model_dump(exclude_none=True))

    async def create_from(self, values: dict[str, Any]):
        await self._ensure_writable(values)
        record = await self.repo.create(**self._storable(values))
        logger.info("%s %s created", self.entity, values[self.key])
        return record

    async def update_record(self, record_id: str, data: BaseModel):
        record = await self.get_record(record_id)
        changes = data.model_dump(exclude_unset=True)
        merged = {**self.columns(record), **changes}
        await self._ensure_writable(merged, exclude_id=record_id)

        if merged[self.key] != getattr(record, self.key):
            children = await self.dependents(record)
            if children:
                raise ConflictError(
                    f"{label(self.key)} cannot change while referenced by {_describe(children)}"
                )
        return await self.repo.update(record_id, **self._storable(changes))

    async def delete_record(self, record_id: str) -> None:
        record = await self.get_record(record_id)
        children = await self.dependents(record)
        if children:
            raise ConflictError(
                f'{self.entity} "{getattr(record, self.key)}" is still referenced by {_describe(children)}'
            )
        await self.repo.soft_delete(record_id)
        logger.info("%s %s deleted", self.entity, getattr(record, self.key))

    async def check_key(self, body: dict[str, Any]) -> KeyCheckResult:
        value = body.get(self.key) or body.get(to_camel(self.key))
        exclude_id = body.get("excludeId") or body.get("exclude_id")
        name = label(self.key)
        if is_empty(value):
            raise ValidationError(f"{name} is required")
        value = str(value).strip()
        if not ID_PATTERN.match(value):
            return KeyCheckResult(
                valid=False,
                error=f"{name} must contain only uppercase letters, numbers, underscores, and hyphens",
            )
        if await self.repo.key_taken(value, exclude_id=exclude_id):
            return KeyCheckResult(valid=False, error=f'{name} "{value}" already exists')
        return KeyCheckResult(valid=True, message=f'{name} "{value}" is available')

    async def stats(self) -> dict[str, Any]:
        raise NotImplementedError


def _describe(children: dict[str, int]) -> str:
    return ", ".join(f"{count} {name}" for name, count in children.items())


# ---------------------------------------------------------------------------
# Domains
# ---------------------------------------------------------------------------

class WorkingAreaService(MdmService):
    domain = "workingArea"
    entity = "Working area"
    repository = WorkingAreaRepository
    schema = WorkingAreaIn

    def __init__(self, session: AsyncSession, client_id: str):
        super().__init__(session, client_id)
        self._children = {
            "fields": FieldRepository(session, client_id),
            "wells": WellRepository(session, client_id),
            "seismic_surveys": SeismicSurveyRepository(session, client_id),
            "facilities": FacilityRepository(session, client_id),
        }

    async def child_counts(self, wk_ids: list[str]) -> dict[str, ChildCounts]:
        per_child = {
            name: await repo.count_by("wk_id", repo.model.wk_id.in_(wk_ids))
            for name, repo in self._children.items()
        }
        return {
            wk_id: ChildCounts(**{name: counts.get(wk_id, 0) for name, counts in per_child.items()})
            for wk_id in wk_ids
        }

    async def list_with_counts(self, pagination: PaginationParams, search: str | None = None, **filters: Any):
        rows, total = await self.list_records(pagination, search, **filters)
        counts = await self.child_counts([r.wk_id for r in rows])
        items = []
        for row in rows:
            item = WorkingAreaListItem.model_validate(row)
            item.counts = counts[row.wk_id]
            items.append(item)
        return items, total

    async def dependents(self, record: WorkingArea) -> dict[str, int]:
        counts = (await self.child_counts([record.wk_id]))[record.wk_id]
        return {
            name.replace("_", " "): n for name, n in counts.model_dump().items() if n
        }

    async def stats(self) -> dict[str, Any]:
        rows = await self.repo.values("status_wk", "jenis_kontrak", "lokasi", "holding")
        return {
            "total": len(rows),
            "byStatus": distribution(r[0] for r in rows),
            "byContractType": distribution(r[1] for r in rows),
            "byLocation": distribution(r[2] for r in rows),
            "byHolding": distribution((r[3] for r in rows), top=10),
            "related": {
                to_camel(name): await repo.count() for name, repo in self._children.items()
            },
        }


class FieldService(MdmService):
    domain = "field"
    entity = "Field"
    repository = FieldRepository
    schema = FieldIn

    def __init__(self, session: AsyncSession, client_id: str):
        super().__init__(session, client_id)
        self._wells = WellRepository(session, client_id)
        self._facilities = FacilityRepository(session, client_id)

    async def dependents(self, record: Field) -> dict[str, int]:
        found = {
            "wells": await self._wells.count(Well.field_id == record.field_id),
            "facilities": await self._facilities.count(Facility.field_id == record.field_id),
        }
        return {name: n for name, n in found.items() if n}

    async def stats(self) -> dict[str, Any]:
        rows = await self.repo.values("field_type", "status", "is_offshore", "estimated_reserves", "wk_id")
        return {
            "total": len(rows),
            "offshore": sum(1 for r in rows if r[2]),
            "onshore": sum(1 for r in rows if not r[2]),
            "byType": distribution(r[0] for r in rows),
            "byStatus": distribution(r[1] for r in rows),
            "byWorkingArea": distribution((r[4] for r in rows), top=10),
            "totalEstimatedReserves": round(sum(r[3] or 0 for r in rows), 2),
        }


class WellService(MdmService):
    domain = "well"
    entity = "Well"
    repository = WellRepository
    schema = WellIn

    async def stats(self) -> dict[str, Any]:
        rows = await self.repo.values(
            "current_class", "status_type", "environment_type", "profile_type",
            "wk_id", "operator", "spud_date", "final_drill_date", "total_depth",
        )
        names = dict(await self._working_areas.values("wk_id", "nama_wk"))
        by_wk = distribution((r[4] for r in rows), top=10)
        drilling_days = [
            (r[7] - r[6]).days for r in rows if r[6] is not None and r[7] is not None
        ]
        return {
            "total": len(rows),
            "active": sum(1 for r in rows if r[1] in ("PRODUCE", "INJECT")),
            "exploration": sum(1 for r in rows if r[0] == "EXPLORATION"),
            "development": sum(1 for r in rows if r[0] == "DEVELOPMENT"),
            "byClass": distribution(r[0] for r in rows),
            "byStatus": distribution(r[1] for r in rows),
            "byEnvironment": distribution(r[2] for r in rows),
            "byProfile": distribution(r[3] for r in rows),
            "byWorkingArea": [
                {"wkId": wk, "namaWk": names.get(wk, "Unknown"), "count": n} for wk, n in by_wk.items()
            ],
            "byOperator": distribution((r[5] for r in rows), top=10),
            "bySpudYear": dict(
                sorted(distribution(r[6].year for r in rows if r[6] is not None).items(), reverse=True)
            ),
            "depth": summarize(r[8] for r in rows),
            "drillingDays": summarize(drilling_days),
        }


class SeismicSurveyService(MdmService):
    domain = "seismicSurvey"
    entity = "Seismic survey"
    repository = SeismicSurveyRepository
    schema = SeismicSurveyIn

    async def stats(self) -> dict[str, Any]:
        rows = await self.repo.values(
            "seis_dimension", "environment", "start_date", "shape_length", "shape_area", "wk_id"
        )
        return {
            "total": len(rows),
            "byDimension": distribution(r[0] for r in rows),
            "byEnvironment": distribution(r[1] for r in rows),
            "byYear": dict(
                sorted(distribution(r[2].year for r in rows if r[2] is not None).items(), reverse=True)
            ),
            "byWorkingArea": distribution((r[5] for r in rows), top=10),
            "totalLength": round(sum(r[3] or 0 for r in rows), 2),
            "totalArea": round(sum(r[4] or 0 for r in rows), 2),
        }


class FacilityService(MdmService):
    domain = "facility"
    entity = "Facility"
    repository = FacilityRepository
    schema = FacilityIn

    async def stats(self) -> dict[str, Any]:
        rows = await self.repo.values("facility_type", "status", "wk_id", "capacity_prod")
        return {
            "total": len(rows),
            "operational": sum(1 for r in rows if r[1] == "OPERATIONAL"),
            "byType": distribution(r[0] for r in rows),
            "byStatus": distribution(r[1] for r in rows),
            "byWorkingArea": distribution((r[2] for r in rows), top=10),
            "totalProductionCapacity": round(sum(r[3] or 0 for r in rows), 2),
        }


SERVICES: dict[str, type[MdmService]] = {
    service.domain: service
    for service in (WorkingAreaService, FieldService, WellService, SeismicSurveyService, FacilityService)
}
