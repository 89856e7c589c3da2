"""Generic async repository with soft-delete, pagination, and tenant isolation."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Generic, TypeVar

from sqlalchemy import JSON, ColumnElement, func, inspect, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from portal.core.clock import utcnow
from portal.db.base import Base

ModelT = TypeVar("ModelT", bound=Base)


class BaseRepository(Generic[ModelT]):
    """Generic CRUD repository. All queries are filtered by client_id.

    Soft-deletes: rows with `deleted_at IS NOT NULL` are excluded from all
    standard reads. Hard-delete is intentionally never exposed.

    ``metadata`` is reserved on declarative models, so models store it as the
    ``metadata_`` attribute; callers may pass either spelling.
    """

    model: type[ModelT]

    def __init__(self, session: AsyncSession, client_id: str):
        self._session = session
        self._client_id = client_id

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _base_query(self, *, include_deleted: bool = False):
        """Return a SELECT filtered by client_id and excluding soft-deleted rows."""
        q = select(self.model).where(self.model.client_id == self._client_id)
        if not include_deleted and hasattr(self.model, "deleted_at"):
            q = q.where(self.model.deleted_at.is_(None))
        return q

    def _scope(self, *, include_deleted: bool = False) -> list[ColumnElement]:
        conds: list[ColumnElement] = [self.model.client_id == self._client_id]
        if not include_deleted and hasattr(self.model, "deleted_at"):
            conds.append(self.model.deleted_at.is_(None))
        return conds

    def _columns(self, values: dict[str, Any]) -> dict[str, Any]:
        if "metadata" in values and hasattr(self.model, "metadata_"):
            values["metadata_"] = values.pop("metadata")
        return values

    def _order_column(self, name: str | None):
        """Resolve a sort key to a sortable mapped column, else ``created_at``.

        Only mapped column attributes qualify; JSON columns and anything that
        is not a column (relationships, ``metadata``, dunders) fall back.
        """
        attrs = inspect(self.model).column_attrs
        attr = attrs.get(name) if name else None
        if attr is None or isinstance(attr.columns[0].type, JSON):
            attr = attrs.get("created_at")
        return attr.columns[0] if attr is not None else None

    def _apply_filters(self, q, filters: dict[str, Any] | None):
        if filters:
            for col_name, value in filters.items():
                if value is not None and hasattr(self.model, col_name):
                    q = q.where(getattr(self.model, col_name) == value)
        return q

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    async def get_by_id(self, entity_id: str) -> ModelT | None:
        result = await self._session.execute(
            self._base_query().where(self.model.id == entity_id)
        )
        return result.scalars().first()

    async def find_one_by(self, *, include_deleted: bool = False, **filters: Any) -> ModelT | None:
        q = self._base_query(include_deleted=include_deleted)
        for col_name, value in filters.items():
            q = q.where(getattr(self.model, col_name) == value)
        result = await self._session.execute(q.limit(1))
        return result.scalars().first()

    async def exists(self, entity_id: str | None) -> bool:
        if not entity_id:
            return False
        return await self.get_by_id(entity_id) is not None

    async def list(
        self,
        *,
        offset: int = 0,
        limit: int = 20,
        order_by: str = "created_at",
        order: str = "desc",
        filters: dict[str, Any] | None = None,
        where: Sequence[ColumnElement] | None = None,
    ) -> tuple[list[ModelT], int]:
        """Return (items, total_count) with pagination and optional column filters.

        ``filters`` are simple equality matches (``None`` values are skipped);
        ``where`` carries arbitrary extra clauses such as search predicates.
        """
        q = self._apply_filters(self._base_query(), filters)
        if where:
            q = q.where(*where)

        # Count
        count_q = select(func.count()).select_from(q.subquery())
        total = (await self._session.execute(count_q)).scalar_one()

        # Order + paginate
        col = self._order_column(order_by)
        if col is not None:
            q = q.order_by(col.desc() if order == "desc" else col.asc())
        q = q.offset(offset).limit(limit)

        items = (await self._session.execute(q)).scalars().all()
        return list(items), total

    async def find_all(
        self,
        *where: ColumnElement,
        order_by: str | None = None,
        order: str = "desc",
        limit: int | None = None,
        filters: dict[str, Any] | None = None,
    ) -> list[ModelT]:
        q = self._apply_filters(self._base_query(), filters)
        if where:
            q = q.where(*where)
        col = self._order_column(order_by) if order_by else None
        if col is not None:
            q = q.order_by(col.desc() if order == "desc" else col.asc())
        if limit:
            q = q.limit(limit)
        return list((await self._session.execute(q)).scalars().all())

    # ------------------------------------------------------------------
    # Aggregates
    # ------------------------------------------------------------------

    async def count(self, *where: ColumnElement, filters: dict[str, Any] | None = None) -> int:
        q = select(func.count()).select_from(self.model).where(*self._scope(), *where)
        if filters:
            q = q.where(*(getattr(self.model, k) == v for k, v in filters.items() if v is not None))
        return (await self._session.execute(q)).scalar_one()

    async def count_by(self, column: str, *where: ColumnElement) -> dict[Any, int]:
        """Group-by count over one column: ``{value: count}``."""
        col = getattr(self.model, column)
        q = (
            select(col, func.count())
            .where(*self._scope(), *where)
            .group_by(col)
        )
        rows = (await self._session.execute(q)).all()
        return {value: cnt for value, cnt in rows}

    async def sum_by(self, group_column: str, sum_column: str, *where: ColumnElement) -> dict[Any, float]:
        group_col = getattr(self.model, group_column)
        q = (
            select(group_col, func.coalesce(func.sum(getattr(self.model, sum_column)), 0))
            .where(*self._scope(), *where)
            .group_by(group_col)
        )
        rows = (await self._session.execute(q)).all()
        return {value: float(total) for value, total in rows}

    async def sum(self, column: str, *where: ColumnElement) -> float:
        q = select(func.coalesce(func.sum(getattr(self.model, column)), 0)).where(
            *self._scope(), *where
        )
        return float((await self._session.execute(q)).scalar_one())

    async def avg(self, column: str, *where: ColumnElement) -> float | None:
        q = select(func.avg(getattr(self.model, column))).where(*self._scope(), *where)
        value = (await self._session.execute(q)).scalar_one()
        return float(value) if value is not None else None

    async def max(self, column: str, *where: ColumnElement) -> Any:
        q = select(func.max(getattr(self.model, column))).where(*self._scope(), *where)
        return (await self._session.execute(q)).scalar_one()

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    async def create(self, **kwargs: Any) -> ModelT:
        instance = self.model(client_id=self._client_id, **self._columns(kwargs))
        self._session.add(instance)
        await self._session.flush()  # populate id
        await self._session.refresh(instance)
        return instance

    async def update(self, entity_id: str, **kwargs: Any) -> ModelT | None:
        kwargs.pop("id", None)
        kwargs.pop("client_id", None)
        kwargs = self._columns(kwargs)
        if "updated_at" not in kwargs and hasattr(self.model, "updated_at"):
            kwargs["updated_at"] = utcnow()

        await self._session.execute(
            update(self.model)
            .where(self.model.id == entity_id)
            .where(self.model.client_id == self._client_id)
            .values(**kwargs)
        )
        await self._session.flush()
        return await self.get_by_id(entity_id)

    async def soft_delete(self, entity_id: str) -> bool:
        result = await self._session.execute(
            update(self.model)
            .where(self.model.id == entity_id)
            .where(self.model.client_id == self._client_id)
            .where(self.model.deleted_at.is_(None))
            .values(deleted_at=utcnow())
        )
        await self._session.flush()
        return result.rowcount > 0

    async def commit(self) -> None:
        """Commit now: for writes that must survive an error raised afterwards."""
        await self._session.commit()
